"""
Delivery modules: packing lists and the credit & payment ledger.

Each module owns its domain models, configuration and service.  Modules
import from ``delivery_kernel``; the kernel never imports a module
(except through ``_orm_registry`` when creating tables).
"""
