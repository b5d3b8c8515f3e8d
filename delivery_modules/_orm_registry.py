"""
Module ORM Registry (``delivery_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
contains its table definition before tables are created.

Architecture position
---------------------
**Modules layer** -- utility.  Imports kernel models and module ``orm``
packages.  MUST NOT be imported by ``delivery_kernel`` except lazily from
``create_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``delivery_modules.*.orm`` module.

    Kernel tables (customers, products, orders, invoices) are registered
    first; ledger tables reference them by foreign key.  Idempotent.
    """
    import delivery_kernel.models  # noqa: F401
    import delivery_modules.ledger.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel and module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from delivery_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
