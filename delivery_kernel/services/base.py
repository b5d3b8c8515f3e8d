"""
BaseService -- abstract base for services that write rows.

Responsibility:
    Provides the common constructor and session-handling contract for every
    writer.  Writers receive a SQLAlchemy ``Session`` and use
    ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: writers flush within the caller's transaction
    and never commit or roll back.  The module service that owns the
    operation (e.g. LedgerService) decides commit/rollback, which is what
    makes multi-row operations atomic.
"""

from abc import ABC

from sqlalchemy.orm import Session

from delivery_kernel.domain.context import BACKGROUND, RequestContext


class BaseService(ABC):
    """
    Abstract base class for kernel and module writers.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session, context: RequestContext | None = None):
        self.session = session
        self.context = context or BACKGROUND
