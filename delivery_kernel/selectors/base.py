"""
Module: delivery_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/ and models/.

Invariants enforced:
    - Read-only access: selectors never call session.add(), delete(),
      commit() or flush().
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Not-found is signalled by None or an empty collection, never raised.
    - Every query first checks the caller's RequestContext deadline.
"""

from abc import ABC

from sqlalchemy.orm import Session

from delivery_kernel.db.engine import apply_statement_timeout
from delivery_kernel.domain.context import BACKGROUND, RequestContext


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session and a RequestContext from the caller,
        perform read-only queries and return DTOs.
    """

    def __init__(self, session: Session, context: RequestContext | None = None):
        self.session = session
        self.context = context or BACKGROUND

    def _guard(self, operation: str) -> None:
        """Fail fast when the request deadline has passed; bound the query otherwise."""
        self.context.check(operation)
        remaining = self.context.remaining()
        if remaining is not None:
            apply_statement_timeout(self.session, int(remaining * 1000))
