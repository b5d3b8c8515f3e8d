"""
Request context -- caller identity and deadline carried into every call.

Responsibility:
    ``Actor`` is the authenticated identity handed over by the calling
    layer.  ``RequestContext`` bundles it with a correlation id and an
    optional deadline so a slow storage layer cannot wedge a request.

Architecture position:
    Kernel > Domain -- pure value objects.  The deadline reads a monotonic
    clock; no other I/O.

Invariants enforced:
    - A context without a deadline never expires.
    - ``check()`` raises DeadlineExceededError once the budget is spent;
      repository calls invoke it before touching the database.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
from uuid import UUID, uuid4

from delivery_kernel.exceptions import DeadlineExceededError


class Role(str, Enum):
    """Roles handed over by the authentication layer."""

    ADMIN = "admin"
    CUSTOMER = "customer"
    DRIVER = "driver"
    PACKER = "packer"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller identity."""

    id: UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request metadata threaded through façade, services and selectors.

    Contract:
        ``deadline`` is an absolute value of ``monotonic()``; None means no
        deadline.  ``monotonic`` is injectable for tests.
    """

    actor: Actor | None = None
    correlation_id: str = field(default_factory=lambda: uuid4().hex)
    deadline: float | None = None
    budget_seconds: float | None = None
    monotonic: Callable[[], float] = field(default=time.monotonic, compare=False, repr=False)

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        actor: Actor | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> RequestContext:
        """Build a context whose deadline is ``seconds`` from now."""
        return cls(
            actor=actor,
            deadline=monotonic() + seconds,
            budget_seconds=seconds,
            monotonic=monotonic,
        )

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return self.deadline - self.monotonic()

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, operation: str) -> None:
        """Raise DeadlineExceededError if the budget is spent."""
        if self.expired():
            raise DeadlineExceededError(operation, self.budget_seconds)


BACKGROUND = RequestContext()
"""Context for internal callers with no deadline (scripts, scheduler)."""
