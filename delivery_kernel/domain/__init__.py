"""Pure domain primitives: clock and request context."""

from delivery_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from delivery_kernel.domain.context import BACKGROUND, Actor, RequestContext, Role

__all__ = [
    "Actor",
    "BACKGROUND",
    "Clock",
    "DeterministicClock",
    "RequestContext",
    "Role",
    "SystemClock",
]
