"""
ORM-Level Append-Only Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Payments, credits and credit applications are money movements.  Once
written they are never edited or deleted: a correction is a new row.  The
derived invoice status and credit balance are sums over these rows, so a
silently edited row would rewrite history for every later read.

===============================================================================
HOW IT WORKS
===============================================================================

Models opt in by inheriting ``AppendOnlyMixin``.  A session-level
``before_flush`` listener inspects the pending flush plan:

    session.flush()
         |
         v
    [before_flush] --> _check_append_only() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails the flush is aborted and the caller's transaction rolls
back.  The database is never modified.

===============================================================================
DESIGN DECISIONS
===============================================================================

1. updated_at / updated_by_id may change.
   They are audit metadata, not financial data.

2. before_flush, not mapper before_update.
   Deletions must be rejected before the flush plan is finalized, and one
   session-level hook covers every opted-in model.
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from delivery_kernel.exceptions import ImmutabilityViolationError
from delivery_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Audit metadata that may change even on append-only rows
MUTABLE_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})


class AppendOnlyMixin:
    """Marker mixin: rows of this model may be inserted, never updated or deleted."""

    __append_only__ = True


def _changed_fields(instance) -> set[str]:
    state = inspect(instance)
    changed: set[str] = set()
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.has_changes():
            changed.add(attr.key)
    return changed


def _check_append_only(session, flush_context, instances):
    """Reject UPDATE or DELETE of any AppendOnlyMixin instance."""
    for instance in session.deleted:
        if isinstance(instance, AppendOnlyMixin):
            entity_type = type(instance).__name__
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": entity_type,
                    "entity_id": str(instance.id),
                    "operation": "DELETE",
                },
            )
            raise ImmutabilityViolationError(
                entity_type=entity_type,
                entity_id=str(instance.id),
                reason="Append-only rows cannot be deleted",
            )

    for instance in session.dirty:
        if not isinstance(instance, AppendOnlyMixin):
            continue
        changed = _changed_fields(instance) - MUTABLE_AUDIT_FIELDS
        if not changed:
            continue
        entity_type = type(instance).__name__
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": entity_type,
                "entity_id": str(instance.id),
                "operation": "UPDATE",
                "fields": sorted(changed),
            },
        )
        raise ImmutabilityViolationError(
            entity_type=entity_type,
            entity_id=str(instance.id),
            reason=f"Append-only rows cannot be modified (fields: {', '.join(sorted(changed))})",
        )


def register_immutability_listeners() -> None:
    """
    Register append-only enforcement.

    Call during application initialization, before any database
    operations begin.  Idempotent.
    """
    if not event.contains(Session, "before_flush", _check_append_only):
        event.listen(Session, "before_flush", _check_append_only)


def unregister_immutability_listeners() -> None:
    """
    Remove append-only enforcement.

    WARNING: Only use this in tests that must violate the rule to verify
    detection.
    """
    if event.contains(Session, "before_flush", _check_append_only):
        event.remove(Session, "before_flush", _check_append_only)
