"""
ORM-level immutability enforcement for the inventory ledger.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements are sent:

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                   ^
         v                                                   |
    [before_delete] --> _check_*_delete() -------------------+
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | Rule
------------------|-----------------------------------------------------------
AdjustmentModel   | Content frozen from INSERT.  Approval fields settable
                  | while unapproved; is_reversed only False -> True;
                  | reversal_reference only while not reversed.  No DELETE.
AuditSessionModel | Frozen once closed (is_active was False).  No DELETE of
                  | closed sessions.
AuditBatchModel   | Frozen once completed/failed.  No DELETE of terminal
                  | batches.

"Was X before this update" is read from attribute history, so the closing
transition itself (active -> closed, processing -> completed) is allowed.

===============================================================================
USAGE
===============================================================================

    from inventory_ledger.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from inventory_ledger.exceptions import ImmutabilityViolationError
from inventory_ledger.logging_config import get_logger

logger = get_logger("db.immutability")

_APPROVAL_FIELDS = frozenset({"approved_by", "approved_at", "approval_notes"})
_REVERSAL_FIELDS = frozenset({"is_reversed", "reversal_reference"})

_TERMINAL_BATCH_STATUSES = frozenset({"completed", "failed"})


def _value_before(target, key):
    """Value of ``key`` as loaded from the database, before pending changes."""
    hist = get_history(target, key)
    if hist.deleted:
        return hist.deleted[0]
    if hist.added:
        return None
    return getattr(target, key)


def _status_value(value):
    return value.value if hasattr(value, "value") else value


def _violation(entity_type, target, operation, reason, field=None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _changed_fields(target, ignore=frozenset({"version"})):
    insp = inspect(target)
    return [
        attr.key for attr in insp.attrs
        if attr.key not in ignore and attr.history.has_changes()
    ]


# =========================================================================
# Adjustment records
# =========================================================================


def _check_adjustment_immutability(mapper, connection, target):
    """
    Allow only the approval and reversal workflow to touch a stored record.

    The ``version`` column here is the record schema version, so it is
    checked like any other content field.
    """
    from inventory_ledger.models.adjustment import ADJUSTMENT_MUTABLE_FIELDS

    changed = _changed_fields(target, ignore=frozenset())
    if not changed:
        return

    for key in changed:
        if key not in ADJUSTMENT_MUTABLE_FIELDS:
            raise _violation(
                "AdjustmentRecord", target, "UPDATE",
                f"Cannot modify field '{key}' on an adjustment record",
                field=key,
            )

    if _APPROVAL_FIELDS.intersection(changed):
        if _value_before(target, "approved_at") is not None:
            raise _violation(
                "AdjustmentRecord", target, "UPDATE",
                "Approval fields are write-once",
                field="approved_at",
            )

    if _REVERSAL_FIELDS.intersection(changed):
        if _value_before(target, "is_reversed"):
            raise _violation(
                "AdjustmentRecord", target, "UPDATE",
                "Reversal fields are write-once",
                field="is_reversed",
            )
        if not target.is_reversed:
            raise _violation(
                "AdjustmentRecord", target, "UPDATE",
                "is_reversed can only change from false to true",
                field="is_reversed",
            )


def _check_adjustment_delete(mapper, connection, target):
    raise _violation(
        "AdjustmentRecord", target, "DELETE",
        "Adjustment records cannot be deleted; reverse them instead",
    )


# =========================================================================
# Audit sessions
# =========================================================================


def _check_session_immutability(mapper, connection, target):
    if _value_before(target, "is_active") is not False:
        return
    changed = _changed_fields(target)
    if changed:
        raise _violation(
            "AuditSession", target, "UPDATE",
            f"Cannot modify field '{changed[0]}' on a closed audit session",
            field=changed[0],
        )


def _check_session_delete(mapper, connection, target):
    if _value_before(target, "is_active") is False:
        raise _violation(
            "AuditSession", target, "DELETE",
            "Closed audit sessions cannot be deleted",
        )


# =========================================================================
# Audit batches
# =========================================================================


def _check_batch_immutability(mapper, connection, target):
    if _status_value(_value_before(target, "status")) not in _TERMINAL_BATCH_STATUSES:
        return
    changed = _changed_fields(target)
    if changed:
        raise _violation(
            "AuditBatch", target, "UPDATE",
            f"Cannot modify field '{changed[0]}' on a terminal audit batch",
            field=changed[0],
        )


def _check_batch_delete(mapper, connection, target):
    if _status_value(_value_before(target, "status")) in _TERMINAL_BATCH_STATUSES:
        raise _violation(
            "AuditBatch", target, "DELETE",
            "Completed or failed audit batches cannot be deleted",
        )


# =========================================================================
# Registration
# =========================================================================


def _listeners():
    from inventory_ledger.models.adjustment import AdjustmentModel
    from inventory_ledger.models.audit_batch import AuditBatchModel
    from inventory_ledger.models.audit_session import AuditSessionModel

    return (
        (AdjustmentModel, "before_update", _check_adjustment_immutability),
        (AdjustmentModel, "before_delete", _check_adjustment_delete),
        (AuditSessionModel, "before_update", _check_session_immutability),
        (AuditSessionModel, "before_delete", _check_session_delete),
        (AuditBatchModel, "before_update", _check_batch_immutability),
        (AuditBatchModel, "before_delete", _check_batch_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this after all models are imported but before any database
    operations begin.  Calling it twice is harmless.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
