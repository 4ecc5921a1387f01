"""
Typed exception hierarchy for the inventory ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (POS screens, import jobs, sync workers) need to tell
"bad data" apart from "already approved" apart from "someone else wrote this
session first" without parsing message strings.  Every error therefore:

  1. Has its own class (catch by type, not message)
  2. Carries a ``code`` class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not only in the message)

Example:

    try:
        service.approve_adjustment(adjustment_id)
    except AdjustmentAlreadyApprovedError as e:
        toast(f"Already approved by {e.approved_by}")
    except ApprovalError as e:
        log.warning("approval failed", extra={"code": e.code})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryLedgerError (base)
    |
    +-- AdjustmentError
    |   +-- AdjustmentValidationError
    |   +-- AdjustmentNotFoundError
    |   +-- DuplicateAdjustmentError
    |
    +-- ApprovalError
    |   +-- ApprovalNotRequiredError
    |   +-- AdjustmentAlreadyApprovedError
    |   +-- UnauthorizedApproverError
    |   +-- SelfApprovalError
    |
    +-- ReversalError
    |   +-- AdjustmentAlreadyReversedError
    |   +-- ReversalNotAllowedError
    |   +-- UnauthorizedReversalError
    |
    +-- SessionError
    |   +-- SessionNotFoundError
    |   +-- SessionAlreadyActiveError
    |   +-- NoActiveSessionError
    |   +-- SessionClosedError
    |
    +-- BatchError
    |   +-- BatchNotFoundError
    |   +-- BatchAlreadyCompletedError
    |   +-- InvalidBatchTransitionError
    |   +-- BatchStoreMismatchError
    |
    +-- TransferError
    |   +-- InvalidTransferError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|-----------------------------------
Adjustment   | ADJUSTMENT_VALIDATION_FAILED  | Request failed one or more rules
             | ADJUSTMENT_NOT_FOUND          | Record id doesn't exist
             | DUPLICATE_ADJUSTMENT          | Same id, different payload
-------------|-------------------------------|-----------------------------------
Approval     | APPROVAL_NOT_REQUIRED         | Record never needed approval
             | ADJUSTMENT_ALREADY_APPROVED   | approved_at already set
             | UNAUTHORIZED_APPROVER         | Role may not approve this record
             | SELF_APPROVAL                 | Creator tried to approve own record
-------------|-------------------------------|-----------------------------------
Reversal     | ADJUSTMENT_ALREADY_REVERSED   | is_reversed already true
             | REVERSAL_NOT_ALLOWED          | Target is itself a reversal, etc.
             | UNAUTHORIZED_REVERSAL         | Role lacks reverse permission
-------------|-------------------------------|-----------------------------------
Session      | SESSION_NOT_FOUND             | Session id doesn't exist
             | SESSION_ALREADY_ACTIVE        | Actor already has an open session
             | NO_ACTIVE_SESSION             | end called with nothing open
             | SESSION_CLOSED                | Write against a closed session
-------------|-------------------------------|-----------------------------------
Batch        | BATCH_NOT_FOUND               | Batch id doesn't exist
             | BATCH_ALREADY_COMPLETED       | Batch is in a terminal status
             | INVALID_BATCH_TRANSITION      | Illegal status change
             | BATCH_STORE_MISMATCH          | Batch belongs to another store
-------------|-------------------------------|-----------------------------------
Transfer     | INVALID_TRANSFER              | Same location, zero quantity, ...
-------------|-------------------------------|-----------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT      | Rollup row changed underneath us
-------------|-------------------------------|-----------------------------------
Immutability | IMMUTABILITY_VIOLATION        | Ledger field update / delete

===============================================================================
"""


class InventoryLedgerError(Exception):
    """
    Base exception for all inventory ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_LEDGER_ERROR"


# Adjustment-related exceptions


class AdjustmentError(InventoryLedgerError):
    """Base exception for adjustment record errors."""

    code: str = "ADJUSTMENT_ERROR"


class AdjustmentValidationError(AdjustmentError):
    """
    Adjustment request failed validation.

    Carries every failing rule, not just the first.  Permission failures
    are included as errors with code ``PERMISSION_DENIED``.
    """

    code: str = "ADJUSTMENT_VALIDATION_FAILED"

    def __init__(self, errors):
        self.errors = tuple(errors)
        self.messages = tuple(e.message for e in self.errors)
        super().__init__(f"Validation failed: {', '.join(self.messages)}")


class AdjustmentNotFoundError(AdjustmentError):
    """Adjustment record with given ID was not found."""

    code: str = "ADJUSTMENT_NOT_FOUND"

    def __init__(self, adjustment_id: str):
        self.adjustment_id = adjustment_id
        super().__init__(f"Adjustment not found: {adjustment_id}")


class DuplicateAdjustmentError(AdjustmentError):
    """An adjustment id was reused with a different payload."""

    code: str = "DUPLICATE_ADJUSTMENT"

    def __init__(self, adjustment_id: str, mismatched_fields: tuple[str, ...] = ()):
        self.adjustment_id = adjustment_id
        self.mismatched_fields = mismatched_fields
        detail = f" (differs in: {', '.join(mismatched_fields)})" if mismatched_fields else ""
        super().__init__(
            f"Adjustment {adjustment_id} already exists with a different payload{detail}"
        )


# Approval-related exceptions


class ApprovalError(InventoryLedgerError):
    """Base exception for approval errors."""

    code: str = "APPROVAL_ERROR"


class ApprovalNotRequiredError(ApprovalError):
    """The record was created without an approval requirement."""

    code: str = "APPROVAL_NOT_REQUIRED"

    def __init__(self, adjustment_id: str):
        self.adjustment_id = adjustment_id
        super().__init__(f"Adjustment {adjustment_id} does not require approval")


class AdjustmentAlreadyApprovedError(ApprovalError):
    """Approval fields are write-once."""

    code: str = "ADJUSTMENT_ALREADY_APPROVED"

    def __init__(self, adjustment_id: str, approved_by: str | None):
        self.adjustment_id = adjustment_id
        self.approved_by = approved_by
        super().__init__(
            f"Adjustment {adjustment_id} was already approved by {approved_by}"
        )


class UnauthorizedApproverError(ApprovalError):
    """Approver's role may not sign off on this adjustment."""

    code: str = "UNAUTHORIZED_APPROVER"

    def __init__(self, adjustment_id: str, approver_id: str | None, role: str | None):
        self.adjustment_id = adjustment_id
        self.approver_id = approver_id
        self.role = role
        super().__init__(
            f"User {approver_id} with role {role} cannot approve adjustment {adjustment_id}"
        )


class SelfApprovalError(ApprovalError):
    """Approval is a second-party sign-off; creators cannot approve their own records."""

    code: str = "SELF_APPROVAL"

    def __init__(self, adjustment_id: str, user_id: str):
        self.adjustment_id = adjustment_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} cannot approve adjustment {adjustment_id} they recorded"
        )


# Reversal-related exceptions


class ReversalError(InventoryLedgerError):
    """Base exception for reversal errors."""

    code: str = "REVERSAL_ERROR"


class AdjustmentAlreadyReversedError(ReversalError):
    """Adjustment has already been reversed."""

    code: str = "ADJUSTMENT_ALREADY_REVERSED"

    def __init__(self, adjustment_id: str):
        self.adjustment_id = adjustment_id
        super().__init__(f"Adjustment {adjustment_id} has already been reversed")


class ReversalNotAllowedError(ReversalError):
    """Adjustment cannot be reversed (e.g. it is itself a reversal)."""

    code: str = "REVERSAL_NOT_ALLOWED"

    def __init__(self, adjustment_id: str, reason: str):
        self.adjustment_id = adjustment_id
        self.reason = reason
        super().__init__(f"Adjustment {adjustment_id} cannot be reversed: {reason}")


class UnauthorizedReversalError(ReversalError):
    """Role lacks the reverse_adjustments permission."""

    code: str = "UNAUTHORIZED_REVERSAL"

    def __init__(self, adjustment_id: str, user_id: str | None, role: str | None):
        self.adjustment_id = adjustment_id
        self.user_id = user_id
        self.role = role
        super().__init__(
            f"User {user_id} with role {role} cannot reverse adjustment {adjustment_id}"
        )


# Session-related exceptions


class SessionError(InventoryLedgerError):
    """Base exception for audit session errors."""

    code: str = "SESSION_ERROR"


class SessionNotFoundError(SessionError):
    """Audit session with given ID was not found."""

    code: str = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Audit session not found: {session_id}")


class SessionAlreadyActiveError(SessionError):
    """Actor already has an open audit session in this store."""

    code: str = "SESSION_ALREADY_ACTIVE"

    def __init__(self, session_id: str, user_id: str | None, store_id: str):
        self.session_id = session_id
        self.user_id = user_id
        self.store_id = store_id
        super().__init__(
            f"User {user_id} already has active audit session {session_id} "
            f"in store {store_id}"
        )


class NoActiveSessionError(SessionError):
    """No audit session is open for the actor."""

    code: str = "NO_ACTIVE_SESSION"

    def __init__(self, user_id: str | None, store_id: str):
        self.user_id = user_id
        self.store_id = store_id
        super().__init__(
            f"No active audit session for user {user_id} in store {store_id}"
        )


class SessionClosedError(SessionError):
    """Audit session is closed and accepts no further changes."""

    code: str = "SESSION_CLOSED"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Audit session {session_id} is closed")


# Batch-related exceptions


class BatchError(InventoryLedgerError):
    """Base exception for audit batch errors."""

    code: str = "BATCH_ERROR"


class BatchNotFoundError(BatchError):
    """Audit batch with given ID was not found."""

    code: str = "BATCH_NOT_FOUND"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Audit batch not found: {batch_id}")


class BatchAlreadyCompletedError(BatchError):
    """Batch is in a terminal status."""

    code: str = "BATCH_ALREADY_COMPLETED"

    def __init__(self, batch_id: str, status: str):
        self.batch_id = batch_id
        self.status = status
        super().__init__(f"Audit batch {batch_id} is already {status}")


class InvalidBatchTransitionError(BatchError):
    """Requested batch status change is not in the transition table."""

    code: str = "INVALID_BATCH_TRANSITION"

    def __init__(self, batch_id: str, from_status: str, to_status: str):
        self.batch_id = batch_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Audit batch {batch_id} cannot move from {from_status} to {to_status}"
        )


class BatchStoreMismatchError(BatchError):
    """Batch belongs to a different store than the caller."""

    code: str = "BATCH_STORE_MISMATCH"

    def __init__(self, batch_id: str, batch_store_id: str, store_id: str):
        self.batch_id = batch_id
        self.batch_store_id = batch_store_id
        self.store_id = store_id
        super().__init__(
            f"Audit batch {batch_id} belongs to store {batch_store_id}, not {store_id}"
        )


# Transfer-related exceptions


class TransferError(InventoryLedgerError):
    """Base exception for transfer errors."""

    code: str = "TRANSFER_ERROR"


class InvalidTransferError(TransferError):
    """Transfer request is malformed."""

    code: str = "INVALID_TRANSFER"

    def __init__(self, transfer_ref: str | None, errors):
        self.transfer_ref = transfer_ref
        self.errors = tuple(errors)
        self.messages = tuple(e.message for e in self.errors)
        super().__init__(
            f"Invalid transfer {transfer_ref}: {', '.join(self.messages)}"
        )


# Concurrency-related exceptions


class ConcurrencyError(InventoryLedgerError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability-related exceptions


class ImmutabilityError(InventoryLedgerError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Adjustment records are append-only apart from their approval and
    reversal fields; closed sessions and terminal batches are frozen.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
