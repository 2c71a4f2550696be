"""
Typed exception hierarchy for the asset kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the lifecycle engine need to tell "the asset does not exist" from
"the asset is in the wrong state" from "someone else changed it first"
without parsing message strings. Every exception here therefore has:

  1. Its own class (catch by type, not message)
  2. A ``code`` class attribute (machine-readable, API-safe)
  3. Structured attributes (asset_tag, states, ids) instead of only text

Public workflow operations catch ``AssetKernelError`` and translate it into
an ``OperationResult`` whose status is derived from the category below.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AssetKernelError (base)
    |
    +-- NotFoundError
    |   +-- AssetNotFoundError
    |   +-- TransferNotFoundError
    |   +-- SalvageBatchNotFoundError
    |
    +-- InvalidTransitionError
    |   +-- InvalidTransferTransitionError
    |
    +-- IneligibleForOperationError
    |   +-- TransferNotAllowedError
    |   +-- NotDeliveredError
    |   +-- SalvageIneligibleError
    |   +-- AlreadyInSalvageBatchError
    |   +-- SalvageBatchSealedError
    |   +-- SalvageBatchEmptyError
    |   +-- BatchMemberIneligibleError
    |   +-- AssetNotEditableError
    |
    +-- ValidationError
    |   +-- MissingContextError
    |   +-- InvalidContextError
    |   +-- UnknownFieldError
    |   +-- FieldValidationError
    |   +-- UnknownLifecycleStateError
    |   +-- InvalidInitialStateError
    |   +-- SelfReplacementError
    |   +-- InvalidDateRangeError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |   +-- DuplicateBatchCodeError
    |   +-- DuplicateAssetTagError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AuditError
        +-- AuditChainBrokenError
        +-- UnknownEventTypeError
"""


class AssetKernelError(Exception):
    """
    Base exception for all asset kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "ASSET_KERNEL_ERROR"


# Lookup failures


class NotFoundError(AssetKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class AssetNotFoundError(NotFoundError):
    """No asset carries the given tag."""

    code: str = "ASSET_NOT_FOUND"

    def __init__(self, asset_tag: str):
        self.asset_tag = asset_tag
        super().__init__(f"Asset not found: {asset_tag}")


class TransferNotFoundError(NotFoundError):
    """No transfer has the given id."""

    code: str = "TRANSFER_NOT_FOUND"

    def __init__(self, transfer_id: str):
        self.transfer_id = transfer_id
        super().__init__(f"Transfer not found: {transfer_id}")


class SalvageBatchNotFoundError(NotFoundError):
    """No salvage batch has the given id."""

    code: str = "SALVAGE_BATCH_NOT_FOUND"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Salvage batch not found: {batch_id}")


# State machine violations


class InvalidTransitionError(AssetKernelError):
    """The lifecycle transition table does not allow the requested move."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, asset_tag: str, current_state: str, target_state: str):
        self.asset_tag = asset_tag
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Cannot transition asset {asset_tag} from {current_state} "
            f"to {target_state}"
        )


class InvalidTransferTransitionError(InvalidTransitionError):
    """The transfer sub-state does not allow the requested step."""

    code: str = "INVALID_TRANSFER_TRANSITION"

    def __init__(self, transfer_id: str, current_state: str, target_state: str):
        self.transfer_id = transfer_id
        self.current_state = current_state
        self.target_state = target_state
        # Subject is a transfer, not an asset.
        AssetKernelError.__init__(
            self,
            f"Cannot move transfer {transfer_id} from {current_state} "
            f"to {target_state}",
        )


# Operation preconditions


class IneligibleForOperationError(AssetKernelError):
    """Base exception for records that exist but cannot take part in an operation."""

    code: str = "INELIGIBLE"


class TransferNotAllowedError(IneligibleForOperationError):
    """The asset's lifecycle state does not permit starting a transfer."""

    code: str = "TRANSFER_NOT_ALLOWED"

    def __init__(self, asset_tag: str, current_state: str):
        self.asset_tag = asset_tag
        self.current_state = current_state
        super().__init__(
            f"Asset {asset_tag} in state {current_state} cannot be transferred"
        )


class NotDeliveredError(IneligibleForOperationError):
    """Location reassignment is only permitted while the asset is Delivered."""

    code: str = "NOT_DELIVERED"

    def __init__(self, asset_tag: str, current_state: str):
        self.asset_tag = asset_tag
        self.current_state = current_state
        super().__init__(
            f"Asset {asset_tag} is {current_state}, not Delivered"
        )


class SalvageIneligibleError(IneligibleForOperationError):
    """The asset's lifecycle state does not permit joining a salvage batch."""

    code: str = "SALVAGE_INELIGIBLE"

    def __init__(self, asset_tag: str, current_state: str):
        self.asset_tag = asset_tag
        self.current_state = current_state
        super().__init__(
            f"Asset {asset_tag} in state {current_state} is not eligible for salvage"
        )


class AlreadyInSalvageBatchError(IneligibleForOperationError):
    """The asset already belongs to a salvage batch."""

    code: str = "ALREADY_IN_SALVAGE_BATCH"

    def __init__(self, asset_tag: str, batch_id: str):
        self.asset_tag = asset_tag
        self.batch_id = batch_id
        super().__init__(
            f"Asset {asset_tag} is already a member of salvage batch {batch_id}"
        )


class SalvageBatchSealedError(IneligibleForOperationError):
    """The batch has been finalized and is sealed against changes."""

    code: str = "SALVAGE_BATCH_SEALED"

    def __init__(self, batch_id: str, batch_code: str):
        self.batch_id = batch_id
        self.batch_code = batch_code
        super().__init__(f"Salvage batch {batch_code} is already finalized")


class SalvageBatchEmptyError(IneligibleForOperationError):
    """A batch without members cannot be finalized."""

    code: str = "SALVAGE_BATCH_EMPTY"

    def __init__(self, batch_id: str, batch_code: str):
        self.batch_id = batch_id
        self.batch_code = batch_code
        super().__init__(f"Salvage batch {batch_code} has no assets")


class BatchMemberIneligibleError(IneligibleForOperationError):
    """A batch member can no longer move to Salvaged."""

    code: str = "BATCH_MEMBER_INELIGIBLE"

    def __init__(self, batch_code: str, asset_tag: str, current_state: str):
        self.batch_code = batch_code
        self.asset_tag = asset_tag
        self.current_state = current_state
        super().__init__(
            f"Asset {asset_tag} in batch {batch_code} is {current_state} "
            f"and cannot be salvaged"
        )


class AssetNotEditableError(IneligibleForOperationError):
    """Salvaged assets are read-only."""

    code: str = "ASSET_NOT_EDITABLE"

    def __init__(self, asset_tag: str):
        self.asset_tag = asset_tag
        super().__init__(f"Asset {asset_tag} is salvaged and can no longer be edited")


# Input validation


class ValidationError(AssetKernelError):
    """Base exception for rejected caller input."""

    code: str = "VALIDATION_FAILED"


class MissingContextError(ValidationError):
    """A transition that requires context was invoked without it."""

    code: str = "MISSING_CONTEXT"

    def __init__(self, target_state: str, context_type: str):
        self.target_state = target_state
        self.context_type = context_type
        super().__init__(
            f"Transition to {target_state} requires a {context_type}"
        )


class InvalidContextError(ValidationError):
    """The supplied transition context is of the wrong type or incomplete."""

    code: str = "INVALID_CONTEXT"

    def __init__(self, target_state: str, reason: str):
        self.target_state = target_state
        self.reason = reason
        super().__init__(f"Invalid context for {target_state}: {reason}")


class UnknownFieldError(ValidationError):
    """The field name is not in the editable field map."""

    code: str = "UNKNOWN_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' is not editable")


class FieldValidationError(ValidationError):
    """The value supplied for an editable field was rejected."""

    code: str = "FIELD_VALIDATION_FAILED"

    def __init__(self, field_name: str, value: str | None, reason: str):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for {field_name}: {reason}")


class UnknownLifecycleStateError(ValidationError):
    """The requested target is not a lifecycle state."""

    code: str = "UNKNOWN_LIFECYCLE_STATE"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unknown lifecycle state: {value!r}")


class InvalidInitialStateError(ValidationError):
    """Assets cannot be registered directly into the requested state."""

    code: str = "INVALID_INITIAL_STATE"

    def __init__(self, asset_tag: str, state: str):
        self.asset_tag = asset_tag
        self.state = state
        super().__init__(f"Asset {asset_tag} cannot be registered as {state}")


class SelfReplacementError(ValidationError):
    """An asset cannot replace itself."""

    code: str = "SELF_REPLACEMENT"

    def __init__(self, asset_tag: str):
        self.asset_tag = asset_tag
        super().__init__(f"Asset {asset_tag} cannot replace itself")


class InvalidDateRangeError(ValidationError):
    """Report range start is after its end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, from_date: str, to_date: str):
        self.from_date = from_date
        self.to_date = to_date
        super().__init__(f"Invalid date range: {from_date} is after {to_date}")


# Concurrency


class ConcurrencyError(AssetKernelError):
    """Base exception for conflicting concurrent writes."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """The record changed between load and save (stale version)."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} was modified by another operation"
        )


class DuplicateBatchCodeError(ConcurrencyError):
    """Another batch was created with the same code in the same second."""

    code: str = "DUPLICATE_BATCH_CODE"

    def __init__(self, batch_code: str):
        self.batch_code = batch_code
        super().__init__(f"Salvage batch code {batch_code} already exists")


class DuplicateAssetTagError(ConcurrencyError):
    """An asset with this tag is already registered."""

    code: str = "DUPLICATE_ASSET_TAG"

    def __init__(self, asset_tag: str):
        self.asset_tag = asset_tag
        super().__init__(f"Asset tag {asset_tag} already exists")


# Immutability


class ImmutabilityError(AssetKernelError):
    """Base exception for writes against append-only or sealed records."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Event log integrity


class AuditError(AssetKernelError):
    """Base exception for event log integrity errors."""

    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Event hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, event_id: str, expected_hash: str, actual_hash: str):
        self.event_id = event_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Event chain broken at {event_id}: "
            f"expected {expected_hash}, found {actual_hash}"
        )


class UnknownEventTypeError(AuditError):
    """A stored event carries a type tag with no registered variant."""

    code: str = "UNKNOWN_EVENT_TYPE"

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(f"No event variant registered for {event_type}")
