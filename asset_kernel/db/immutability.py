"""
ORM-level immutability enforcement.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | When immutable                  | Operations blocked
----------------|---------------------------------|---------------------
AssetEvent      | Always (from creation)          | UPDATE, DELETE
AssetTransfer   | Always                          | DELETE
SalvageBatch    | Always / after finalized_at set | DELETE / UPDATE
Asset           | After lifecycle_state=Salvaged  | UPDATE

SQLAlchemy fires ``before_update`` / ``before_delete`` before any SQL is
emitted.  A failed check raises ImmutabilityViolationError, the flush aborts
and the database is never touched.

The transition INTO a sealed state is allowed (it is how records get
sealed); the checks look at attribute history to see what the row was
before this flush.

===============================================================================
USAGE
===============================================================================

    from asset_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from asset_kernel.exceptions import ImmutabilityViolationError
from asset_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _changed_columns(target) -> list[str]:
    """Column attributes with a net change pending in this flush."""
    state = inspect(target)
    changed = []
    for attr in state.mapper.column_attrs:
        if state.attrs[attr.key].history.has_changes():
            changed.append(attr.key)
    return changed


def _value_before_flush(target, key: str):
    history = get_history(target, key)
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    # Attribute newly set on a previously-None column
    return None


def _blocked(entity_type: str, target, operation: str, reason: str) -> ImmutabilityViolationError:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_asset_event_update(mapper, connection, target):
    raise _blocked("AssetEvent", target, "UPDATE", "Asset events are append-only")


def _check_asset_event_delete(mapper, connection, target):
    raise _blocked("AssetEvent", target, "DELETE", "Asset events are append-only")


def _check_transfer_delete(mapper, connection, target):
    raise _blocked("AssetTransfer", target, "DELETE", "Transfers are never deleted")


def _check_salvage_batch_delete(mapper, connection, target):
    raise _blocked("SalvageBatch", target, "DELETE", "Salvage batches are never deleted")


def _check_salvage_batch_update(mapper, connection, target):
    """Sealed batches accept no column changes; sealing itself is allowed."""
    changed = _changed_columns(target)
    if not changed:
        return
    if _value_before_flush(target, "finalized_at") is None:
        return
    raise _blocked(
        "SalvageBatch",
        target,
        "UPDATE",
        f"Batch {target.batch_code} is finalized; attempted to change {sorted(changed)}",
    )


def _check_asset_update(mapper, connection, target):
    """Salvaged assets are read-only; the move into Salvaged is allowed."""
    from asset_kernel.domain.lifecycle import LifecycleState

    changed = _changed_columns(target)
    if not changed:
        return
    before = _value_before_flush(target, "lifecycle_state")
    if before is None or LifecycleState(before) != LifecycleState.SALVAGED:
        return
    raise _blocked(
        "Asset",
        target,
        "UPDATE",
        f"Asset {target.asset_tag} is salvaged; attempted to change {sorted(changed)}",
    )


def _listeners():
    from asset_kernel.models.asset import Asset
    from asset_kernel.models.asset_event import AssetEvent
    from asset_kernel.models.salvage_batch import SalvageBatch
    from asset_kernel.models.transfer import AssetTransfer

    return (
        (AssetEvent, "before_update", _check_asset_event_update),
        (AssetEvent, "before_delete", _check_asset_event_delete),
        (AssetTransfer, "before_delete", _check_transfer_delete),
        (SalvageBatch, "before_update", _check_salvage_batch_update),
        (SalvageBatch, "before_delete", _check_salvage_batch_delete),
        (Asset, "before_update", _check_asset_update),
    )


def register_immutability_listeners():
    """Register all immutability enforcement event listeners (idempotent)."""
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that deliberately violate the rules.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
