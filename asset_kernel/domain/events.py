"""
Typed asset event variants.

Responsibility:
    Every entry in the event log is one of the variants below.  Services build
    variants, the EventLog encodes them to a JSON payload plus a type tag, and
    history reads decode them back to the same variant.  Callers never handle
    raw payload dicts.

Architecture position:
    Kernel > Domain -- pure, no I/O.

Type tags:
    StateChanged is tagged ``StateChanged_{new_state}`` (for example
    ``StateChanged_Deployed``); every other variant uses its class name.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar

from asset_kernel.domain.contexts import decode_context, encode_context
from asset_kernel.domain.lifecycle import LifecycleState
from asset_kernel.exceptions import UnknownEventTypeError

STATE_CHANGED_PREFIX = "StateChanged_"


@dataclass(frozen=True)
class AssetEventBody:
    """Base for all event variants."""

    EVENT_TYPE: ClassVar[str] = ""

    @property
    def event_type(self) -> str:
        return self.EVENT_TYPE

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        for key, value in payload.items():
            if isinstance(value, tuple):
                payload[key] = list(value)
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AssetEventBody":
        values = {}
        for f in fields(cls):
            if f.name in payload:
                value = payload[f.name]
                values[f.name] = tuple(value) if isinstance(value, list) else value
        return cls(**values)


@dataclass(frozen=True)
class AssetRegistered(AssetEventBody):
    EVENT_TYPE: ClassVar[str] = "AssetRegistered"

    lifecycle_state: str
    current_site: str | None = None


@dataclass(frozen=True)
class StateChanged(AssetEventBody):
    """One successful lifecycle transition; ``context`` is the typed context used."""

    old_state: LifecycleState
    new_state: LifecycleState
    context: Any = None

    @property
    def event_type(self) -> str:
        return f"{STATE_CHANGED_PREFIX}{self.new_state.value}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "old_state": self.old_state.value,
            "new_state": self.new_state.value,
            "context": encode_context(self.context),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "StateChanged":
        return cls(
            old_state=LifecycleState(payload["old_state"]),
            new_state=LifecycleState(payload["new_state"]),
            context=decode_context(payload.get("context")),
        )


@dataclass(frozen=True)
class LocationReassignedAfterDelivery(AssetEventBody):
    EVENT_TYPE: ClassVar[str] = "LocationReassignedAfterDelivery"

    previous_location: str | None
    previous_floor: str | None
    previous_desk: str | None
    location: str
    floor: str
    desk: str | None


@dataclass(frozen=True)
class Replaced(AssetEventBody):
    """Recorded on the new asset; references the asset it replaced."""

    EVENT_TYPE: ClassVar[str] = "Replaced"

    replaced_asset_tag: str
    desk: str
    user_name: str | None = None
    user_email: str | None = None


@dataclass(frozen=True)
class ReplacedBy(AssetEventBody):
    """Recorded on the old asset; references its replacement."""

    EVENT_TYPE: ClassVar[str] = "ReplacedBy"

    replacement_asset_tag: str
    disposition: str


@dataclass(frozen=True)
class TransferCreated(AssetEventBody):
    EVENT_TYPE: ClassVar[str] = "TransferCreated"

    transfer_id: str
    from_site: str
    to_site: str
    from_storage_bin: str | None = None
    to_storage_bin: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None


@dataclass(frozen=True)
class TransferShipped(AssetEventBody):
    EVENT_TYPE: ClassVar[str] = "TransferShipped"

    transfer_id: str
    to_site: str
    carrier: str | None = None
    tracking_number: str | None = None


@dataclass(frozen=True)
class TransferReceived(AssetEventBody):
    EVENT_TYPE: ClassVar[str] = "TransferReceived"

    transfer_id: str
    to_site: str
    location: str
    received_by: str


@dataclass(frozen=True)
class AddedToSalvageBatch(AssetEventBody):
    EVENT_TYPE: ClassVar[str] = "AddedToSalvageBatch"

    batch_id: str
    batch_code: str


@dataclass(frozen=True)
class SalvageBatchFinalized(AssetEventBody):
    """Batch-level event; not attached to a single asset."""

    EVENT_TYPE: ClassVar[str] = "SalvageBatchFinalized"

    batch_id: str
    batch_code: str
    manifest_number: str
    picked_up_at: str
    asset_tags: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FieldUpdated(AssetEventBody):
    EVENT_TYPE: ClassVar[str] = "FieldUpdated"

    field_name: str
    old_value: str | None
    new_value: str | None


_REGISTRY: dict[str, type[AssetEventBody]] = {
    cls.EVENT_TYPE: cls
    for cls in (
        AssetRegistered,
        LocationReassignedAfterDelivery,
        Replaced,
        ReplacedBy,
        TransferCreated,
        TransferShipped,
        TransferReceived,
        AddedToSalvageBatch,
        SalvageBatchFinalized,
        FieldUpdated,
    )
}


def event_variant_for(event_type: str) -> type[AssetEventBody]:
    """
    Resolve a stored type tag to its variant class.

    Raises:
        UnknownEventTypeError: If no variant is registered for the tag.
    """
    if event_type.startswith(STATE_CHANGED_PREFIX):
        state = event_type[len(STATE_CHANGED_PREFIX):]
        if state in {s.value for s in LifecycleState}:
            return StateChanged
        raise UnknownEventTypeError(event_type)
    try:
        return _REGISTRY[event_type]
    except KeyError:
        raise UnknownEventTypeError(event_type) from None


def decode_event(event_type: str, payload: dict[str, Any]) -> AssetEventBody:
    """Decode a stored payload back to its typed variant."""
    return event_variant_for(event_type).from_payload(payload)
