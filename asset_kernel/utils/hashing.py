"""
Event log hashing.

A stored event is verified from its own columns: the payload JSON is
re-canonicalized and re-hashed, then folded into the chain hash together
with the sequence number, subject, event type and the previous link.
Nothing outside the ``asset_events`` row is needed to check it.
"""

import hashlib
import json
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

GENESIS_MARKER = "GENESIS"

_FIELD_SEPARATOR = "|"


def _encode_value(obj: Any) -> Any:
    # Decimal("2.50") and Decimal("2.5") must hash alike.
    if isinstance(obj, Decimal):
        return str(obj.normalize())
    if isinstance(obj, date):  # datetime is a date subclass
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Cannot canonicalize {type(obj).__name__} for hashing")


def canonicalize_json(data: Any) -> str:
    """Compact JSON with sorted keys; the same data always gives the same text."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=_encode_value)


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_payload(payload: dict) -> str:
    return _sha256(canonicalize_json(payload))


def hash_event(
    seq: int,
    subject: str,
    event_type: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Chain hash of one event.

    ``subject`` is the asset tag, or ``batch:<id>`` for batch-level events.
    The first event in the log links to ``GENESIS`` instead of a hash.
    """
    link = prev_hash or GENESIS_MARKER
    return _sha256(_FIELD_SEPARATOR.join((str(seq), subject, event_type, payload_hash, link)))
