"""
Editable field map for inline asset edits.

Every field a caller may edit directly is listed here with its column
attribute, length limit and optional validator.  Anything not in
``EDITABLE_FIELDS`` is rejected, which keeps the asset tag, lifecycle fields,
shipment stamps and audit columns out of reach of inline edits.
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Callable

from asset_kernel.domain.policy import WorkflowPolicy
from asset_kernel.exceptions import FieldValidationError, UnknownFieldError

MAC_ADDRESS_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}[:-]){5}([0-9A-Fa-f]{2})$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

Validator = Callable[[str, str, WorkflowPolicy], str]


def _validate_location(field_name: str, value: str, policy: WorkflowPolicy) -> str:
    upper = value.upper()
    if upper not in policy.known_sites:
        raise FieldValidationError(
            field_name,
            value,
            f"unknown location; valid locations: {', '.join(sorted(policy.known_sites))}",
        )
    return upper


def _validate_status(field_name: str, value: str, policy: WorkflowPolicy) -> str:
    if value not in policy.asset_statuses:
        raise FieldValidationError(
            field_name,
            value,
            f"invalid status; valid statuses: {', '.join(sorted(policy.asset_statuses))}",
        )
    return value


def _validate_ip_address(field_name: str, value: str, policy: WorkflowPolicy) -> str:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        raise FieldValidationError(field_name, value, "invalid IP address format") from None
    return value


def _validate_mac_address(field_name: str, value: str, policy: WorkflowPolicy) -> str:
    if not MAC_ADDRESS_PATTERN.match(value):
        raise FieldValidationError(
            field_name, value, "invalid MAC address format (use XX:XX:XX:XX:XX:XX)"
        )
    return value


def _validate_email(field_name: str, value: str, policy: WorkflowPolicy) -> str:
    if not EMAIL_PATTERN.match(value):
        raise FieldValidationError(field_name, value, "invalid email format")
    return value


@dataclass(frozen=True)
class FieldSpec:
    attribute: str
    max_length: int = 255
    validator: Validator | None = None
    required: bool = False


def _spec(attribute: str, **kwargs) -> tuple[str, FieldSpec]:
    return attribute, FieldSpec(attribute=attribute, **kwargs)


EDITABLE_FIELDS: dict[str, FieldSpec] = dict([
    _spec("serial_number", max_length=100),
    _spec("service_tag", max_length=100),
    _spec("manufacturer", max_length=100),
    _spec("model", max_length=100),
    _spec("category", max_length=100),
    _spec("net_name", max_length=100),
    _spec("assigned_user_name"),
    _spec("assigned_user_email", validator=_validate_email),
    _spec("manager"),
    _spec("department"),
    _spec("unit"),
    _spec("location", validator=_validate_location),
    _spec("floor"),
    _spec("desk"),
    _spec("status", max_length=50, validator=_validate_status, required=True),
    _spec("ip_address", max_length=45, validator=_validate_ip_address),
    _spec("mac_address", max_length=17, validator=_validate_mac_address),
    _spec("wall_port", max_length=50),
    _spec("switch_name", max_length=100),
    _spec("switch_port", max_length=50),
    _spec("phone_number", max_length=50),
    _spec("extension", max_length=20),
    _spec("imei", max_length=50),
    _spec("card_number", max_length=50),
    _spec("os_version", max_length=100),
    _spec("license1"),
    _spec("license2"),
    _spec("license3"),
    _spec("license4"),
    _spec("license5"),
    _spec("order_number", max_length=100),
    _spec("vendor"),
    _spec("vendor_invoice", max_length=100),
    _spec("notes", max_length=4000),
])


def normalize_field_value(
    field_name: str,
    value: str | None,
    policy: WorkflowPolicy,
) -> tuple[FieldSpec, str | None]:
    """
    Validate a proposed value for an editable field.

    Blank values clear the field unless the field is required.

    Returns:
        The field spec and the value to store.

    Raises:
        UnknownFieldError: If the field is not editable.
        FieldValidationError: If the value is rejected.
    """
    spec = EDITABLE_FIELDS.get(field_name)
    if spec is None:
        raise UnknownFieldError(field_name)

    if value is None or not value.strip():
        if spec.required:
            raise FieldValidationError(field_name, value, "a value is required")
        return spec, None

    value = value.strip()
    if len(value) > spec.max_length:
        raise FieldValidationError(
            field_name, value, f"cannot exceed {spec.max_length} characters"
        )
    if spec.validator is not None:
        value = spec.validator(field_name, value, policy)
    return spec, value


# Fields accepted when a record is first registered: every editable field
# plus placement, procurement and prior-deployment columns.
REGISTRATION_FIELDS: frozenset[str] = frozenset(EDITABLE_FIELDS) | {
    "current_site",
    "current_storage_location",
    "current_desk",
    "purchase_price",
    "purchase_date",
    "warranty_start",
    "warranty_end_date",
    "deployed_to_user",
    "deployed_to_email",
}
