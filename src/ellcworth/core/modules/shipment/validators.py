"""Status-dependent field checks for shipment documents."""

from typing import Any

from ellcworth.core.modules.lifecycle.models import ShipmentStatus
from ellcworth.core.modules.lifecycle.policy import required_fields, required_owner_ref
from ellcworth.errors import FieldError, ValidationError
from ellcworth.utils import is_email

EMAIL_FIELDS = ("shipper.email", "consignee.email", "notify.email")


def get_path(data: dict[str, Any], path: str) -> Any:
    """Resolve a dotted path like "shipper.name"; missing segments give None."""
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def collect_field_errors(data: dict[str, Any], status: ShipmentStatus) -> list[FieldError]:
    """Every violation of the rules for `status`, owner first, then the status' fields in order.

    Args:
        data: Shipment content as a plain dict (model_dump of ShipmentData or Shipment)
        status: The status the shipment is about to be stored with

    Returns:
        Empty list when the shipment is acceptable in that status
    """
    errors: list[FieldError] = []

    if required_owner_ref(status) and data.get("owner_ref") is None:
        errors.append(FieldError("owner_ref", f"required for status '{status}'"))

    for path in required_fields(status):
        if not is_present(get_path(data, path)):
            errors.append(FieldError(path, f"required for status '{status}'"))

    # Malformed values are rejected in every status, required or not
    missing = {e.field for e in errors}
    for path in EMAIL_FIELDS:
        value = get_path(data, path)
        if path not in missing and is_present(value) and not is_email(value.strip()):
            errors.append(FieldError(path, f"invalid email address '{value}'"))

    return errors


def validate_for_status(data: dict[str, Any], status: ShipmentStatus) -> None:
    """Raise ValidationError listing every field that blocks `status`."""
    errors = collect_field_errors(data, status)
    if errors:
        raise ValidationError.from_errors(errors)
