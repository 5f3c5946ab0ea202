"""
Field validation for ABN records and names.

Each entity has one explicit validation function that takes the full
candidate document (snake_case keys, as stored) and returns an
ordered list of ``FieldError``.  Field names in the messages use the
camelCase wire names so clients can map them onto their payload.
Services call ``ensure_valid`` before touching a store.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, List, Mapping, Optional

from abn_registry_api.app.core.exceptions import FieldError, ValidationFailed

ABN_PATTERN = re.compile(r"\d{11}", re.ASCII)
ACN_PATTERN = re.compile(r"\d{9}", re.ASCII)

RECORD_STATUSES = ("Active", "Cancelled")
GST_STATUSES = ("Registered", "Cancelled")
NAME_TYPES = ("TradingName", "BusinessName", "LegalName", "Other")

NAME_MAX_LENGTH = 500
SEARCH_TERM_MAX_LENGTH = 100

# (column, wire name, max length)
_BOUNDED_RECORD_FIELDS = (
    ("entity_type_code", "entityTypeCode", 10),
    ("entity_type_text", "entityTypeText", 100),
    ("state", "state", 10),
    ("postcode", "postcode", 10),
)


def is_valid_abn(value: Any) -> bool:
    return isinstance(value, str) and bool(ABN_PATTERN.fullmatch(value))


def _is_iso_date(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def _check_abn(value: Any, errors: List[FieldError]) -> None:
    if value in (None, ""):
        errors.append(FieldError("abn", "ABN is required"))
    elif not is_valid_abn(value):
        errors.append(FieldError("abn", "ABN must be exactly 11 digits"))


def _check_choice(value: Optional[str], field: str, choices: tuple, errors: List[FieldError]) -> None:
    if value is not None and value not in choices:
        errors.append(FieldError(field, f"{field} must be one of: {', '.join(choices)}"))


def validate_abn_record(doc: Mapping[str, Any]) -> List[FieldError]:
    """Return every constraint violation of a record document."""
    errors: List[FieldError] = []
    _check_abn(doc.get("abn"), errors)
    _check_choice(doc.get("status"), "status", RECORD_STATUSES, errors)

    for column, wire_name in (("abn_status_from_date", "abnStatusFromDate"), ("gst_from_date", "gstFromDate")):
        value = doc.get(column)
        if value is not None and not _is_iso_date(value):
            errors.append(FieldError(wire_name, f"{wire_name} must be an ISO 8601 date"))

    for column, wire_name, max_length in _BOUNDED_RECORD_FIELDS:
        value = doc.get(column)
        if value is not None and len(value) > max_length:
            errors.append(FieldError(wire_name, f"{wire_name} cannot exceed {max_length} characters"))

    if not doc.get("legal_name") and not doc.get("organisation_name"):
        message = "Either legalName or organisationName is required"
        errors.append(FieldError("legalName", message))
        errors.append(FieldError("organisationName", message))

    acn = doc.get("acn")
    if acn not in (None, "") and not ACN_PATTERN.fullmatch(acn):
        errors.append(FieldError("acn", "ACN must be exactly 9 digits"))

    _check_choice(doc.get("gst_status"), "gstStatus", GST_STATUSES, errors)
    return errors


def validate_abn_name(doc: Mapping[str, Any]) -> List[FieldError]:
    """Return every constraint violation of a name document.

    ``name`` is expected to be trimmed already.
    """
    errors: List[FieldError] = []
    _check_abn(doc.get("abn"), errors)

    name = doc.get("name")
    if not name:
        errors.append(FieldError("name", "Name is required"))
    elif len(name) > NAME_MAX_LENGTH:
        errors.append(FieldError("name", f"Name must be between 1 and {NAME_MAX_LENGTH} characters"))

    if doc.get("type") is None:
        errors.append(FieldError("type", "Name type is required"))
    else:
        _check_choice(doc.get("type"), "type", NAME_TYPES, errors)
    return errors


def validate_search_term(term: str) -> List[FieldError]:
    if not term or len(term) > SEARCH_TERM_MAX_LENGTH:
        return [FieldError("term", f"Search term must be between 1 and {SEARCH_TERM_MAX_LENGTH} characters")]
    return []


def ensure_valid(errors: List[FieldError]) -> None:
    """Raise ``ValidationFailed`` when ``errors`` is not empty."""
    if errors:
        raise ValidationFailed(errors)


def ensure_abn_param(abn: str) -> None:
    """Reject malformed ABN path parameters before querying a store."""
    if not is_valid_abn(abn):
        raise ValidationFailed([FieldError("abn", "ABN must be exactly 11 digits")])
