"""Voter record validation rules.

Validates required fields and format constraints for registry rows.
"""

import re
from typing import Any

MEMBERSHIP_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{3,}$")

# Kenyan mobile numbers: 07XX/01XX local form or 254/+254 international form
PHONE_PATTERN = re.compile(r"^(\+?254|0)(7|1)\d{8}$")

REQUIRED_FIELDS = ["membership_id", "name"]


def normalize_membership_id(membership_id: str) -> str:
    """Lookup key for a membership id: trimmed and lower-cased."""
    return membership_id.strip().lower()


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(re.sub(r"[\s-]", "", phone)))


def validate_record(record: dict[str, Any]) -> tuple[bool, list[str]]:
    """Validate a single voter record.

    Args:
        record: Dictionary of voter field name -> value.

    Returns:
        Tuple of (is_valid, list of error messages).
    """
    errors: list[str] = []

    for field in REQUIRED_FIELDS:
        value = record.get(field)
        if value is None or (isinstance(value, str) and value.strip() == ""):
            errors.append(f"Missing required field: {field}")

    membership_id = (record.get("membership_id") or "").strip()
    if membership_id and not MEMBERSHIP_ID_PATTERN.match(membership_id):
        errors.append(f"Invalid membership ID: {membership_id!r} (letters, digits and hyphens, at least 3)")

    phone = (record.get("phone") or "").strip()
    if phone and not is_valid_phone(phone):
        errors.append(f"Invalid phone number: {phone!r}")

    return len(errors) == 0, errors


def validate_batch(records: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Validate a batch of voter records.

    Args:
        records: List of voter record dictionaries.

    Returns:
        Tuple of (valid_records, failed_records with ``_errors`` attached).
    """
    valid = []
    failed = []

    for record in records:
        is_valid, errors = validate_record(record)
        if is_valid:
            valid.append(record)
        else:
            failed.append({**record, "_errors": errors})

    return valid, failed
