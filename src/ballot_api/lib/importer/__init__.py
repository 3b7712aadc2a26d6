"""Importer library public API.

Provides voter registry CSV parsing and row validation.
"""

from ballot_api.lib.importer.parser import MIN_COLUMNS, VOTER_COLUMNS, parse_voter_csv
from ballot_api.lib.importer.validator import (
    is_valid_phone,
    normalize_membership_id,
    validate_batch,
    validate_record,
)

__all__ = [
    "MIN_COLUMNS",
    "VOTER_COLUMNS",
    "is_valid_phone",
    "normalize_membership_id",
    "parse_voter_csv",
    "validate_batch",
    "validate_record",
]
