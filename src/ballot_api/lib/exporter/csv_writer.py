"""CSV export writer for the voter registry."""

import csv
from collections.abc import Iterable
from pathlib import Path
from typing import Any

# Characters that trigger formula execution in spreadsheet applications
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")

# Field name -> column header, in output order
DEFAULT_COLUMNS: dict[str, str] = {
    "membership_id": "MembershipID",
    "name": "Name",
    "phone": "Phone",
    "ward": "Ward",
    "constituency": "Constituency",
    "county": "County",
    "status": "Status",
}


def _sanitize_cell(value: object) -> object:
    """Prefix values starting with a formula character with a single quote.

    Phone numbers in international form (``+254...``) are quoted too; spreadsheet
    applications display them unchanged.
    """
    if isinstance(value, str) and value and value[0] in _FORMULA_PREFIXES:
        return f"'{value}"
    return value


def write_csv(
    output_path: Path,
    records: Iterable[dict[str, Any]],
    *,
    columns: dict[str, str] | None = None,
) -> int:
    """Write voter records to a CSV file.

    Args:
        output_path: Path to write the CSV file.
        records: Iterable of voter record dicts keyed by field name.
        columns: Field name to header mapping. Defaults to DEFAULT_COLUMNS.

    Returns:
        Number of records written.
    """
    cols = columns or DEFAULT_COLUMNS
    count = 0

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(cols.values())
        for record in records:
            writer.writerow(_sanitize_cell(record.get(field, "")) for field in cols)
            count += 1

    return count
