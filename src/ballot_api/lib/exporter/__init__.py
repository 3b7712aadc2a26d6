"""Registry export: the CSV writer and the summary returned to callers."""

from dataclasses import dataclass
from pathlib import Path

from ballot_api.lib.exporter.csv_writer import DEFAULT_COLUMNS, write_csv


@dataclass
class ExportResult:
    """Where an export was written and how much it holds."""

    record_count: int
    output_path: Path
    file_size_bytes: int


__all__ = [
    "DEFAULT_COLUMNS",
    "ExportResult",
    "write_csv",
]
