"""Voter registry CSV parser with delimiter/encoding detection and chunked reading.

Registry files carry a header row followed by positional columns:
MembershipID, Name, Phone, Ward, Constituency, County. Header text is not
trusted; columns are mapped by position, and missing trailing columns are
filled with empty strings.
"""

from collections.abc import Iterator
from pathlib import Path

import pandas as pd
from loguru import logger

# Positional column order of a registry file
VOTER_COLUMNS: list[str] = [
    "membership_id",
    "name",
    "phone",
    "ward",
    "constituency",
    "county",
]

# Rows with fewer populated columns than this are not voter records
MIN_COLUMNS = 3


def detect_encoding(file_path: Path) -> str:
    """Detect file encoding by attempting to read with common encodings.

    Args:
        file_path: Path to the CSV file.

    Returns:
        The detected encoding string.

    Raises:
        ValueError: If encoding cannot be detected.
    """
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            with file_path.open("r", encoding=encoding) as f:
                f.read(8192)
            return encoding
        except UnicodeDecodeError:
            continue
    msg = f"Cannot detect encoding for {file_path}"
    raise ValueError(msg)


def detect_delimiter(file_path: Path, encoding: str = "utf-8-sig") -> str:
    """Detect the CSV delimiter from the header line.

    Comma is assumed when no candidate appears (single-column files).
    """
    with file_path.open("r", encoding=encoding) as f:
        first_line = f.readline()

    counts = {
        ",": first_line.count(","),
        ";": first_line.count(";"),
        "\t": first_line.count("\t"),
    }
    delimiter = max(counts, key=counts.get)  # type: ignore[arg-type]
    if counts[delimiter] == 0:
        return ","
    logger.debug(f"Detected delimiter: {delimiter!r} for {file_path}")
    return delimiter


def parse_voter_csv(
    file_path: Path,
    batch_size: int = 1000,
) -> Iterator[pd.DataFrame]:
    """Parse a registry CSV file in chunks.

    Each chunk carries the positional voter columns plus a ``row_number``
    column (1-based, counting the header as row 1 and skipping blank lines) so validation errors can
    point at the offending line.

    Args:
        file_path: Path to the CSV file.
        batch_size: Number of rows per chunk.

    Yields:
        DataFrame chunks with columns ``row_number`` + VOTER_COLUMNS.

    Raises:
        ValueError: If the file cannot be read.
    """
    encoding = detect_encoding(file_path)
    delimiter = detect_delimiter(file_path, encoding)

    logger.info(f"Parsing {file_path} with delimiter={delimiter!r}, encoding={encoding}, batch_size={batch_size}")

    reader = pd.read_csv(
        file_path,
        sep=delimiter,
        encoding=encoding,
        header=None,
        skiprows=1,
        chunksize=batch_size,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        names=VOTER_COLUMNS,
        index_col=False,
    )

    offset = 0
    for raw in reader:
        chunk = raw.fillna("").apply(lambda column: column.str.strip())
        chunk.insert(0, "row_number", range(offset + 2, offset + 2 + len(chunk)))
        offset += len(raw)
        yield chunk
