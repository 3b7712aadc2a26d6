"""Tests for the registry CSV writer."""

import csv
from pathlib import Path

from ballot_api.lib.exporter import DEFAULT_COLUMNS, write_csv
from ballot_api.lib.exporter.csv_writer import _sanitize_cell


class TestSanitizeCell:
    def test_formula_prefixes_quoted(self) -> None:
        assert _sanitize_cell("=SUM(A1)") == "'=SUM(A1)"
        assert _sanitize_cell("+254712345678") == "'+254712345678"
        assert _sanitize_cell("@cmd") == "'@cmd"

    def test_plain_values_untouched(self) -> None:
        assert _sanitize_cell("Jane") == "Jane"
        assert _sanitize_cell("") == ""
        assert _sanitize_cell(5) == 5


class TestWriteCsv:
    """Tests for write_csv."""

    def test_writes_header_and_rows(self, tmp_path: Path) -> None:
        output = tmp_path / "nested" / "voters.csv"
        records = [
            {"membership_id": "MEM001", "name": "Jane", "phone": "0712345678", "status": "VERIFIED"},
            {"membership_id": "MEM002", "name": "=HYPERLINK()", "status": "UNVERIFIED"},
        ]

        count = write_csv(output, records)

        assert count == 2
        with output.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == list(DEFAULT_COLUMNS.values())
        assert rows[1][0] == "MEM001"
        assert rows[1][6] == "VERIFIED"
        assert rows[2][1] == "'=HYPERLINK()"
        assert rows[2][3] == ""

    def test_custom_columns(self, tmp_path: Path) -> None:
        output = tmp_path / "ids.csv"
        write_csv(output, [{"membership_id": "MEM001", "name": "Jane"}], columns={"membership_id": "ID"})
        assert output.read_text(encoding="utf-8").splitlines() == ["ID", "MEM001"]

    def test_empty_registry(self, tmp_path: Path) -> None:
        output = tmp_path / "empty.csv"
        assert write_csv(output, []) == 0
        assert output.read_text(encoding="utf-8").startswith("MembershipID,Name")
