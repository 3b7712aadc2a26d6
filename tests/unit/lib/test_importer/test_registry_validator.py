"""Tests for voter registry row validation."""

import pytest

from ballot_api.lib.importer import is_valid_phone, normalize_membership_id, validate_batch, validate_record


class TestIsValidPhone:
    @pytest.mark.parametrize("phone", ["0712345678", "0112345678", "+254712345678", "254712345678", "0712 345-678"])
    def test_valid(self, phone: str) -> None:
        assert is_valid_phone(phone)

    @pytest.mark.parametrize("phone", ["12345", "0812345678", "+1 555 123 4567", "07123456789"])
    def test_invalid(self, phone: str) -> None:
        assert not is_valid_phone(phone)


class TestNormalizeMembershipId:
    def test_case_and_whitespace(self) -> None:
        assert normalize_membership_id("  Mem-001 ") == "mem-001"


class TestValidateRecord:
    """Tests for validate_record."""

    def test_valid_record(self) -> None:
        ok, errors = validate_record({"membership_id": "MEM001", "name": "Jane", "phone": "0712345678"})
        assert ok
        assert errors == []

    def test_phone_is_optional(self) -> None:
        ok, _ = validate_record({"membership_id": "MEM001", "name": "Jane", "phone": ""})
        assert ok

    def test_missing_name(self) -> None:
        ok, errors = validate_record({"membership_id": "MEM001", "name": "  "})
        assert not ok
        assert "Missing required field: name" in errors

    def test_bad_membership_id(self) -> None:
        ok, errors = validate_record({"membership_id": "M!", "name": "Jane"})
        assert not ok
        assert any("Invalid membership ID" in e for e in errors)

    def test_bad_phone(self) -> None:
        ok, errors = validate_record({"membership_id": "MEM001", "name": "Jane", "phone": "123"})
        assert not ok
        assert errors == ["Invalid phone number: '123'"]


class TestValidateBatch:
    def test_splits_valid_and_failed(self) -> None:
        valid, failed = validate_batch(
            [
                {"membership_id": "MEM001", "name": "Jane"},
                {"membership_id": "", "name": "Nobody"},
            ]
        )
        assert len(valid) == 1
        assert len(failed) == 1
        assert failed[0]["_errors"] == ["Missing required field: membership_id"]
