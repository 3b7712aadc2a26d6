"""Voter registry Pydantic v2 schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ballot_api.lib.importer import is_valid_phone
from ballot_api.schemas.common import PaginationMeta

MEMBERSHIP_ID_PATTERN = r"^[A-Za-z0-9-]{3,}$"


def _check_phone(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if value and not is_valid_phone(value):
        msg = "Phone number must be a valid mobile number, e.g. 0712345678 or +254712345678"
        raise ValueError(msg)
    return value


class VoterCreateRequest(BaseModel):
    """Add a single member to the registry."""

    membership_id: str = Field(pattern=MEMBERSHIP_ID_PATTERN, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    phone: str = Field(default="", max_length=32)
    ward: str = Field(default="", max_length=100)
    constituency: str = Field(default="", max_length=100)
    county: str = Field(default="", max_length=100)

    @field_validator("membership_id", "name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Field must not be blank"
            raise ValueError(msg)
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v) or ""


class VoterUpdateRequest(BaseModel):
    """Partial update of contact and demographic fields. Status is not editable."""

    membership_id: str | None = Field(default=None, pattern=MEMBERSHIP_ID_PATTERN, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    phone: str | None = Field(default=None, max_length=32)
    ward: str | None = Field(default=None, max_length=100)
    constituency: str | None = Field(default=None, max_length=100)
    county: str | None = Field(default=None, max_length=100)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return _check_phone(v)


class ManualVerifyRequest(BaseModel):
    voting_location: str | None = Field(default=None, max_length=100)


class VoterResponse(BaseModel):
    """Registry entry as seen by administrators."""

    id: UUID
    membership_id: str
    name: str
    phone: str
    ward: str
    constituency: str
    county: str
    status: str
    voting_location: str | None = None
    verified_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedVoterResponse(BaseModel):
    items: list[VoterResponse]
    pagination: PaginationMeta


class ImportRowError(BaseModel):
    row: int = Field(description="Line number in the uploaded file (header is line 1)")
    membership_id: str | None = None
    reason: str


class ImportSummaryResponse(BaseModel):
    """Outcome of a bulk registry import."""

    imported: int
    skipped: int
    errors: list[ImportRowError]
