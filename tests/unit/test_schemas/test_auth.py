"""Tests for operator account and shared pagination schemas."""

import pytest
from pydantic import ValidationError

from ballot_api.schemas.auth import TokenResponse, UserCreateRequest
from ballot_api.schemas.common import ErrorResponse, PaginationParams


def _account(**overrides: str) -> dict:
    fields = {"username": "observer", "email": "observer@example.org", "password": "longpassword", "role": "viewer"}
    return fields | overrides


class TestUserCreateRequest:
    @pytest.mark.parametrize("role", ["admin", "viewer"])
    def test_operator_roles(self, role: str) -> None:
        assert UserCreateRequest(**_account(role=role)).role == role

    @pytest.mark.parametrize(
        "overrides",
        [
            {"role": "analyst"},
            {"role": "superadmin"},
            {"email": "not-an-email"},
            {"password": "short"},
            {"username": "ab"},
        ],
    )
    def test_rejected(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            UserCreateRequest(**_account(**overrides))


class TestTokenResponse:
    def test_bearer_by_default(self) -> None:
        assert TokenResponse(access_token="a", refresh_token="r", expires_in=1800).token_type == "bearer"


class TestPagination:
    def test_defaults(self) -> None:
        params = PaginationParams()
        assert (params.page, params.page_size) == (1, 20)

    @pytest.mark.parametrize("overrides", [{"page": 0}, {"page_size": 0}, {"page_size": 101}])
    def test_bounds(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            PaginationParams(**overrides)


class TestErrorResponse:
    def test_domain_error_shape(self) -> None:
        body = ErrorResponse(detail="Voting is closed", code="phase_violation")
        assert body.model_dump(exclude_none=True) == {"detail": "Voting is closed", "code": "phase_violation"}
