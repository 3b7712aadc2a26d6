"""Tests for password hashing, JWTs, and anonymized voter tokens."""

import jwt as pyjwt
import pytest

from ballot_api.core.security import (
    VOTER_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    create_voter_session_token,
    decode_token,
    derive_voter_token,
    hash_password,
    verify_password,
)

SECRET = "test-secret-key-for-testing-32chars"


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong", hashed)


class TestTokens:
    """JWT creation and validation."""

    def test_access_token_claims(self) -> None:
        payload = decode_token(create_access_token("admin", "admin", SECRET), SECRET)
        assert payload["sub"] == "admin"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"

    def test_refresh_token_type(self) -> None:
        assert decode_token(create_refresh_token("admin", SECRET), SECRET)["type"] == "refresh"

    def test_voter_session_token(self) -> None:
        payload = decode_token(create_voter_session_token("abc", SECRET), SECRET)
        assert payload["sub"] == "abc"
        assert payload["type"] == VOTER_TOKEN_TYPE
        assert "role" not in payload

    def test_expired_token_rejected(self) -> None:
        token = create_voter_session_token("abc", SECRET, expires_minutes=-1)
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_token(token, SECRET)

    def test_wrong_secret_rejected(self) -> None:
        token = create_access_token("admin", "admin", SECRET)
        with pytest.raises(pyjwt.InvalidSignatureError):
            decode_token(token, "another-secret-key-for-testing-32c")


class TestDeriveVoterToken:
    def test_deterministic_per_key(self) -> None:
        assert derive_voter_token("voter-1", SECRET) == derive_voter_token("voter-1", SECRET)

    def test_differs_by_voter_and_key(self) -> None:
        token = derive_voter_token("voter-1", SECRET)
        assert token != derive_voter_token("voter-2", SECRET)
        assert token != derive_voter_token("voter-1", "other-key")

    def test_does_not_contain_voter_id(self) -> None:
        token = derive_voter_token("voter-1", SECRET)
        assert len(token) == 64
        assert "voter-1" not in token
