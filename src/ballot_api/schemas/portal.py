"""Member portal schemas: code requests, verification and voting login."""

from datetime import datetime

from pydantic import BaseModel, Field

from ballot_api.lib.otc import CODE_LENGTH


class CodeRequest(BaseModel):
    membership_id: str = Field(min_length=1, max_length=64)


class RegistrationVerifyRequest(BaseModel):
    membership_id: str = Field(min_length=1, max_length=64)
    code: str = Field(min_length=CODE_LENGTH, max_length=CODE_LENGTH)
    voting_location: str = Field(min_length=1, max_length=100)


class LoginVerifyRequest(BaseModel):
    membership_id: str = Field(min_length=1, max_length=64)
    code: str = Field(min_length=CODE_LENGTH, max_length=CODE_LENGTH)


class CodeIssuedResponse(BaseModel):
    """Where the code went and how long it is valid.

    ``relay_message`` is only present when the election runs without SMS
    credentials; the operator passes it on to the member.
    """

    name: str
    masked_phone: str
    expires_at: datetime
    seconds_remaining: int
    delivered: bool
    simulated: bool = False
    relay_message: str | None = None


class RegistrationCompleteResponse(BaseModel):
    membership_id: str
    name: str
    status: str
    voting_location: str
    verified_at: datetime


class VoterSessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Session token expiration in seconds")
