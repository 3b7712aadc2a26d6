"""One-time code generation and expiry arithmetic.

The countdown a client displays and the expiry check applied at verification
both derive from the stored ``issued_at``, so they cannot disagree.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

CODE_LENGTH = 6
_CODE_SPACE = 10**CODE_LENGTH


class OtcPurpose(StrEnum):
    """Which portal flow a code was issued for; selects the message template."""

    REGISTRATION = "registration"
    VOTING_LOGIN = "voting_login"


_MESSAGE_TEMPLATES: dict[OtcPurpose, str] = {
    OtcPurpose.REGISTRATION: "Your Verification Code for {title} is: {code}. Valid for {minutes} minutes.",
    OtcPurpose.VOTING_LOGIN: "SECURE LOGIN: Your Access Code for voting is {code}. Valid for {minutes} minutes.",
}


def generate_code() -> str:
    """Generate a uniformly random, zero-padded 6-digit code from the OS CSPRNG."""
    return str(secrets.randbelow(_CODE_SPACE)).zfill(CODE_LENGTH)


def is_well_formed(code: str) -> bool:
    """Whether ``code`` is exactly six ASCII digits."""
    return len(code) == CODE_LENGTH and code.isascii() and code.isdigit()


def render_message(purpose: OtcPurpose, code: str, *, election_title: str, expiry: timedelta) -> str:
    """Render the SMS text for a code.

    Args:
        purpose: Flow the code belongs to.
        code: The one-time code.
        election_title: Title shown in registration messages.
        expiry: Validity window.

    Returns:
        The message body.
    """
    minutes = max(1, int(expiry.total_seconds() // 60))
    return _MESSAGE_TEMPLATES[purpose].format(title=election_title, code=code, minutes=minutes)


@dataclass(frozen=True)
class OtcChallenge:
    """An outstanding one-time code. At most one exists per voter."""

    code: str
    issued_at: datetime

    def expires_at(self, window: timedelta) -> datetime:
        return self.issued_at + window

    def is_expired(self, now: datetime, window: timedelta) -> bool:
        """True once strictly more than ``window`` has elapsed since issuance."""
        return now - self.issued_at > window

    def seconds_remaining(self, now: datetime, window: timedelta) -> int:
        """Whole seconds left before expiry, never negative."""
        remaining = (self.expires_at(window) - now).total_seconds()
        return max(0, int(remaining))
