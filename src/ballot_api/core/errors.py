"""Domain errors raised by the election engine.

Every error is a recoverable validation failure: it carries a stable
machine-readable ``code`` and the HTTP status the API maps it to, and it is
raised before any state is written (or after the transaction is rolled back).
"""


class ElectionError(ValueError):
    """Base class for election engine validation failures."""

    code: str = "election_error"
    status_code: int = 400
    default_message: str = "Election request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class VoterNotFound(ElectionError):
    code = "not_found"
    status_code = 404
    default_message = "Membership ID not found in the registry."


class CandidateNotFound(ElectionError):
    code = "not_found"
    status_code = 404
    default_message = "Candidate not found."


class NoActiveChallenge(ElectionError):
    code = "no_active_challenge"
    default_message = "No verification code is outstanding. Please request a new one."


class InvalidOtc(ElectionError):
    code = "invalid_otc"
    default_message = "Invalid verification code."


class ExpiredOtc(ElectionError):
    code = "expired_otc"
    default_message = "Verification code has expired. Please request a new one."


class RateLimited(ElectionError):
    """Too many code requests or attempts within the sliding window."""

    code = "rate_limited"
    status_code = 429
    default_message = "Too many requests. Please wait before trying again."

    def __init__(self, message: str | None = None, *, retry_after: float = 0.0) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class PhaseViolation(ElectionError):
    code = "phase_violation"
    status_code = 409
    default_message = "This action is not available in the current election phase."


class PhaseConfirmationRequired(ElectionError):
    """A manual phase change was requested without acknowledging its warning."""

    code = "confirmation_required"
    status_code = 428

    def __init__(self, warning: str) -> None:
        self.warning = warning
        super().__init__(warning)


class NotVerified(ElectionError):
    code = "not_verified"
    status_code = 403
    default_message = "Account not verified. Please complete voter registration first."


class AlreadyVerified(ElectionError):
    code = "already_verified"
    status_code = 409
    default_message = "This member has already completed verification."


class AlreadyVoted(ElectionError):
    code = "already_voted"
    status_code = 409
    default_message = "A ballot has already been cast for this member."


class VoterLocked(ElectionError):
    code = "voter_locked"
    status_code = 409
    default_message = "Voters who have cast a ballot cannot be modified."


class IncompleteBallot(ElectionError):
    """Selections do not cover exactly the voter's eligible positions."""

    code = "incomplete_ballot"
    status_code = 422
    default_message = "Please make exactly one selection for every position."

    def __init__(
        self,
        message: str | None = None,
        *,
        missing: list[str] | None = None,
        unexpected: list[str] | None = None,
        invalid: list[str] | None = None,
    ) -> None:
        self.missing = missing or []
        self.unexpected = unexpected or []
        self.invalid = invalid or []
        super().__init__(message)


class InvalidVotingLocation(ElectionError):
    code = "invalid_voting_location"
    status_code = 422
    default_message = "Unknown voting location."


class DuplicateMembershipId(ElectionError):
    code = "duplicate_membership_id"
    status_code = 409
    default_message = "A voter with this membership ID already exists."


class UserExists(ElectionError):
    code = "user_exists"
    status_code = 409
    default_message = "Username or email already exists."


class UserNotFound(ElectionError):
    code = "not_found"
    status_code = 404
    default_message = "User not found."


class ImportRejected(ElectionError):
    """A strict bulk import found invalid rows; nothing was imported."""

    code = "import_rejected"
    status_code = 422
    default_message = "Import rejected: the file contains invalid or duplicate rows."

    def __init__(self, message: str | None = None, *, errors: list | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)
