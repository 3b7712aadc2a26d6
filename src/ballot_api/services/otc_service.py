"""One-time code challenges and the member portal flows built on them.

Registration: a member in VERIFICATION phase requests a code, submits it with
a voting location, and becomes VERIFIED. Voting login: a VERIFIED member in
VOTING phase requests a code and exchanges it for a short-lived session token.

Code requests are rate limited per phone number and failed submissions per
voter, with process-local sliding windows.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import utc_now
from ballot_api.core.config import Settings
from ballot_api.core.errors import (
    AlreadyVerified,
    AlreadyVoted,
    ExpiredOtc,
    InvalidOtc,
    InvalidVotingLocation,
    NoActiveChallenge,
    NotVerified,
    PhaseViolation,
    RateLimited,
)
from ballot_api.core.logging import mask_phone
from ballot_api.core.security import create_voter_session_token
from ballot_api.lib.messaging import BaseMessageSender, normalize_phone_number
from ballot_api.lib.otc import OtcChallenge, OtcPurpose, SlidingWindowRateLimiter, generate_code, render_message
from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.services.election_service import get_election_state, get_message_sender
from ballot_api.services.voter_service import lookup_voter

_resend_limiter: SlidingWindowRateLimiter | None = None
_attempt_limiter: SlidingWindowRateLimiter | None = None


def get_resend_limiter(settings: Settings) -> SlidingWindowRateLimiter:
    global _resend_limiter  # noqa: PLW0603
    if _resend_limiter is None:
        _resend_limiter = SlidingWindowRateLimiter(settings.otc_resend_max_requests, settings.otc_resend_window_seconds)
    return _resend_limiter


def get_attempt_limiter(settings: Settings) -> SlidingWindowRateLimiter:
    global _attempt_limiter  # noqa: PLW0603
    if _attempt_limiter is None:
        _attempt_limiter = SlidingWindowRateLimiter(settings.otc_verify_max_attempts, settings.otc_resend_window_seconds)
    return _attempt_limiter


def reset_rate_limits() -> None:
    """Drop both limiters; they are rebuilt from settings on next use."""
    global _resend_limiter, _attempt_limiter  # noqa: PLW0603
    _resend_limiter = None
    _attempt_limiter = None


@dataclass
class ChallengeIssued:
    voter_id: str
    issued_at: datetime
    expires_at: datetime
    seconds_remaining: int
    delivered: bool
    simulated: bool = False
    relay_message: str | None = None


@dataclass
class ChallengeVerified:
    voter_id: str
    verified_at: datetime


def _expiry(settings: Settings) -> timedelta:
    return timedelta(seconds=settings.otc_expiry_seconds)


def _phone_key(voter: Voter, settings: Settings) -> str:
    if voter.phone:
        return "phone:" + normalize_phone_number(voter.phone, settings.sms_default_country_code)
    return f"voter:{voter.id}"


async def issue_challenge(
    session: AsyncSession,
    voter: Voter,
    purpose: OtcPurpose,
    *,
    sender: BaseMessageSender,
    settings: Settings,
    election_title: str,
) -> ChallengeIssued:
    """Create a new code for ``voter``, replacing any outstanding one, and send it.

    Every issuance counts against the per-phone request limit. The code is
    committed before delivery; a delivery failure is reported in the result
    and never undoes the issuance.

    Raises:
        RateLimited: If the phone number has requested too many codes.
    """
    limiter = get_resend_limiter(settings)
    key = _phone_key(voter, settings)
    if not limiter.hit(key):
        retry_after = limiter.retry_after(key)
        logger.warning("Code request limit reached for {}", mask_phone(voter.phone))
        raise RateLimited(
            f"Too many code requests. Please wait {int(retry_after) + 1} seconds before trying again.",
            retry_after=retry_after,
        )

    now = utc_now()
    challenge = OtcChallenge(code=generate_code(), issued_at=now)
    voter.challenge = challenge
    await session.commit()

    window = _expiry(settings)
    message = render_message(purpose, challenge.code, election_title=election_title, expiry=window)
    delivery = await sender.send(voter.phone, message)
    logger.info(
        "Issued {} code to {} via {} (delivered={})",
        purpose.value,
        mask_phone(voter.phone),
        delivery.provider,
        delivery.delivered,
    )
    if not delivery.delivered:
        logger.warning(
            "Code for voter {} was not delivered ({}); an operator may verify the member manually",
            voter.id,
            delivery.error,
        )
    return ChallengeIssued(
        voter_id=str(voter.id),
        issued_at=now,
        expires_at=challenge.expires_at(window),
        seconds_remaining=challenge.seconds_remaining(now, window),
        delivered=delivery.delivered,
        simulated=delivery.simulated,
        relay_message=delivery.relay_message if delivery.simulated else None,
    )


async def resend_challenge(
    session: AsyncSession,
    voter: Voter,
    purpose: OtcPurpose,
    *,
    sender: BaseMessageSender,
    settings: Settings,
    election_title: str,
) -> ChallengeIssued:
    """Replace the outstanding code with a fresh one; the previous code stops working.

    A resend is an issuance: first requests and resends draw on the same
    per-phone limit, so alternating between them cannot send more codes.

    Raises:
        RateLimited: If the phone number has requested too many codes.
    """
    logger.debug("Resending {} code for voter {}", purpose.value, voter.id)
    return await issue_challenge(
        session, voter, purpose, sender=sender, settings=settings, election_title=election_title
    )


async def verify_challenge(
    session: AsyncSession,
    voter: Voter,
    submitted_code: str,
    *,
    settings: Settings,
) -> ChallengeVerified:
    """Check ``submitted_code`` and consume the challenge on success.

    The clearing UPDATE is left uncommitted so the caller can commit it
    together with the state change the code authorizes.

    Raises:
        NoActiveChallenge: If no code is outstanding.
        RateLimited: If too many wrong codes were submitted recently.
        ExpiredOtc: If the code is past its validity window.
        InvalidOtc: If the code does not match or was replaced concurrently.
    """
    challenge = voter.challenge
    if challenge is None:
        raise NoActiveChallenge()

    attempts = get_attempt_limiter(settings)
    attempt_key = str(voter.id)
    if attempts.is_limited(attempt_key):
        raise RateLimited(
            "Too many incorrect codes. Please wait before trying again.",
            retry_after=attempts.retry_after(attempt_key),
        )

    now = utc_now()
    if challenge.is_expired(now, _expiry(settings)):
        raise ExpiredOtc()

    if not hmac.compare_digest(submitted_code.strip().encode(), challenge.code.encode()):
        attempts.hit(attempt_key)
        logger.info("Incorrect code submitted for voter {}", voter.id)
        raise InvalidOtc()

    result = await session.execute(
        update(Voter)
        .where(Voter.id == voter.id, Voter.otc_code == challenge.code)
        .values(otc_code=None, otc_issued_at=None)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise InvalidOtc()

    attempts.reset(attempt_key)
    return ChallengeVerified(voter_id=str(voter.id), verified_at=now)


async def _require_phase(session: AsyncSession, phase: ElectionPhase, message: str) -> str:
    state = await get_election_state(session)
    if state.current_phase != phase:
        raise PhaseViolation(message)
    return state.election_title


def _resolve_location(voting_location: str, settings: Settings) -> str:
    """Match ``voting_location`` against the configured list, returning its configured spelling.

    Raises:
        InvalidVotingLocation: If locations are configured and none matches.
    """
    location = voting_location.strip()
    allowed = settings.voting_location_list
    if not allowed:
        if not location:
            raise InvalidVotingLocation("A voting location is required.")
        return location
    for candidate in allowed:
        if candidate.lower() == location.lower():
            return candidate
    raise InvalidVotingLocation(f"Unknown voting location: {location!r}. Choose one of: {', '.join(allowed)}")


async def _send_code(
    session: AsyncSession,
    voter: Voter,
    purpose: OtcPurpose,
    settings: Settings,
) -> ChallengeIssued:
    state = await get_election_state(session)
    sender = get_message_sender(state, settings)
    issue = resend_challenge if voter.challenge is not None else issue_challenge
    return await issue(
        session, voter, purpose, sender=sender, settings=settings, election_title=state.election_title
    )


async def start_registration(
    session: AsyncSession,
    membership_id: str,
    *,
    settings: Settings,
) -> tuple[Voter, ChallengeIssued]:
    """Send a registration code to the member's phone.

    Raises:
        PhaseViolation: If registration is not open.
        VoterNotFound: If the membership id is not in the registry.
        AlreadyVerified: If the member is already VERIFIED or VOTED.
        RateLimited: If too many codes were requested.
    """
    await _require_phase(session, ElectionPhase.VERIFICATION, "Voter registration is not currently open.")
    voter = await lookup_voter(session, membership_id)
    if voter.status != VoterStatus.UNVERIFIED:
        raise AlreadyVerified()
    return voter, await _send_code(session, voter, OtcPurpose.REGISTRATION, settings)


async def complete_registration(
    session: AsyncSession,
    membership_id: str,
    code: str,
    voting_location: str,
    *,
    settings: Settings,
) -> Voter:
    """Verify the registration code and mark the member VERIFIED at ``voting_location``.

    Raises:
        PhaseViolation: If registration is not open.
        VoterNotFound: If the membership id is not in the registry.
        AlreadyVerified: If the member is already VERIFIED or VOTED.
        InvalidVotingLocation: If the location is not one of the configured ones.
        NoActiveChallenge, ExpiredOtc, InvalidOtc, RateLimited: From code verification.
    """
    await _require_phase(session, ElectionPhase.VERIFICATION, "Voter registration is not currently open.")
    voter = await lookup_voter(session, membership_id)
    if voter.status != VoterStatus.UNVERIFIED:
        raise AlreadyVerified()
    location = _resolve_location(voting_location, settings)

    verified = await verify_challenge(session, voter, code, settings=settings)
    result = await session.execute(
        update(Voter)
        .where(Voter.id == voter.id, Voter.status == VoterStatus.UNVERIFIED.value)
        .values(
            status=VoterStatus.VERIFIED.value,
            voting_location=location,
            verified_at=verified.verified_at,
            updated_at=verified.verified_at,
        )
    )
    if result.rowcount == 0:
        await session.rollback()
        raise AlreadyVerified()
    await session.commit()
    await session.refresh(voter)
    logger.info("Voter {} verified at {}", voter.id, location)
    return voter


async def start_voting_login(
    session: AsyncSession,
    membership_id: str,
    *,
    settings: Settings,
) -> tuple[Voter, ChallengeIssued]:
    """Send a voting login code to a VERIFIED member.

    Raises:
        PhaseViolation: If voting is not open.
        VoterNotFound: If the membership id is not in the registry.
        NotVerified: If the member has not completed registration.
        AlreadyVoted: If the member has already cast a ballot.
        RateLimited: If too many codes were requested.
    """
    await _require_phase(session, ElectionPhase.VOTING, "Voting is not currently open.")
    voter = await lookup_voter(session, membership_id)
    _require_can_vote(voter)
    return voter, await _send_code(session, voter, OtcPurpose.VOTING_LOGIN, settings)


async def complete_voting_login(
    session: AsyncSession,
    membership_id: str,
    code: str,
    *,
    settings: Settings,
) -> tuple[Voter, str]:
    """Exchange a voting login code for a voter session token.

    Returns:
        Tuple of (voter, session token).
    """
    await _require_phase(session, ElectionPhase.VOTING, "Voting is not currently open.")
    voter = await lookup_voter(session, membership_id)
    _require_can_vote(voter)

    await verify_challenge(session, voter, code, settings=settings)
    await session.commit()

    token = create_voter_session_token(
        str(voter.id),
        settings.jwt_secret_key,
        settings.jwt_algorithm,
        settings.voter_session_expire_minutes,
    )
    logger.info("Voter {} logged in to vote", voter.id)
    return voter, token


def _require_can_vote(voter: Voter) -> None:
    if voter.status == VoterStatus.VOTED:
        raise AlreadyVoted()
    if voter.status != VoterStatus.VERIFIED:
        raise NotVerified()
