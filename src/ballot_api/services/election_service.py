"""Election settings, administrative resets, and results.

The election is a single row (:class:`ElectionState`) created on first use.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import ensure_utc, utc_now
from ballot_api.core.config import Settings
from ballot_api.lib.messaging import BaseMessageSender, create_message_sender
from ballot_api.lib.phase import ElectionPhase, PhaseSchedule
from ballot_api.models.candidate import Candidate
from ballot_api.models.election import (
    DEFAULT_ELECTION_TITLE,
    DEFAULT_ORGANIZATION_NAME,
    ELECTION_STATE_ID,
    ElectionState,
)
from ballot_api.models.user import User
from ballot_api.models.vote import Vote
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.schemas.election import (
    CandidateTally,
    ElectionResultsResponse,
    ElectionSettingsUpdateRequest,
    PositionTally,
)
from ballot_api.services.audit_service import record_action

_SCHEDULE_FIELDS = ("verification_start", "verification_end", "voting_start", "voting_end")


@dataclass
class ResetVotesResult:
    votes_deleted: int
    voters_reverted: int


@dataclass
class FactoryResetResult:
    votes_deleted: int
    voters_deleted: int
    candidates_deleted: int


async def get_election_state(session: AsyncSession) -> ElectionState:
    """Return the election row, creating it with defaults if absent."""
    state = await session.get(ElectionState, ELECTION_STATE_ID)
    if state is None:
        state = ElectionState(id=ELECTION_STATE_ID, phase=ElectionPhase.SETUP.value)
        session.add(state)
        await session.flush()
        logger.info("Initialized election state with defaults")
    return state


async def count_votes(session: AsyncSession) -> int:
    return (await session.execute(select(func.count(Vote.id)))).scalar_one()


def get_message_sender(state: ElectionState, settings: Settings) -> BaseMessageSender:
    """Delivery channel for the configured SMS credentials (simulation when unset)."""
    return create_message_sender(
        state.sms_api_key,
        state.sms_sender_id or settings.sms_default_sender_id,
        api_url=settings.sms_api_url,
        timeout=settings.sms_timeout,
        country_code=settings.sms_default_country_code,
    )


async def update_election_settings(
    session: AsyncSession,
    request: ElectionSettingsUpdateRequest,
    *,
    actor: User | None = None,
) -> ElectionState:
    """Apply a partial settings update.

    Only fields present in the request are changed; an explicit ``null`` clears
    a schedule instant, and an empty ``sms_api_key`` removes the key.

    Raises:
        ValueError: If the resulting schedule has a window that ends before it starts.
    """
    state = await get_election_state(session)
    updates = request.model_dump(exclude_unset=True)

    for field in _SCHEDULE_FIELDS:
        if field in updates and updates[field] is not None:
            updates[field] = ensure_utc(updates[field])

    schedule = state.schedule
    candidate_schedule = PhaseSchedule(
        **{field: updates.get(field, getattr(schedule, field)) for field in _SCHEDULE_FIELDS},
    )
    candidate_schedule.validate()

    if "sms_api_key" in updates:
        key = (updates["sms_api_key"] or "").strip()
        updates["sms_api_key"] = key or None
    if "sms_sender_id" in updates:
        updates["sms_sender_id"] = (updates["sms_sender_id"] or "").strip() or None

    for field, value in updates.items():
        if field in ("election_title", "organization_name", "enable_auto_schedule") and value is None:
            continue
        setattr(state, field, value)

    changed = sorted(field for field in updates if field != "sms_api_key")
    if "sms_api_key" in updates:
        changed.append("sms_credentials")
    record_action(
        session,
        actor=actor,
        action="settings_update",
        resource_type="election",
        request_metadata={"fields": changed},
    )
    await session.commit()
    await session.refresh(state)
    logger.info("Election settings updated: {}", ", ".join(changed) or "no changes")
    return state


async def reset_votes(session: AsyncSession, *, actor: User | None = None) -> ResetVotesResult:
    """Delete every ballot and return voters who voted to VERIFIED.

    Registry, candidates and settings are untouched. Both changes commit
    together.
    """
    votes = await session.execute(delete(Vote))
    voters = await session.execute(
        update(Voter)
        .where(Voter.status == VoterStatus.VOTED.value)
        .values(status=VoterStatus.VERIFIED.value, updated_at=utc_now())
    )
    result = ResetVotesResult(votes_deleted=votes.rowcount, voters_reverted=voters.rowcount)
    record_action(
        session,
        actor=actor,
        action="reset_votes",
        resource_type="vote",
        request_metadata={"votes_deleted": result.votes_deleted, "voters_reverted": result.voters_reverted},
    )
    await session.commit()
    logger.warning(
        "Votes reset: {} ballot(s) deleted, {} voter(s) reverted to VERIFIED",
        result.votes_deleted,
        result.voters_reverted,
    )
    return result


async def factory_reset(session: AsyncSession, *, confirm: bool, actor: User | None = None) -> FactoryResetResult:
    """Wipe votes, voters and candidates and restore default settings.

    Raises:
        ValueError: If ``confirm`` is not set.
    """
    if not confirm:
        msg = "Factory reset requires explicit confirmation"
        raise ValueError(msg)

    votes = await session.execute(delete(Vote))
    voters = await session.execute(delete(Voter))
    candidates = await session.execute(delete(Candidate))

    state = await get_election_state(session)
    state.phase = ElectionPhase.SETUP.value
    state.phase_changed_at = utc_now()
    state.election_title = DEFAULT_ELECTION_TITLE
    state.organization_name = DEFAULT_ORGANIZATION_NAME
    state.sms_api_key = None
    state.sms_sender_id = None
    state.enable_auto_schedule = False
    for field in _SCHEDULE_FIELDS:
        setattr(state, field, None)

    result = FactoryResetResult(
        votes_deleted=votes.rowcount,
        voters_deleted=voters.rowcount,
        candidates_deleted=candidates.rowcount,
    )
    record_action(
        session,
        actor=actor,
        action="factory_reset",
        resource_type="election",
        request_metadata={
            "votes_deleted": result.votes_deleted,
            "voters_deleted": result.voters_deleted,
            "candidates_deleted": result.candidates_deleted,
        },
    )
    await session.commit()
    logger.warning(
        "Factory reset: {} vote(s), {} voter(s), {} candidate(s) deleted",
        result.votes_deleted,
        result.voters_deleted,
        result.candidates_deleted,
    )
    return result


async def tally_results(session: AsyncSession) -> ElectionResultsResponse:
    """Count votes per candidate, grouped by position in candidate order.

    Selections naming candidates that no longer exist are ignored.
    """
    state = await get_election_state(session)
    candidates = list((await session.execute(select(Candidate).order_by(Candidate.created_at))).scalars().all())
    counts: dict[str, int] = {str(candidate.id): 0 for candidate in candidates}

    total_ballots = 0
    result = await session.execute(select(Vote.selections))
    for selections in result.scalars():
        total_ballots += 1
        for candidate_id in (selections or {}).values():
            key = str(candidate_id)
            if key in counts:
                counts[key] += 1

    positions: dict[str, list[CandidateTally]] = {}
    for candidate in candidates:
        positions.setdefault(candidate.position, []).append(
            CandidateTally(
                candidate_id=str(candidate.id),
                name=candidate.name,
                party=candidate.party,
                votes=counts[str(candidate.id)],
            )
        )

    return ElectionResultsResponse(
        election_title=state.election_title,
        phase=state.current_phase,
        total_ballots=total_ballots,
        positions=[
            PositionTally(position=position, candidates=sorted(tallies, key=lambda t: t.votes, reverse=True))
            for position, tallies in positions.items()
        ],
    )
