"""Ballot retrieval and submission.

A ballot is accepted once per voter. The VERIFIED -> VOTED status change is a
conditional UPDATE, and the vote row is inserted in the same transaction, so
concurrent submissions for one voter produce exactly one vote.
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import utc_now
from ballot_api.core.config import Settings
from ballot_api.core.errors import AlreadyVoted, IncompleteBallot, NotVerified, PhaseViolation
from ballot_api.core.security import derive_voter_token
from ballot_api.lib.ballot import check_ballot, group_eligible_candidates
from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.candidate import Candidate
from ballot_api.models.election import ElectionState
from ballot_api.models.vote import Vote
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.services.candidate_service import list_candidates
from ballot_api.services.election_service import get_election_state
from ballot_api.services.voter_service import get_voter


@dataclass
class Ballot:
    election_title: str
    voter: Voter
    positions: dict[str, list[Candidate]]


async def _require_voting(session: AsyncSession) -> ElectionState:
    state = await get_election_state(session)
    if state.current_phase != ElectionPhase.VOTING:
        raise PhaseViolation("Voting is not currently open.")
    return state


def _require_verified(voter: Voter) -> None:
    if voter.status == VoterStatus.VOTED:
        raise AlreadyVoted()
    if voter.status != VoterStatus.VERIFIED:
        raise NotVerified()


async def get_ballot(session: AsyncSession, voter: Voter) -> Ballot:
    """The positions and candidates ``voter`` may vote on.

    Raises:
        PhaseViolation: If voting is not open.
        AlreadyVoted: If the voter has cast a ballot.
        NotVerified: If the voter is not VERIFIED.
    """
    state = await _require_voting(session)
    _require_verified(voter)
    candidates = await list_candidates(session)
    return Ballot(
        election_title=state.election_title,
        voter=voter,
        positions=group_eligible_candidates(candidates, voter.voting_location),
    )


async def submit_ballot(
    session: AsyncSession,
    voter_id: uuid.UUID,
    selections: Mapping[str, str],
    *,
    settings: Settings,
) -> Vote:
    """Record a complete ballot for ``voter_id``.

    Args:
        session: The database session.
        voter_id: The voter casting the ballot.
        selections: Position -> chosen candidate id.
        settings: Application settings (voter token key).

    Returns:
        The stored Vote.

    Raises:
        PhaseViolation: If voting is not open.
        VoterNotFound: If the voter does not exist.
        AlreadyVoted: If a ballot was already cast for the voter.
        NotVerified: If the voter is not VERIFIED.
        IncompleteBallot: If selections do not cover exactly the eligible positions.
    """
    await _require_voting(session)
    voter = await get_voter(session, voter_id)
    _require_verified(voter)

    candidates = await list_candidates(session)
    groups = group_eligible_candidates(candidates, voter.voting_location)
    check = check_ballot(selections, groups)
    if not check.is_complete:
        details = []
        if check.missing:
            details.append("missing: " + ", ".join(check.missing))
        if check.unexpected:
            details.append("not on your ballot: " + ", ".join(check.unexpected))
        if check.invalid:
            details.append("invalid choice for: " + ", ".join(check.invalid))
        raise IncompleteBallot(
            f"Please make exactly one selection for every position ({'; '.join(details)}).",
            missing=check.missing,
            unexpected=check.unexpected,
            invalid=check.invalid,
        )

    now = utc_now()
    result = await session.execute(
        update(Voter)
        .where(Voter.id == voter.id, Voter.status == VoterStatus.VERIFIED.value)
        .values(status=VoterStatus.VOTED.value, updated_at=now)
    )
    if result.rowcount == 0:
        await session.rollback()
        await session.refresh(voter)
        _require_verified(voter)
        raise AlreadyVoted()

    vote = Vote(
        id=uuid.uuid4(),
        voter_token=derive_voter_token(str(voter.id), settings.ballot_token_key),
        selections={position: str(candidate_id) for position, candidate_id in selections.items()},
        cast_at=now,
    )
    session.add(vote)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise AlreadyVoted() from e

    logger.info("Ballot recorded ({} position(s))", len(selections))
    return vote
