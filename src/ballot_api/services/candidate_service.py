"""Candidate management. Candidates can only change while the election is in SETUP."""

import uuid

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.errors import CandidateNotFound, PhaseViolation
from ballot_api.lib.ballot import normalize_scope
from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.candidate import Candidate
from ballot_api.models.user import User
from ballot_api.schemas.candidate import CandidateCreateRequest, CandidateUpdateRequest
from ballot_api.services.audit_service import record_action
from ballot_api.services.election_service import get_election_state

_UPDATABLE_CANDIDATE_FIELDS: frozenset[str] = frozenset({"name", "position", "party", "avatar_url", "scope"})


async def _require_setup(session: AsyncSession) -> None:
    state = await get_election_state(session)
    if state.current_phase != ElectionPhase.SETUP:
        raise PhaseViolation("Candidates can only be changed during setup.")


async def list_candidates(session: AsyncSession, position: str | None = None) -> list[Candidate]:
    """All candidates in creation order, optionally for one position."""
    query = select(Candidate).order_by(Candidate.created_at, Candidate.name)
    if position:
        query = query.where(Candidate.position == position)
    result = await session.execute(query)
    return list(result.scalars().all())


async def get_candidate(session: AsyncSession, candidate_id: uuid.UUID) -> Candidate:
    candidate = await session.get(Candidate, candidate_id)
    if candidate is None:
        raise CandidateNotFound()
    return candidate


async def create_candidate(
    session: AsyncSession,
    request: CandidateCreateRequest,
    *,
    actor: User | None = None,
) -> Candidate:
    """Raises PhaseViolation outside SETUP."""
    await _require_setup(session)
    candidate = Candidate(
        id=uuid.uuid4(),
        name=request.name.strip(),
        position=request.position.strip(),
        party=request.party,
        avatar_url=request.avatar_url,
        scope=normalize_scope(request.scope),
    )
    session.add(candidate)
    record_action(
        session, actor=actor, action="candidate_create", resource_type="candidate", resource_ids=[str(candidate.id)]
    )
    await session.commit()
    await session.refresh(candidate)
    logger.info("Candidate {} added for {}", candidate.name, candidate.position)
    return candidate


async def update_candidate(
    session: AsyncSession,
    candidate_id: uuid.UUID,
    request: CandidateUpdateRequest,
    *,
    actor: User | None = None,
) -> Candidate:
    await _require_setup(session)
    candidate = await get_candidate(session, candidate_id)
    updates = request.model_dump(exclude_unset=True)
    for name, value in updates.items():
        if name not in _UPDATABLE_CANDIDATE_FIELDS:
            continue
        if name == "scope":
            value = normalize_scope(value)
        elif name in ("name", "position"):
            if value is None:
                continue
            value = value.strip()
        setattr(candidate, name, value)
    record_action(
        session,
        actor=actor,
        action="candidate_update",
        resource_type="candidate",
        resource_ids=[str(candidate.id)],
        request_metadata={"fields": sorted(updates)},
    )
    await session.commit()
    await session.refresh(candidate)
    return candidate


async def delete_candidate(session: AsyncSession, candidate_id: uuid.UUID, *, actor: User | None = None) -> None:
    await _require_setup(session)
    candidate = await get_candidate(session, candidate_id)
    await session.delete(candidate)
    record_action(
        session, actor=actor, action="candidate_delete", resource_type="candidate", resource_ids=[str(candidate_id)]
    )
    await session.commit()
    logger.info("Candidate {} deleted", candidate_id)
