"""Candidate endpoints.

GET /candidates, POST /candidates, PATCH /candidates/{candidate_id},
DELETE /candidates/{candidate_id}. Changes are only accepted during setup.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.dependencies import get_async_session, require_role
from ballot_api.models.candidate import Candidate
from ballot_api.models.user import User
from ballot_api.schemas.candidate import CandidateCreateRequest, CandidateResponse, CandidateUpdateRequest
from ballot_api.schemas.common import ERROR_RESPONSES
from ballot_api.services import candidate_service

candidates_router = APIRouter(prefix="/candidates", tags=["candidates"], responses=ERROR_RESPONSES)


@candidates_router.get("", response_model=list[CandidateResponse])
async def list_candidates(
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    position: Annotated[str | None, Query(max_length=100)] = None,
) -> list[Candidate]:
    return await candidate_service.list_candidates(session, position)


@candidates_router.post("", response_model=CandidateResponse, status_code=201)
async def create_candidate(
    request: CandidateCreateRequest,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Candidate:
    return await candidate_service.create_candidate(session, request, actor=current_user)


@candidates_router.patch("/{candidate_id}", response_model=CandidateResponse)
async def update_candidate(
    candidate_id: uuid.UUID,
    request: CandidateUpdateRequest,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Candidate:
    return await candidate_service.update_candidate(session, candidate_id, request, actor=current_user)


@candidates_router.delete("/{candidate_id}", status_code=204)
async def delete_candidate(
    candidate_id: uuid.UUID,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> None:
    await candidate_service.delete_candidate(session, candidate_id, actor=current_user)
