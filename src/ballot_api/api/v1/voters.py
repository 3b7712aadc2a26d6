"""Voter registry admin endpoints.

GET /voters, POST /voters, POST /voters/import, GET /voters/export,
GET /voters/stats, GET /voters/{voter_id}, PATCH /voters/{voter_id},
POST /voters/{voter_id}/verify, POST /voters/{voter_id}/reset,
DELETE /voters/{voter_id}.
"""

import math
import tempfile
import uuid
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import utc_now
from ballot_api.core.config import Settings, get_settings
from ballot_api.core.dependencies import get_async_session, require_role
from ballot_api.models.user import User
from ballot_api.models.voter import Voter
from ballot_api.schemas.common import ERROR_RESPONSES, PaginationMeta, PaginationParams
from ballot_api.schemas.voter import (
    ImportRowError,
    ImportSummaryResponse,
    ManualVerifyRequest,
    PaginatedVoterResponse,
    VoterCreateRequest,
    VoterResponse,
    VoterUpdateRequest,
)
from ballot_api.schemas.voter_stats import VoterStatsResponse
from ballot_api.services import election_service, voter_service, voter_stats_service

voters_router = APIRouter(prefix="/voters", tags=["voters"], responses=ERROR_RESPONSES)

MAX_VOTER_FILE_SIZE = 50 * 1024 * 1024  # 50 MB


@voters_router.get("", response_model=PaginatedVoterResponse)
async def list_voters(
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    pagination: Annotated[PaginationParams, Depends()],
    status_filter: Annotated[str | None, Query(alias="status", pattern="(?i)^(unverified|verified|voted)$")] = None,
    q: Annotated[str | None, Query(max_length=100, description="Search name or membership ID")] = None,
    ward: Annotated[str | None, Query(max_length=100)] = None,
) -> PaginatedVoterResponse:
    """Search the registry."""
    voters, total = await voter_service.list_voters(
        session,
        status=status_filter,
        q=q,
        ward=ward,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return PaginatedVoterResponse(
        items=[VoterResponse.model_validate(v) for v in voters],
        pagination=PaginationMeta(
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=max(1, math.ceil(total / pagination.page_size)),
        ),
    )


@voters_router.post("", response_model=VoterResponse, status_code=201)
async def create_voter(
    request: VoterCreateRequest,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Voter:
    """Add a single member to the registry."""
    return await voter_service.create_voter(session, request, actor=current_user)


@voters_router.post("/import", response_model=ImportSummaryResponse)
async def import_voters(
    file: UploadFile,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    strict: Annotated[bool, Query(description="Reject the whole file if any row is invalid")] = False,
) -> ImportSummaryResponse:
    """Bulk import members from a CSV file (MembershipID, Name, Phone, Ward, Constituency, County)."""
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    with tempfile.NamedTemporaryFile(delete=False, suffix=".csv") as tmp:
        content = await file.read()
        if len(content) > MAX_VOTER_FILE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File exceeds maximum size of {MAX_VOTER_FILE_SIZE // (1024 * 1024)} MB",
            )
        tmp.write(content)
        tmp_path = Path(tmp.name)

    try:
        summary = await voter_service.bulk_import_voters(
            session,
            tmp_path,
            strict=strict,
            batch_size=settings.import_batch_size,
            actor=current_user,
        )
    finally:
        tmp_path.unlink(missing_ok=True)

    return ImportSummaryResponse(
        imported=summary.imported,
        skipped=summary.skipped,
        errors=[ImportRowError(row=e.row, membership_id=e.membership_id, reason=e.reason) for e in summary.errors],
    )


@voters_router.get("/export")
async def export_voters(
    _current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> FileResponse:
    """Download the registry as CSV."""
    file_name = f"voters_{utc_now():%Y%m%d_%H%M%S}.csv"
    result = await voter_service.export_voters_csv(session, Path(settings.export_dir) / file_name)
    return FileResponse(path=result.output_path, media_type="text/csv", filename=file_name)


@voters_router.get("/stats", response_model=VoterStatsResponse)
async def get_voter_stats(
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> VoterStatsResponse:
    """Turnout analytics."""
    return await voter_stats_service.get_voter_stats(session)


@voters_router.get("/{voter_id}", response_model=VoterResponse)
async def get_voter(
    voter_id: uuid.UUID,
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Voter:
    return await voter_service.get_voter(session, voter_id)


@voters_router.patch("/{voter_id}", response_model=VoterResponse)
async def update_voter(
    voter_id: uuid.UUID,
    request: VoterUpdateRequest,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Voter:
    """Edit contact and demographic fields. Locked once the member has voted."""
    return await voter_service.update_voter(session, voter_id, request, actor=current_user)


@voters_router.post("/{voter_id}/verify", response_model=VoterResponse)
async def verify_voter(
    voter_id: uuid.UUID,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: ManualVerifyRequest | None = None,
) -> Voter:
    """Mark a member VERIFIED without a code."""
    return await voter_service.manual_verify(
        session,
        voter_id,
        settings=settings,
        voting_location=request.voting_location if request else None,
        actor=current_user,
    )


@voters_router.post("/{voter_id}/reset", response_model=VoterResponse)
async def reset_voter(
    voter_id: uuid.UUID,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Voter:
    """Return a VERIFIED member to UNVERIFIED."""
    return await voter_service.reset_voter(session, voter_id, actor=current_user)


@voters_router.delete("/{voter_id}", status_code=204)
async def delete_voter(
    voter_id: uuid.UUID,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> None:
    """Remove a member who has not voted (setup and verification phases only)."""
    state = await election_service.get_election_state(session)
    await voter_service.delete_voter(session, voter_id, phase=state.current_phase, actor=current_user)
