"""Election administration endpoints (admin only).

GET/PATCH /admin/election/settings, GET /admin/election/phase-warning,
POST /admin/election/phase, POST /admin/election/schedule/apply,
POST /admin/election/reset-votes, POST /admin/election/factory-reset,
GET /admin/election/results, GET /admin/audit-logs.
"""

import math
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.api.v1.portal import build_status
from ballot_api.core.config import Settings, get_settings
from ballot_api.core.dependencies import get_async_session, require_role
from ballot_api.lib.phase import ElectionPhase, phase_warning
from ballot_api.models.election import ElectionState
from ballot_api.models.user import User
from ballot_api.schemas.common import ERROR_RESPONSES, PaginationMeta, PaginationParams
from ballot_api.schemas.election import (
    ElectionResultsResponse,
    ElectionSettingsResponse,
    ElectionSettingsUpdateRequest,
    ElectionStatusResponse,
    FactoryResetRequest,
    FactoryResetResponse,
    PhaseChangeRequest,
    PhaseChangeResponse,
    PhaseWarningResponse,
    ResetVotesResponse,
)
from ballot_api.services import audit_service, election_service, otc_service, phase_service

election_router = APIRouter(prefix="/admin", tags=["election"], responses=ERROR_RESPONSES)


def _settings_response(state: ElectionState, settings: Settings) -> ElectionSettingsResponse:
    return ElectionSettingsResponse(
        **build_status(state, settings).model_dump(),
        sms_sender_id=state.sms_sender_id,
        sms_configured=state.sms_configured,
        updated_at=state.updated_at,
    )


@election_router.get("/election/settings", response_model=ElectionSettingsResponse)
async def get_election_settings(
    _current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ElectionSettingsResponse:
    state = await election_service.get_election_state(session)
    await session.commit()
    return _settings_response(state, settings)


@election_router.patch("/election/settings", response_model=ElectionSettingsResponse)
async def update_election_settings(
    request: ElectionSettingsUpdateRequest,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ElectionSettingsResponse:
    """Update title, SMS credentials and the phase schedule."""
    state = await election_service.update_election_settings(session, request, actor=current_user)
    return _settings_response(state, settings)


@election_router.get("/election/phase-warning", response_model=PhaseWarningResponse)
async def get_phase_warning(
    _current_user: Annotated[User, Depends(require_role("admin"))],
    phase: Annotated[ElectionPhase, Query()],
) -> PhaseWarningResponse:
    """The confirmation text shown before switching to ``phase``."""
    return PhaseWarningResponse(phase=phase, warning=phase_warning(phase))


@election_router.post("/election/phase", response_model=PhaseChangeResponse)
async def change_phase(
    request: PhaseChangeRequest,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> PhaseChangeResponse:
    """Switch phase manually. Returns 428 with the warning until ``acknowledged`` is set."""
    change = await phase_service.request_phase(
        session, request.phase, acknowledged=request.acknowledged, actor=current_user
    )
    return PhaseChangeResponse(
        phase=change.phase,
        previous_phase=change.previous_phase,
        changed=change.changed,
        phase_changed_at=change.phase_changed_at,
    )


@election_router.post("/election/schedule/apply", response_model=ElectionStatusResponse)
async def apply_schedule(
    _current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ElectionStatusResponse:
    """Run the schedule check now instead of waiting for the scheduler."""
    await phase_service.apply_scheduled_phase(session)
    state = await election_service.get_election_state(session)
    return build_status(state, settings)


@election_router.post("/election/reset-votes", response_model=ResetVotesResponse)
async def reset_votes(
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ResetVotesResponse:
    """Delete all ballots; voters who voted return to VERIFIED."""
    result = await election_service.reset_votes(session, actor=current_user)
    return ResetVotesResponse(votes_deleted=result.votes_deleted, voters_reverted=result.voters_reverted)


@election_router.post("/election/factory-reset", response_model=FactoryResetResponse)
async def factory_reset(
    request: FactoryResetRequest,
    current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> FactoryResetResponse:
    """Delete all voters, candidates and votes and restore default settings."""
    result = await election_service.factory_reset(session, confirm=request.confirm, actor=current_user)
    otc_service.reset_rate_limits()
    return FactoryResetResponse(
        votes_deleted=result.votes_deleted,
        voters_deleted=result.voters_deleted,
        candidates_deleted=result.candidates_deleted,
    )


@election_router.get("/election/results", response_model=ElectionResultsResponse)
async def get_results(
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ElectionResultsResponse:
    """Live tallies, available to administrators in any phase."""
    return await election_service.tally_results(session)


@election_router.get("/audit-logs", response_model=dict)
async def list_audit_logs(
    _current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    pagination: Annotated[PaginationParams, Depends()],
    action: Annotated[str | None, Query(max_length=40)] = None,
    resource_type: Annotated[str | None, Query(max_length=50)] = None,
) -> dict:
    logs, total = await audit_service.query_audit_logs(
        session,
        action=action,
        resource_type=resource_type,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return {
        "items": [
            {
                "id": str(log.id),
                "timestamp": log.timestamp,
                "username": log.username,
                "action": log.action,
                "resource_type": log.resource_type,
                "resource_ids": log.resource_ids,
                "request_metadata": log.request_metadata,
            }
            for log in logs
        ],
        "pagination": PaginationMeta(
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=max(1, math.ceil(total / pagination.page_size)),
        ),
    }
