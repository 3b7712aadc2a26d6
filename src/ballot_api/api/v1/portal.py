"""Member-facing endpoints: election status, registration, voting login, ballot, results.

GET /election, POST /portal/registration/request, POST /portal/registration/verify,
POST /portal/login/request, POST /portal/login/verify, GET /portal/ballot,
POST /portal/ballot, GET /results.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.config import Settings, get_settings
from ballot_api.core.dependencies import get_async_session, get_current_voter
from ballot_api.core.errors import PhaseViolation
from ballot_api.core.logging import mask_phone
from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.election import ElectionState
from ballot_api.models.voter import Voter
from ballot_api.schemas.ballot import BallotPosition, BallotReceiptResponse, BallotResponse, BallotSubmitRequest
from ballot_api.schemas.candidate import CandidateResponse
from ballot_api.schemas.common import ERROR_RESPONSES
from ballot_api.schemas.election import ElectionResultsResponse, ElectionStatusResponse
from ballot_api.schemas.portal import (
    CodeIssuedResponse,
    CodeRequest,
    LoginVerifyRequest,
    RegistrationCompleteResponse,
    RegistrationVerifyRequest,
    VoterSessionResponse,
)
from ballot_api.services import ballot_service, election_service, otc_service
from ballot_api.services.otc_service import ChallengeIssued

portal_router = APIRouter(tags=["portal"], responses=ERROR_RESPONSES)


def build_status(state: ElectionState, settings: Settings) -> ElectionStatusResponse:
    schedule = state.schedule
    return ElectionStatusResponse(
        election_title=state.election_title,
        organization_name=state.organization_name,
        phase=state.current_phase,
        phase_changed_at=state.phase_changed_at,
        enable_auto_schedule=state.enable_auto_schedule,
        verification_start=schedule.verification_start,
        verification_end=schedule.verification_end,
        voting_start=schedule.voting_start,
        voting_end=schedule.voting_end,
        voting_locations=settings.voting_location_list,
    )


def _code_issued(voter: Voter, issued: ChallengeIssued) -> CodeIssuedResponse:
    return CodeIssuedResponse(
        name=voter.name,
        masked_phone=mask_phone(voter.phone),
        expires_at=issued.expires_at,
        seconds_remaining=issued.seconds_remaining,
        delivered=issued.delivered,
        simulated=issued.simulated,
        relay_message=issued.relay_message,
    )


@portal_router.get("/election", response_model=ElectionStatusResponse)
async def get_election_status(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ElectionStatusResponse:
    """Current phase and schedule (public)."""
    state = await election_service.get_election_state(session)
    await session.commit()
    return build_status(state, settings)


@portal_router.post("/portal/registration/request", response_model=CodeIssuedResponse)
async def request_registration_code(
    request: CodeRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CodeIssuedResponse:
    """Send a verification code to the member's registered phone."""
    voter, issued = await otc_service.start_registration(session, request.membership_id, settings=settings)
    return _code_issued(voter, issued)


@portal_router.post("/portal/registration/verify", response_model=RegistrationCompleteResponse)
async def verify_registration(
    request: RegistrationVerifyRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RegistrationCompleteResponse:
    """Submit the verification code and choose a voting location."""
    voter = await otc_service.complete_registration(
        session,
        request.membership_id,
        request.code,
        request.voting_location,
        settings=settings,
    )
    return RegistrationCompleteResponse(
        membership_id=voter.membership_id,
        name=voter.name,
        status=voter.status,
        voting_location=voter.voting_location or "",
        verified_at=voter.verified_at,
    )


@portal_router.post("/portal/login/request", response_model=CodeIssuedResponse)
async def request_login_code(
    request: CodeRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CodeIssuedResponse:
    """Send a voting access code to a verified member."""
    voter, issued = await otc_service.start_voting_login(session, request.membership_id, settings=settings)
    return _code_issued(voter, issued)


@portal_router.post("/portal/login/verify", response_model=VoterSessionResponse)
async def verify_login(
    request: LoginVerifyRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VoterSessionResponse:
    """Exchange a voting access code for a voter session token."""
    _voter, token = await otc_service.complete_voting_login(
        session, request.membership_id, request.code, settings=settings
    )
    return VoterSessionResponse(access_token=token, expires_in=settings.voter_session_expire_minutes * 60)


@portal_router.get("/portal/ballot", response_model=BallotResponse)
async def get_ballot(
    voter: Annotated[Voter, Depends(get_current_voter)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> BallotResponse:
    """The positions and candidates on the logged-in voter's ballot."""
    ballot = await ballot_service.get_ballot(session, voter)
    return BallotResponse(
        election_title=ballot.election_title,
        voter_name=voter.name,
        voting_location=voter.voting_location,
        positions=[
            BallotPosition(
                position=position,
                candidates=[CandidateResponse.model_validate(c) for c in candidates],
            )
            for position, candidates in ballot.positions.items()
        ],
    )


@portal_router.post("/portal/ballot", response_model=BallotReceiptResponse, status_code=201)
async def submit_ballot(
    request: BallotSubmitRequest,
    voter: Annotated[Voter, Depends(get_current_voter)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> BallotReceiptResponse:
    """Cast the logged-in voter's ballot. A ballot cannot be changed once cast."""
    vote = await ballot_service.submit_ballot(session, voter.id, request.selections, settings=settings)
    return BallotReceiptResponse(cast_at=vote.cast_at, positions=len(vote.selections))


@portal_router.get("/results", response_model=ElectionResultsResponse)
async def get_public_results(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ElectionResultsResponse:
    """Final tallies, published once the election has ended."""
    state = await election_service.get_election_state(session)
    if state.current_phase != ElectionPhase.ENDED:
        raise PhaseViolation("Results are published once the election has ended.")
    return await election_service.tally_results(session)
