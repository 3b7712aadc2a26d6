"""Election phase persistence: manual changes, scheduled changes, and the scheduler loop."""

import asyncio
from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import utc_now
from ballot_api.core.errors import PhaseConfirmationRequired
from ballot_api.lib.phase import ElectionPhase, check_manual_transition, compute_scheduled_phase, phase_warning
from ballot_api.models.election import ELECTION_STATE_ID, ElectionState
from ballot_api.models.user import User
from ballot_api.services.audit_service import record_action
from ballot_api.services.election_service import count_votes, get_election_state


@dataclass
class PhaseChange:
    previous_phase: ElectionPhase
    phase: ElectionPhase
    changed: bool
    phase_changed_at: datetime | None = None


async def get_current_phase(session: AsyncSession) -> ElectionPhase:
    state = await get_election_state(session)
    return state.current_phase


async def request_phase(
    session: AsyncSession,
    target: ElectionPhase,
    *,
    acknowledged: bool,
    actor: User | None = None,
) -> PhaseChange:
    """Manually move the election to ``target``.

    Args:
        session: The database session.
        target: Requested phase.
        acknowledged: Whether the admin confirmed the phase warning.
        actor: The admin making the change (None from the CLI).

    Returns:
        PhaseChange; ``changed`` is False when already in ``target``.

    Raises:
        PhaseConfirmationRequired: If the warning has not been acknowledged.
        PhaseViolation: If returning to SETUP while votes exist.
    """
    state = await get_election_state(session)
    current = state.current_phase
    if target == current:
        return PhaseChange(previous_phase=current, phase=current, changed=False, phase_changed_at=state.phase_changed_at)
    if not acknowledged:
        raise PhaseConfirmationRequired(phase_warning(target))

    check_manual_transition(current, target, votes_cast=await count_votes(session))

    now = utc_now()
    state.phase = target.value
    state.phase_changed_at = now
    record_action(
        session,
        actor=actor,
        action="phase_change",
        resource_type="election",
        request_metadata={"from": current.value, "to": target.value, "trigger": "manual"},
    )
    await session.commit()
    logger.info("Election phase changed {} -> {} (manual)", current.value, target.value)
    return PhaseChange(previous_phase=current, phase=target, changed=True, phase_changed_at=now)


async def apply_scheduled_phase(session: AsyncSession, now: datetime | None = None) -> ElectionPhase | None:
    """Bring the stored phase in line with the configured schedule.

    Does nothing unless auto-scheduling is enabled and at least one instant is
    set. The write is conditional on the phase observed here, so a manual
    change made in between is never overwritten. Safe to call repeatedly.

    Args:
        session: The database session.
        now: Override for the server clock.

    Returns:
        The new phase if one was written, otherwise None.
    """
    state = await get_election_state(session)
    await session.commit()
    if not state.enable_auto_schedule:
        return None
    schedule = state.schedule
    if schedule.is_empty:
        return None

    observed = state.current_phase
    target = compute_scheduled_phase(now or utc_now(), schedule)
    if target == observed:
        return None
    if target == ElectionPhase.SETUP and await count_votes(session) > 0:
        logger.warning("Schedule prescribes SETUP but votes exist; keeping phase {}", observed.value)
        return None

    changed_at = utc_now()
    result = await session.execute(
        update(ElectionState)
        .where(ElectionState.id == ELECTION_STATE_ID, ElectionState.phase == observed.value)
        .values(phase=target.value, phase_changed_at=changed_at, updated_at=changed_at)
    )
    if result.rowcount == 0:
        await session.rollback()
        logger.debug("Scheduled phase change skipped: phase changed concurrently")
        return None

    record_action(
        session,
        actor=None,
        action="phase_change",
        resource_type="election",
        request_metadata={"from": observed.value, "to": target.value, "trigger": "schedule"},
    )
    await session.commit()
    logger.info("Election phase changed {} -> {} (schedule)", observed.value, target.value)
    return target


async def phase_scheduler_loop(interval: int) -> None:
    """Background asyncio loop applying the phase schedule.

    Args:
        interval: Seconds between checks.
    """
    from ballot_api.core.database import get_session_factory

    logger.info("Phase scheduler started (interval={}s)", interval)

    while True:
        try:
            factory = get_session_factory()
            async with factory() as session:
                await apply_scheduled_phase(session)
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Phase scheduler cancelled")
            break
        except Exception:
            logger.exception("Phase scheduler error")
            await asyncio.sleep(interval)
