"""Election phase and results CLI commands."""

import asyncio
from typing import Annotated

import typer
from loguru import logger

from ballot_api.lib.phase import ElectionPhase

election_app = typer.Typer()


def _init() -> None:
    from ballot_api.core.config import get_settings
    from ballot_api.core.database import init_engine

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)


@election_app.command("status")
def status() -> None:
    """Show the election title, phase and schedule."""
    asyncio.run(_status_impl())


async def _status_impl() -> None:
    from ballot_api.core.database import dispose_engine, session_scope
    from ballot_api.services.election_service import count_votes, get_election_state

    _init()
    try:
        async with session_scope() as session:
            state = await get_election_state(session)
            await session.commit()
            votes = await count_votes(session)
            schedule = state.schedule
            typer.echo(f"Election:     {state.election_title} ({state.organization_name})")
            typer.echo(f"Phase:        {state.phase}")
            typer.echo(f"Auto-schedule: {'on' if state.enable_auto_schedule else 'off'}")
            for label, instant in (
                ("Verification", schedule.verification_start),
                ("  ends", schedule.verification_end),
                ("Voting", schedule.voting_start),
                ("  ends", schedule.voting_end),
            ):
                typer.echo(f"{label:<14}{instant.isoformat() if instant else '-'}")
            typer.echo(f"SMS:          {'configured' if state.sms_configured else 'simulation mode'}")
            typer.echo(f"Ballots cast: {votes}")
    finally:
        await dispose_engine()


@election_app.command("set-phase")
def set_phase(
    phase: Annotated[ElectionPhase, typer.Argument(help="Target phase", case_sensitive=False)],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
) -> None:
    """Switch the election phase manually."""
    from ballot_api.lib.phase import phase_warning

    acknowledged = yes or typer.confirm(phase_warning(phase))
    if not acknowledged:
        typer.echo("Aborted")
        raise typer.Exit(code=1)
    asyncio.run(_set_phase_impl(phase))


async def _set_phase_impl(phase: ElectionPhase) -> None:
    from ballot_api.core.database import dispose_engine, session_scope
    from ballot_api.services.phase_service import request_phase

    _init()
    try:
        async with session_scope() as session:
            change = await request_phase(session, phase, acknowledged=True)
            if change.changed:
                typer.echo(f"Phase changed: {change.previous_phase} -> {change.phase}")
            else:
                typer.echo(f"Already in {change.phase}")
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


@election_app.command("tick")
def tick() -> None:
    """Apply the configured schedule once."""
    asyncio.run(_tick_impl())


async def _tick_impl() -> None:
    from ballot_api.core.database import dispose_engine, session_scope
    from ballot_api.services.phase_service import apply_scheduled_phase

    _init()
    try:
        async with session_scope() as session:
            new_phase = await apply_scheduled_phase(session)
            if new_phase is None:
                typer.echo("No phase change")
            else:
                typer.echo(f"Phase changed to {new_phase}")
    finally:
        await dispose_engine()


@election_app.command("reset-votes")
def reset_votes(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
) -> None:
    """Delete all ballots; voters who voted return to VERIFIED."""
    if not (yes or typer.confirm("Delete ALL votes? This cannot be undone.")):
        typer.echo("Aborted")
        raise typer.Exit(code=1)
    asyncio.run(_reset_votes_impl())


async def _reset_votes_impl() -> None:
    from ballot_api.core.database import dispose_engine, session_scope
    from ballot_api.services.election_service import reset_votes

    _init()
    try:
        async with session_scope() as session:
            result = await reset_votes(session)
            typer.echo(f"Deleted {result.votes_deleted} vote(s); {result.voters_reverted} voter(s) reverted")
    finally:
        await dispose_engine()


@election_app.command("results")
def results() -> None:
    """Print vote tallies per position."""
    asyncio.run(_results_impl())


async def _results_impl() -> None:
    from ballot_api.core.database import dispose_engine, session_scope
    from ballot_api.services.election_service import tally_results

    _init()
    try:
        async with session_scope() as session:
            tally = await tally_results(session)
    finally:
        await dispose_engine()

    logger.debug("Tallied {} ballot(s)", tally.total_ballots)
    typer.echo(f"{tally.election_title} [{tally.phase}] - {tally.total_ballots} ballot(s)")
    for position in tally.positions:
        typer.echo(f"\n{position.position}")
        for candidate in position.candidates:
            party = f" ({candidate.party})" if candidate.party else ""
            typer.echo(f"  {candidate.name}{party}: {candidate.votes}")
