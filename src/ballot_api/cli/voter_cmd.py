"""Voter registry CLI commands: import, export, manual verify, reset."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any

import typer
from sqlalchemy.ext.asyncio import AsyncSession

voter_app = typer.Typer()


async def _with_session(work: Callable[[AsyncSession, Any], Awaitable[None]]) -> None:
    from ballot_api.core.config import get_settings
    from ballot_api.core.database import dispose_engine, init_engine, session_scope

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            await work(session, settings)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


@voter_app.command("import")
def import_voters(
    file_path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Registry CSV file")],
    strict: Annotated[bool, typer.Option("--strict", help="Reject the whole file if any row is invalid")] = False,
) -> None:
    """Bulk import members (MembershipID, Name, Phone, Ward, Constituency, County)."""
    from ballot_api.core.errors import ImportRejected
    from ballot_api.services.voter_service import bulk_import_voters

    async def work(session: AsyncSession, settings: Any) -> None:
        try:
            summary = await bulk_import_voters(
                session, file_path, strict=strict, batch_size=settings.import_batch_size
            )
        except ImportRejected as e:
            for error in e.errors:
                typer.echo(f"  row {error.row}: {error.reason}", err=True)
            raise
        typer.echo(f"Imported: {summary.imported}  Skipped: {summary.skipped}")
        for error in summary.errors:
            typer.echo(f"  row {error.row} ({error.membership_id or '-'}): {error.reason}")

    asyncio.run(_with_session(work))


@voter_app.command("export")
def export_voters(
    output: Annotated[Path, typer.Argument(help="Output CSV path")],
) -> None:
    """Export the registry to CSV."""
    from ballot_api.services.voter_service import export_voters_csv

    async def work(session: AsyncSession, _settings: Any) -> None:
        result = await export_voters_csv(session, output)
        typer.echo(f"Exported {result.record_count} voter(s) to {result.output_path} ({result.file_size_bytes} bytes)")

    asyncio.run(_with_session(work))


@voter_app.command("verify")
def verify_voter(
    membership_id: Annotated[str, typer.Argument(help="Membership ID")],
    location: Annotated[str | None, typer.Option("--location", help="Voting location to record")] = None,
) -> None:
    """Mark a member VERIFIED without a code."""
    from ballot_api.services.voter_service import lookup_voter, manual_verify

    async def work(session: AsyncSession, settings: Any) -> None:
        voter = await lookup_voter(session, membership_id)
        voter = await manual_verify(session, voter.id, settings=settings, voting_location=location)
        typer.echo(f"{voter.membership_id} ({voter.name}) is now {voter.status}")

    asyncio.run(_with_session(work))


@voter_app.command("reset")
def reset_voter(
    membership_id: Annotated[str, typer.Argument(help="Membership ID")],
) -> None:
    """Return a VERIFIED member to UNVERIFIED."""
    from ballot_api.services.voter_service import lookup_voter, reset_voter

    async def work(session: AsyncSession, _settings: Any) -> None:
        voter = await lookup_voter(session, membership_id)
        voter = await reset_voter(session, voter.id)
        typer.echo(f"{voter.membership_id} ({voter.name}) is now {voter.status}")

    asyncio.run(_with_session(work))
