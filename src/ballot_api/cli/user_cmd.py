"""Election operator account commands: create, list, deactivate, activate."""

import asyncio
from typing import Annotated

import typer

user_app = typer.Typer()


async def _run(work) -> None:
    from ballot_api.core.config import get_settings
    from ballot_api.core.database import dispose_engine, init_engine, session_scope

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            await work(session)
    finally:
        await dispose_engine()


@user_app.command("create")
def create_user(
    username: Annotated[str, typer.Option(prompt=True, help="Username")],
    email: Annotated[str, typer.Option(prompt=True, help="Email address")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True, confirmation_prompt=True, help="Password")],
    role: Annotated[str, typer.Option(prompt=True, help="admin or viewer")] = "admin",
    if_not_exists: Annotated[
        bool, typer.Option("--if-not-exists", help="Succeed without changes when the account exists")
    ] = False,
) -> None:
    """Create an operator account. The first admin must be created this way."""
    from pydantic import ValidationError

    from ballot_api.core.errors import UserExists
    from ballot_api.schemas.auth import UserCreateRequest
    from ballot_api.services.auth_service import create_user as create

    try:
        request = UserCreateRequest(username=username, email=email, password=password, role=role)
    except ValidationError as e:
        for error in e.errors():
            typer.echo(f"Error: {'.'.join(str(p) for p in error['loc'])}: {error['msg']}", err=True)
        raise typer.Exit(code=1) from e

    async def work(session) -> None:
        user = await create(session, request)
        typer.echo(f"Operator '{user.username}' created with role '{user.role}'")

    try:
        asyncio.run(_run(work))
    except UserExists as e:
        if if_not_exists:
            typer.echo(f"Operator '{username}' already exists, skipping")
            return
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@user_app.command("list")
def list_users() -> None:
    """List operator accounts."""
    from ballot_api.services.auth_service import list_users as fetch

    async def work(session) -> None:
        users, total = await fetch(session, page_size=1000)
        typer.echo(f"{'Username':<20} {'Email':<30} {'Role':<8} {'Active':<7} Last sign-in")
        typer.echo("-" * 86)
        for user in users:
            last = user.last_login_at.strftime("%Y-%m-%d %H:%M") if user.last_login_at else "never"
            active = "yes" if user.is_active else "no"
            typer.echo(f"{user.username:<20} {user.email:<30} {user.role:<8} {active:<7} {last}")
        typer.echo(f"\nTotal: {total}")

    asyncio.run(_run(work))


def _set_active(username: str, active: bool) -> None:
    from ballot_api.services.auth_service import set_user_active

    async def work(session) -> None:
        user = await set_user_active(session, username, active)
        typer.echo(f"Operator '{user.username}' is now {'active' if user.is_active else 'deactivated'}")

    try:
        asyncio.run(_run(work))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@user_app.command("deactivate")
def deactivate_user(username: Annotated[str, typer.Argument(help="Username")]) -> None:
    """Revoke an operator's access."""
    _set_active(username, False)


@user_app.command("activate")
def activate_user(username: Annotated[str, typer.Argument(help="Username")]) -> None:
    _set_active(username, True)
