"""Database schema commands: Alembic migrations and a quick create for dev SQLite files."""

import asyncio
from typing import Annotated

import typer
from loguru import logger

db_app = typer.Typer()


def _alembic_config():  # type: ignore[no-untyped-def]
    from alembic.config import Config

    return Config("alembic.ini")


@db_app.command()
def upgrade(revision: Annotated[str, typer.Argument(help="Target revision")] = "head") -> None:
    """Migrate the election store up to ``revision``."""
    from alembic import command

    logger.info("Upgrading database to {}", revision)
    command.upgrade(_alembic_config(), revision)
    logger.info("Database upgrade complete")


@db_app.command()
def downgrade(revision: Annotated[str, typer.Argument(help="Target revision")] = "-1") -> None:
    from alembic import command

    logger.warning("Downgrading database to {}", revision)
    command.downgrade(_alembic_config(), revision)


@db_app.command()
def current() -> None:
    """Show the applied migration revision."""
    from alembic import command

    command.current(_alembic_config(), verbose=True)


@db_app.command("create-all")
def create_all_tables() -> None:
    """Create tables straight from the models, skipping migrations."""
    asyncio.run(_create_all())


async def _create_all() -> None:
    from ballot_api.core.config import get_settings
    from ballot_api.core.database import create_all, dispose_engine, init_engine

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        await create_all()
        typer.echo("Tables created")
    finally:
        await dispose_engine()
