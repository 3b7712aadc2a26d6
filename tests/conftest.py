"""Shared test fixtures for async database, sessions, registry data, and auth tokens."""

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ballot_api.core.config import Settings
from ballot_api.core.security import create_access_token, hash_password
from ballot_api.lib.importer import normalize_membership_id
from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.base import Base
from ballot_api.models.candidate import Candidate
from ballot_api.models.election import ELECTION_STATE_ID, ElectionState
from ballot_api.models.user import User
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.services import otc_service


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        jwt_refresh_token_expire_days=7,
        voting_locations="Nairobi,Mombasa",
        phase_scheduler_enabled=False,
    )


@pytest.fixture(autouse=True)
def _reset_otc_limits() -> None:
    """Rate limiters are process-wide; every test starts with empty windows."""
    otc_service.reset_rate_limits()


@pytest.fixture
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def sample_user(async_session: AsyncSession) -> User:
    """Create a sample admin user in the test database."""
    user = User(
        id=uuid.uuid4(),
        username="testadmin",
        email="admin@test.com",
        hashed_password=hash_password("testpassword123"),
        role="admin",
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """Generate a JWT access token for an admin user."""
    return create_access_token(
        subject="testadmin",
        role="admin",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def viewer_token(settings: Settings) -> str:
    """Generate a JWT access token for a viewer user."""
    return create_access_token(
        subject="testviewer",
        role="viewer",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def set_phase(async_session: AsyncSession) -> Callable[[ElectionPhase], Awaitable[ElectionState]]:
    """Force the stored election phase, creating the election row if needed."""

    async def _set(phase: ElectionPhase) -> ElectionState:
        state = await async_session.get(ElectionState, ELECTION_STATE_ID)
        if state is None:
            state = ElectionState(id=ELECTION_STATE_ID)
            async_session.add(state)
        state.phase = phase.value
        await async_session.commit()
        return state

    return _set


@pytest.fixture
def make_voter(async_session: AsyncSession) -> Callable[..., Awaitable[Voter]]:
    """Insert a registry entry directly, bypassing the service layer."""

    async def _make(
        membership_id: str = "MEM001",
        *,
        name: str = "Jane Wanjiku",
        phone: str = "0712345678",
        status: VoterStatus = VoterStatus.UNVERIFIED,
        voting_location: str | None = None,
        **fields: object,
    ) -> Voter:
        voter = Voter(
            id=uuid.uuid4(),
            membership_id=membership_id,
            membership_id_normalized=normalize_membership_id(membership_id),
            name=name,
            phone=phone,
            status=status.value,
            voting_location=voting_location,
            **fields,
        )
        async_session.add(voter)
        await async_session.commit()
        await async_session.refresh(voter)
        return voter

    return _make


@pytest.fixture
def make_candidate(async_session: AsyncSession) -> Callable[..., Awaitable[Candidate]]:
    """Insert a candidate directly, regardless of the election phase."""

    async def _make(name: str, position: str, *, scope: str = "all", party: str | None = None) -> Candidate:
        candidate = Candidate(id=uuid.uuid4(), name=name, position=position, scope=scope, party=party)
        async_session.add(candidate)
        await async_session.commit()
        await async_session.refresh(candidate)
        return candidate

    return _make
