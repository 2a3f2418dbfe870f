"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own SQLite file (aiosqlite) with the schema created from
the models, so tests are isolated and need no running PostgreSQL or Redis.
Tokens are minted with the shared-secret signer.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_ENABLED"] = "false"
os.environ["AUTH0_DOMAIN"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"

from typing import AsyncGenerator, Callable

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ticket_manager.main import app
from ticket_manager.core.security import Principal, create_access_token
from ticket_manager.db.session import build_engine, get_db, init_db
from ticket_manager.models.seat import Seat
from ticket_manager.models.user import User
from ticket_manager.schemas.game import GameData
from ticket_manager.services.game_service import upsert_game
from ticket_manager.services.identity_service import resolve_user

HOME_TEAM_ID = 137
AWAY_TEAM_ID = 119


def make_game_data(game_pk: int, official_date: str, home: bool = True) -> GameData:
    """A regular-season game as the schedule importer would produce it."""
    home_id, away_id = (HOME_TEAM_ID, AWAY_TEAM_ID) if home else (AWAY_TEAM_ID, HOME_TEAM_ID)
    return GameData(
        game_pk=game_pk,
        game_type="R",
        season=official_date[:4],
        game_date=f"{official_date}T20:15:00Z",
        official_date=official_date,
        status_abstract="Preview",
        status_detailed="Scheduled",
        status_code="S",
        away_team_id=away_id,
        away_team_name="Visitors" if home else "San Francisco Giants",
        home_team_id=home_id,
        home_team_name="San Francisco Giants" if home else "Hosts",
        venue_id=2395,
        venue_name="Oracle Park" if home else "Away Park",
    )


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tickets.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def add_game(db_session: AsyncSession) -> Callable:
    async def _add(game_pk: int, official_date: str = "2026-04-10", home: bool = True) -> int:
        await upsert_game(db_session, make_game_data(game_pk, official_date, home))
        await db_session.commit()
        return game_pk

    return _add


@pytest_asyncio.fixture
async def add_user(db_session: AsyncSession) -> Callable:
    async def _add(sub: str, name: str = "Member", roles: list[str] | None = None) -> User:
        user = await resolve_user(
            db_session,
            Principal(sub=sub, email=f"{sub}@example.com", name=name, roles=roles or []),
        )
        await db_session.commit()
        return user

    return _add


@pytest_asyncio.fixture
async def home_game(add_game) -> int:
    return await add_game(123, "2026-04-10")


@pytest_asyncio.fixture
async def seat(db_session: AsyncSession) -> Seat:
    seat = Seat(section="127", row="A", seat="3")
    db_session.add(seat)
    await db_session.commit()
    return seat


@pytest_asyncio.fixture
async def member(add_user) -> User:
    return await add_user("auth0|member", name="Morgan Member")


@pytest_asyncio.fixture
async def other_member(add_user) -> User:
    return await add_user("auth0|other", name="Olivia Other")


@pytest_asyncio.fixture
async def admin(add_user) -> User:
    return await add_user("auth0|admin", name="Alex Admin", roles=["admin"])


def auth_headers(sub: str, roles: list[str] | None = None, name: str = "Member") -> dict:
    token = create_access_token(sub, email=f"{sub}@example.com", name=name, roles=roles)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def member_headers(member: User) -> dict:
    return auth_headers(member.external_sub, name=member.name)


@pytest_asyncio.fixture
async def admin_headers(admin: User) -> dict:
    return auth_headers(admin.external_sub, roles=["admin"], name=admin.name)


@pytest_asyncio.fixture
async def headers_for() -> Callable:
    return auth_headers
