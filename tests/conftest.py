"""테스트 인프라 — 테스트 DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — Test database, session, and httpx client fixtures.
Each test gets a fresh schema. SQLite in memory (aiosqlite) by default;
set TEST_DATABASE_URL to run against PostgreSQL instead.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 — register all models with metadata
from app.models.constants import Role
from app.utils.jwt import create_access_token

# ---------------------------------------------------------------------------
# 테스트 DB 설정
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 테스트마다 스키마를 새로 만듭니다."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        eng = create_async_engine(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        eng = create_async_engine(TEST_DATABASE_URL, pool_pre_ping=True)

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다.

    The override rolls back on errors exactly like ``get_db``.
    """
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성 (커밋하여 요청 롤백의 영향을 받지 않음)
# ---------------------------------------------------------------------------
async def make_user(db: AsyncSession, username: str, role: str, factory=None):
    from app.models.user import User
    user = User(
        factory_id=factory.id if factory else None,
        username=username,
        full_name=username.replace("_", " ").title(),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    db.expunge(user)
    return user


async def make_equipment(db: AsyncSession, factory, name: str, location: str = "A栋1层", status: str = "NORMAL"):
    from app.models.equipment import Equipment
    equipment = Equipment(
        factory_id=factory.id,
        name=name,
        qr_code=f"QR-{name}",
        location=location,
        status=status,
    )
    db.add(equipment)
    await db.commit()
    await db.refresh(equipment)
    db.expunge(equipment)
    return equipment


@pytest_asyncio.fixture
async def factory(db: AsyncSession):
    """테스트 공장을 생성합니다."""
    from app.models.factory import Factory
    f = Factory(name="一号厂区", address="1 Test Road")
    db.add(f)
    await db.commit()
    await db.refresh(f)
    db.expunge(f)
    return f


@pytest_asyncio.fixture
async def other_factory(db: AsyncSession):
    """다른 공장 — 범위 밖 접근 테스트용."""
    from app.models.factory import Factory
    f = Factory(name="二号厂区", address="2 Test Road")
    db.add(f)
    await db.commit()
    await db.refresh(f)
    db.expunge(f)
    return f


@pytest_asyncio.fixture
async def super_admin(db: AsyncSession):
    return await make_user(db, "super_admin", Role.SUPER_ADMIN)


@pytest_asyncio.fixture
async def factory_admin(db: AsyncSession, factory):
    return await make_user(db, "factory_admin", Role.FACTORY_ADMIN, factory)


@pytest_asyncio.fixture
async def other_admin(db: AsyncSession, other_factory):
    return await make_user(db, "other_admin", Role.FACTORY_ADMIN, other_factory)


@pytest_asyncio.fixture
async def inspector(db: AsyncSession, factory):
    return await make_user(db, "inspector", Role.INSPECTOR, factory)


@pytest_asyncio.fixture
async def other_inspector(db: AsyncSession, factory):
    """같은 공장의 다른 점검원."""
    return await make_user(db, "other_inspector", Role.INSPECTOR, factory)


@pytest_asyncio.fixture
async def equipment(db: AsyncSession, factory):
    """테스트 장비 (소화기)."""
    return await make_equipment(db, factory, "灭火器-012")


def make_token(user) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({"sub": str(user.id), "role": user.role})


@pytest.fixture
def super_admin_token(super_admin) -> str:
    return make_token(super_admin)


@pytest.fixture
def admin_token(factory_admin) -> str:
    return make_token(factory_admin)


@pytest.fixture
def other_admin_token(other_admin) -> str:
    return make_token(other_admin)


@pytest.fixture
def inspector_token(inspector) -> str:
    return make_token(inspector)


@pytest.fixture
def other_inspector_token(other_inspector) -> str:
    return make_token(other_inspector)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def fetch(db: AsyncSession, model, record_id):
    """DB에서 레코드를 새로 읽어옵니다 (세션 캐시 무시)."""
    return await db.get(model, record_id, populate_existing=True)


async def count_rows(db: AsyncSession, model) -> int:
    from sqlalchemy import func, select
    return (await db.execute(select(func.count()).select_from(model))).scalar() or 0
