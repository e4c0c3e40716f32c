"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time; these must be in place before any
# application module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("PRIVATE_JOB_DENIAL", "not_found")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.authorization.lifecycle import JobStatus
from core.authorization.roles import Caller, Role
from core.security import hash_password
from database.engine import Base
from database.models import Institution, InstitutionKind, Job, Membership, User
from tests.factories import RecordingGateway


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def superadmin():
    return Caller.build(1, [(99, Role.SUPERADMIN)])


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


class Seeder:
    """Inserts rows directly, bypassing services and permission checks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def institution(
        self,
        name: str,
        kind: InstitutionKind = InstitutionKind.UNIVERSITY,
        is_active: bool = True,
    ) -> Institution:
        institution = Institution(name=name, kind=kind, is_active=is_active)
        self.db.add(institution)
        await self.db.flush()
        await self.db.refresh(institution)
        return institution

    async def user(
        self,
        email: str,
        password: str = "senha1234",
        active_institution_id: Optional[int] = None,
    ) -> User:
        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=email.split("@")[0],
            last_name="",
            active_institution_id=active_institution_id,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def member(self, user: User, institution: Institution, role: Role) -> Membership:
        membership = Membership(user_id=user.id, institution_id=institution.id, role=role)
        self.db.add(membership)
        await self.db.flush()
        await self.db.refresh(membership)
        return membership

    async def job(
        self,
        institution: Institution,
        author: Optional[User],
        status: JobStatus = JobStatus.OPEN,
        is_public: bool = False,
        title: str = "Vaga",
    ) -> Job:
        job = Job(
            title=title,
            description="",
            institution_id=institution.id,
            author_id=author.id if author else None,
            status=status,
            is_public=is_public,
        )
        self.db.add(job)
        await self.db.flush()
        await self.db.refresh(job)
        return job

    async def commit(self) -> None:
        await self.db.commit()


@pytest.fixture
def seed(db):
    return Seeder(db)


class ApiHarness:
    """TestClient over the real app with the database and caller stubbed out."""

    def __init__(self, app, client):
        self.app = app
        self.client = client

    def act_as(self, caller: Optional[Caller]) -> None:
        from api.dependencies import get_optional_caller

        self.app.dependency_overrides[get_optional_caller] = lambda: caller


@pytest.fixture
def api(gateway):
    from fastapi.testclient import TestClient

    from api.main import app
    from api.services.notifications import get_notification_gateway
    from database.engine import get_db

    async def no_db():
        yield None

    app.dependency_overrides[get_db] = no_db
    app.dependency_overrides[get_notification_gateway] = lambda: gateway
    harness = ApiHarness(app, TestClient(app, raise_server_exceptions=False))
    harness.act_as(None)
    yield harness
    app.dependency_overrides.clear()
