import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-smart-trash-suite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CLASSIFICATION_QUEUE_ENABLED", "false")
os.environ.setdefault("APP_TIMEZONE", "UTC")

import uuid
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.security import create_access_token
from app.database import Base, get_db
from app.main import app
from app.models.company import Company, user_employee_companies
from app.models.enums import Role
from app.models.user import User
from app.workers.classification_queue import classification_queue


@pytest.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite emits its own BEGIN lazily, which breaks SAVEPOINT; take that over.
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    classification_queue.clear()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    classification_queue.clear()


@pytest.fixture
def make_user(db_session):
    async def _make_user(role: Role = Role.EMPLOYEE, **fields) -> User:
        fields.setdefault("email", f"{uuid.uuid4().hex[:10]}@trash.test")
        fields.setdefault("full_name", "Test User")
        user = User(role=role, is_active=True, **fields)
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest.fixture
async def company_admin(make_user) -> User:
    return await make_user(Role.COMPANY_ADMIN, full_name="Company Admin")


@pytest.fixture
async def company(db_session, company_admin) -> Company:
    company = Company(name="Green Office", created_by_id=company_admin.id)
    db_session.add(company)
    await db_session.flush()
    return company


@pytest.fixture
def company_member(db_session):
    async def _company_member(user: User, company: Company) -> User:
        await db_session.execute(user_employee_companies.insert().values(user_id=user.id, company_id=company.id))
        return user

    return _company_member


@pytest.fixture
async def employee(make_user, company, company_member) -> User:
    user = await make_user(Role.EMPLOYEE, full_name="Employee One")
    return await company_member(user, company)


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.email)}"}

    return _auth_headers
