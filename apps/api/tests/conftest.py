"""Shared test fixtures for the CompTracker API test suite."""

import uuid
from collections.abc import AsyncGenerator
from datetime import date
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import comptracker.models  # noqa: F401  register all models on Base.metadata
from comptracker.auth.dependencies import get_current_user
from comptracker.core.database import Base, get_db
from comptracker.main import app
from comptracker.models.compliance import CompanyDocument, RegulatoryRequirement
from comptracker.models.core import Company, User, UserRoleAssignment
from comptracker.models.enums import ComplianceType, CompanyRole, RequirementStatus
from comptracker.schemas.auth import CurrentUser

SAMPLE_COMPANY_ID = uuid.UUID("00000000-0000-0000-0000-0000000000c1")
OTHER_COMPANY_ID = uuid.UUID("00000000-0000-0000-0000-0000000000c2")
ADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
EDITOR_USER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000e1")
VIEWER_USER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000f1")
SUPERADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000d1")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ── Database (in-memory SQLite) ───────────────────────────────────────────


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db(engine) -> AsyncGenerator[AsyncSession]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


# ── HTTP client ───────────────────────────────────────────────────────────


@pytest.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient]:
    async def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Authenticate subsequent requests as the given CurrentUser."""

    def _login(user: CurrentUser) -> CurrentUser:
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


# ── Sample data ───────────────────────────────────────────────────────────


def current_user(user_id: uuid.UUID, email: str = "user@example.com") -> CurrentUser:
    return CurrentUser(user_id=user_id, email=email, full_name="Test User")


def make_requirement(**overrides) -> SimpleNamespace:
    """Plain requirement double for tests that do not touch the database."""
    values = dict(
        id=uuid.uuid4(),
        company_id=SAMPLE_COMPANY_ID,
        requirement="GST Return Filing",
        category="Tax",
        compliance_type=ComplianceType.MONTHLY.value,
        year_type=None,
        due_date=date(2025, 4, 20),
        status=RequirementStatus.PENDING.value,
        status_reason=None,
        required_documents=[],
        filed_on=None,
        filed_by=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def make_document(document_type: str, period_key: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(document_type=document_type, period_key=period_key)


@pytest.fixture
async def seeded(db: AsyncSession) -> SimpleNamespace:
    """Two companies, one user per role, and a superadmin."""
    company = Company(id=SAMPLE_COMPANY_ID, name="Acme Pvt Ltd", year_type="FY", entity_type="Private Limited")
    other = Company(id=OTHER_COMPANY_ID, name="Other Co", year_type="CY")
    admin = User(id=ADMIN_USER_ID, email="admin@acme.test", full_name="Asha Admin")
    editor = User(id=EDITOR_USER_ID, email="editor@acme.test", full_name="Eli Editor")
    viewer = User(id=VIEWER_USER_ID, email="viewer@acme.test", full_name="Vic Viewer")
    superadmin = User(id=SUPERADMIN_USER_ID, email="root@platform.test", full_name="Platform Root")
    db.add_all([company, other, admin, editor, viewer, superadmin])
    db.add_all([
        UserRoleAssignment(user_id=ADMIN_USER_ID, company_id=SAMPLE_COMPANY_ID, role=CompanyRole.ADMIN.value),
        UserRoleAssignment(user_id=EDITOR_USER_ID, company_id=SAMPLE_COMPANY_ID, role=CompanyRole.EDITOR.value),
        UserRoleAssignment(user_id=VIEWER_USER_ID, company_id=SAMPLE_COMPANY_ID, role=CompanyRole.VIEWER.value),
        UserRoleAssignment(user_id=SUPERADMIN_USER_ID, company_id=None, role=CompanyRole.SUPERADMIN.value),
    ])
    await db.commit()
    return SimpleNamespace(
        company=company,
        other=other,
        admin=current_user(ADMIN_USER_ID, admin.email),
        editor=current_user(EDITOR_USER_ID, editor.email),
        viewer=current_user(VIEWER_USER_ID, viewer.email),
        superadmin=current_user(SUPERADMIN_USER_ID, superadmin.email),
    )


async def add_requirement(db: AsyncSession, **overrides) -> RegulatoryRequirement:
    values = dict(
        company_id=SAMPLE_COMPANY_ID,
        category="Tax",
        requirement="GST Return Filing",
        compliance_type=ComplianceType.MONTHLY.value,
        due_date=date(2025, 4, 20),
        status=RequirementStatus.PENDING.value,
        required_documents=[],
    )
    values.update(overrides)
    requirement = RegulatoryRequirement(**values)
    db.add(requirement)
    await db.commit()
    return requirement


async def add_document(
    db: AsyncSession, document_type: str, period_key: str | None = None, company_id: uuid.UUID = SAMPLE_COMPANY_ID
) -> CompanyDocument:
    doc = CompanyDocument(company_id=company_id, document_type=document_type, period_key=period_key)
    db.add(doc)
    await db.commit()
    return doc
