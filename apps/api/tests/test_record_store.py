"""Tests for SqlAlchemyRecordStore over an in-memory SQLite database."""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from comptracker.core.errors import StoreWriteFailed
from comptracker.models.compliance import RegulatoryRequirement
from comptracker.models.core import EmailBatchQueueItem, Notification, User, UserRoleAssignment
from comptracker.models.enums import CompanyRole, YearType
from comptracker.modules.compliance.store import SqlAlchemyRecordStore, StatusUpdate, resolve_year_type
from conftest import (
    ADMIN_USER_ID,
    EDITOR_USER_ID,
    OTHER_COMPANY_ID,
    SAMPLE_COMPANY_ID,
    SUPERADMIN_USER_ID,
    VIEWER_USER_ID,
    add_document,
    add_requirement,
)

pytestmark = pytest.mark.anyio


async def test_get_requirement_skips_soft_deleted(db, seeded):
    live = await add_requirement(db)
    gone = await add_requirement(db, is_deleted=True)
    store = SqlAlchemyRecordStore(db)
    assert (await store.get_requirement(live.id)).id == live.id
    assert await store.get_requirement(gone.id) is None


async def test_company_year_convention(db, seeded):
    store = SqlAlchemyRecordStore(db)
    assert await store.get_company_year_convention(SAMPLE_COMPANY_ID) == "FY"
    assert await store.get_company_year_convention(OTHER_COMPANY_ID) == "CY"


async def test_list_uploaded_documents_is_company_scoped(db, seeded):
    await add_document(db, "GST Return", "2025-04")
    await add_document(db, "PAN Card", None)
    await add_document(db, "Other Co Return", "2025-04", company_id=OTHER_COMPANY_ID)
    docs = await SqlAlchemyRecordStore(db).list_uploaded_documents(SAMPLE_COMPANY_ID)
    assert sorted(d.document_type for d in docs) == ["GST Return", "PAN Card"]


async def test_persist_status_writes_single_row(db, seeded):
    req = await add_requirement(db)
    untouched = await add_requirement(db, requirement="TDS Return")
    filed_on = datetime(2025, 4, 25, 10, 0, tzinfo=timezone.utc)

    await SqlAlchemyRecordStore(db).persist_status(
        req.id,
        StatusUpdate(
            status="completed",
            status_reason=None,
            filed_on=filed_on,
            filed_by=EDITOR_USER_ID,
            updated_by=EDITOR_USER_ID,
        ),
    )

    rows = {
        r.id: r
        for r in (
            await db.execute(select(RegulatoryRequirement).execution_options(populate_existing=True))
        ).scalars()
    }
    assert rows[req.id].status == "completed"
    assert rows[req.id].filed_by == EDITOR_USER_ID
    assert rows[req.id].filed_on is not None
    assert rows[req.id].updated_by == EDITOR_USER_ID
    assert rows[untouched.id].status == "pending"


async def test_persist_status_for_missing_row_raises(db, seeded):
    gone = await add_requirement(db, is_deleted=True)
    store = SqlAlchemyRecordStore(db)
    change = StatusUpdate(
        status="completed",
        status_reason=None,
        filed_on=None,
        filed_by=None,
        updated_by=EDITOR_USER_ID,
    )

    for requirement_id in (uuid.uuid4(), gone.id):
        with pytest.raises(StoreWriteFailed) as exc:
            await store.persist_status(requirement_id, change)
        assert exc.value.details == {"requirement_id": str(requirement_id)}

    row = (
        await db.execute(
            select(RegulatoryRequirement)
            .where(RegulatoryRequirement.id == gone.id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert row.status == "pending"


async def test_list_company_admins_includes_only_admin_roles(db, seeded):
    admins = await SqlAlchemyRecordStore(db).list_company_admins(SAMPLE_COMPANY_ID)
    assert [a.user_id for a in admins] == [ADMIN_USER_ID]
    assert admins[0].email == "admin@acme.test"


async def test_list_company_admins_skips_inactive_users(db, seeded):
    user = await db.get(User, ADMIN_USER_ID)
    user.is_active = False
    await db.commit()
    assert await SqlAlchemyRecordStore(db).list_company_admins(SAMPLE_COMPANY_ID) == []


async def test_company_scoped_superadmin_row_counts_as_admin(db, seeded):
    db.add(UserRoleAssignment(user_id=VIEWER_USER_ID, company_id=OTHER_COMPANY_ID, role="superadmin"))
    await db.commit()
    admins = await SqlAlchemyRecordStore(db).list_company_admins(OTHER_COMPANY_ID)
    assert [a.user_id for a in admins] == [VIEWER_USER_ID]


async def test_write_notification_and_enqueue_email(db, seeded):
    store = SqlAlchemyRecordStore(db)
    await store.write_notification(
        SAMPLE_COMPANY_ID, ADMIN_USER_ID, "status_change", "Title", "Body", {"requirement_id": "r1"}
    )
    await store.enqueue_email(ADMIN_USER_ID, "admin@acme.test", SAMPLE_COMPANY_ID, {"new_status": "completed"})

    notification = (await db.execute(select(Notification))).scalar_one()
    assert notification.metadata_ == {"requirement_id": "r1"}
    assert notification.is_read is False

    queued = (await db.execute(select(EmailBatchQueueItem))).scalar_one()
    assert queued.email_type == "status_change"
    assert queued.processed_at is None
    assert queued.payload == {"new_status": "completed"}


class TestGetUserRole:
    async def test_company_role(self, db, seeded):
        store = SqlAlchemyRecordStore(db)
        assert await store.get_user_role(EDITOR_USER_ID, SAMPLE_COMPANY_ID) == CompanyRole.EDITOR
        assert await store.get_user_role(VIEWER_USER_ID, SAMPLE_COMPANY_ID) == CompanyRole.VIEWER

    async def test_no_membership(self, db, seeded):
        assert await SqlAlchemyRecordStore(db).get_user_role(EDITOR_USER_ID, OTHER_COMPANY_ID) is None

    async def test_platform_superadmin_applies_everywhere(self, db, seeded):
        store = SqlAlchemyRecordStore(db)
        assert await store.get_user_role(SUPERADMIN_USER_ID, OTHER_COMPANY_ID) == CompanyRole.SUPERADMIN
        assert await store.get_user_role(SUPERADMIN_USER_ID, None) == CompanyRole.SUPERADMIN

    async def test_platform_lookup_without_superadmin(self, db, seeded):
        assert await SqlAlchemyRecordStore(db).get_user_role(ADMIN_USER_ID, None) is None


@pytest.mark.parametrize(
    "requirement,company,default,expected",
    [
        ("CY", "FY", "FY", YearType.CY),
        (None, "CY", "FY", YearType.CY),
        (None, None, "FY", YearType.FY),
        ("fy", None, "CY", YearType.FY),
        ("XX", "CY", "FY", YearType.CY),
        (None, None, "", YearType.FY),
    ],
)
def test_resolve_year_type(requirement, company, default, expected):
    assert resolve_year_type(requirement, company, default) == expected
