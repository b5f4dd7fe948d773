"""HTTP tests for the compliance requirements API."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from comptracker.models.compliance import RegulatoryRequirement
from comptracker.models.core import Notification
from conftest import OTHER_COMPANY_ID, SAMPLE_COMPANY_ID, add_document, add_requirement

pytestmark = pytest.mark.anyio

BASE = "/v1/compliance"


# ── Period key ────────────────────────────────────────────────────────────


async def test_period_key_endpoint(client: AsyncClient, seeded, login):
    login(seeded.viewer)
    resp = await client.get(
        f"{BASE}/period-key",
        params={"compliance_type": "annual", "date": "2025-02-01", "year_type": "FY"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["period_key"] == "FY-2024"
    assert data["period_start"] == "2024-04-01"
    assert data["period_end"] == "2025-03-31"
    assert data["financial_year"] == "FY 2024-25"


async def test_period_key_rejects_unknown_type(client: AsyncClient, seeded, login):
    login(seeded.viewer)
    resp = await client.get(f"{BASE}/period-key", params={"compliance_type": "weekly", "date": "2025-02-01"})
    assert resp.status_code == 422


async def test_requests_without_token_are_rejected(client: AsyncClient, seeded):
    resp = await client.get(f"{BASE}/companies/{SAMPLE_COMPANY_ID}/requirements")
    assert resp.status_code == 401
    assert resp.json()["error"] == "not_authenticated"


# ── CRUD ──────────────────────────────────────────────────────────────────


async def test_create_and_list_requirements(client: AsyncClient, seeded, login):
    login(seeded.editor)
    resp = await client.post(
        f"{BASE}/companies/{SAMPLE_COMPANY_ID}/requirements",
        json={
            "category": "Tax",
            "requirement": "GST Return Filing",
            "compliance_type": "monthly",
            "due_date": "2025-04-20",
            "required_documents": ["GST Return"],
            "is_critical": True,
        },
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["status"] == "not_started"
    assert created["compliance_type"] == "monthly"
    assert created["required_documents"] == ["GST Return"]

    listed = await client.get(f"{BASE}/companies/{SAMPLE_COMPANY_ID}/requirements")
    assert listed.status_code == 200
    body = listed.json()
    assert [item["id"] for item in body["items"]] == [created["id"]]
    assert body["summary"]["total"] == 1
    assert body["summary"]["not_started"] == 1
    assert body["summary"]["critical_open"] == 1


async def test_viewer_cannot_create(client: AsyncClient, seeded, login):
    login(seeded.viewer)
    resp = await client.post(
        f"{BASE}/companies/{SAMPLE_COMPANY_ID}/requirements",
        json={"category": "Tax", "requirement": "TDS", "due_date": "2025-05-07"},
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "permission_denied"


async def test_non_member_cannot_list(client: AsyncClient, seeded, login):
    login(seeded.editor)
    resp = await client.get(f"{BASE}/companies/{OTHER_COMPANY_ID}/requirements")
    assert resp.status_code == 403


async def test_superadmin_can_list_any_company(client: AsyncClient, db, seeded, login):
    await add_requirement(db, company_id=OTHER_COMPANY_ID, requirement="Annual Return")
    login(seeded.superadmin)
    resp = await client.get(f"{BASE}/companies/{OTHER_COMPANY_ID}/requirements")
    assert resp.status_code == 200
    assert [item["requirement"] for item in resp.json()["items"]] == ["Annual Return"]


async def test_list_filters_by_status(client: AsyncClient, db, seeded, login):
    await add_requirement(db, requirement="A", status="pending")
    await add_requirement(db, requirement="B", status="overdue")
    login(seeded.viewer)
    resp = await client.get(f"{BASE}/companies/{SAMPLE_COMPANY_ID}/requirements", params={"status": "overdue"})
    assert [item["requirement"] for item in resp.json()["items"]] == ["B"]


async def test_get_unknown_requirement_returns_404(client: AsyncClient, seeded, login):
    login(seeded.viewer)
    resp = await client.get(f"{BASE}/requirements/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


async def test_patch_edits_fields_but_not_status(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db)
    login(seeded.editor)
    resp = await client.patch(
        f"{BASE}/requirements/{req.id}",
        json={"penalty": "INR 50/day", "status": "completed"},
    )
    assert resp.status_code == 200
    assert resp.json()["penalty"] == "INR 50/day"
    assert resp.json()["status"] == "pending"


@pytest.mark.parametrize(
    "body",
    [
        {"due_date": None},
        {"category": None},
        {"requirement": None},
        {"compliance_type": None},
        {"required_documents": None},
        {"is_critical": None},
        {"category": ""},
    ],
)
async def test_patch_rejects_null_for_required_columns(client: AsyncClient, db, seeded, login, body):
    req = await add_requirement(db)
    login(seeded.editor)
    resp = await client.patch(f"{BASE}/requirements/{req.id}", json=body)
    assert resp.status_code == 422

    row = (
        await db.execute(
            select(RegulatoryRequirement)
            .where(RegulatoryRequirement.id == req.id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert row.category == "Tax"
    assert row.due_date.isoformat() == "2025-04-20"


async def test_patch_allows_clearing_optional_fields(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db, penalty="INR 50/day")
    login(seeded.editor)
    resp = await client.patch(f"{BASE}/requirements/{req.id}", json={"penalty": None, "due_date": "2025-06-30"})
    assert resp.status_code == 200
    assert resp.json()["penalty"] is None
    assert resp.json()["due_date"] == "2025-06-30"


async def test_delete_requires_admin_and_soft_deletes(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db)

    login(seeded.editor)
    assert (await client.delete(f"{BASE}/requirements/{req.id}")).status_code == 403

    login(seeded.admin)
    assert (await client.delete(f"{BASE}/requirements/{req.id}")).status_code == 204
    assert (await client.get(f"{BASE}/requirements/{req.id}")).status_code == 404

    row = (await db.execute(select(RegulatoryRequirement).where(RegulatoryRequirement.id == req.id))).scalar_one()
    assert row.is_deleted is True


# ── Status endpoint ───────────────────────────────────────────────────────


async def test_status_completed_without_documents(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db)
    login(seeded.editor)
    resp = await client.patch(f"{BASE}/requirements/{req.id}/status", json={"status": "completed"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "completed"
    assert data["completion_blocked"] is False
    assert data["filed_on"] is not None

    notifications = (await db.execute(select(Notification))).scalars().all()
    assert [n.type for n in notifications] == ["status_change"]


async def test_status_completion_blocked_by_missing_document(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db, required_documents=["GST Return", "Challan Receipt"])
    await add_document(db, "GST Return", "2025-04")
    login(seeded.editor)

    resp = await client.patch(f"{BASE}/requirements/{req.id}/status", json={"status": "completed"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "pending"
    assert data["completion_blocked"] is True
    assert data["missing_documents"] == ["Challan Receipt"]
    assert data["status_reason"] == "Missing documents: Challan Receipt"
    assert data["period_key"] == "2025-04"

    await add_document(db, "challan receipt", "2025-04")
    resp = await client.patch(f"{BASE}/requirements/{req.id}/status", json={"status": "completed"})
    assert resp.json()["status"] == "completed"
    assert resp.json()["status_reason"] is None


async def test_illegal_transition_returns_409_envelope(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db, status="completed")
    login(seeded.editor)
    resp = await client.patch(f"{BASE}/requirements/{req.id}/status", json={"status": "overdue"})
    assert resp.status_code == 409
    body = resp.json()
    assert body["error"] == "invalid_transition"
    assert body["detail"]["allowed"] == ["pending"]


async def test_viewer_cannot_change_status(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db)
    login(seeded.viewer)
    resp = await client.patch(f"{BASE}/requirements/{req.id}/status", json={"status": "completed"})
    assert resp.status_code == 403


async def test_unknown_status_value_is_422(client: AsyncClient, db, seeded, login):
    req = await add_requirement(db)
    login(seeded.editor)
    resp = await client.patch(f"{BASE}/requirements/{req.id}/status", json={"status": "archived"})
    assert resp.status_code == 422


async def test_version_header_is_set(client: AsyncClient, seeded, login):
    login(seeded.viewer)
    resp = await client.get(f"{BASE}/period-key", params={"compliance_type": "monthly", "date": "2025-02-01"})
    assert resp.headers["X-API-Version"] == "v1"
