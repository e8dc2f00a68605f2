"""Tests for the console form builder endpoints."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.services import form_service


def _iso(dt: datetime) -> str:
    return dt.isoformat()


@pytest.mark.asyncio
async def test_console_requires_session(client):
    res = await client.get("/admin/recruitment-forms")
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_mutations_require_csrf_header(authed_client, form_payload):
    res = await authed_client.post(
        "/admin/recruitment-forms",
        json=form_payload(),
        headers={"X-Requested-With": ""},
    )
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_create_and_read_form(authed_client, form_payload, editor_auth):
    res = await authed_client.post("/admin/recruitment-forms", json=form_payload())
    assert res.status_code == 201
    body = res.json()
    assert body["title"]["en"] == "Volunteer Intake"
    assert body["availability"] == "open"
    assert body["current_responses"] == 0
    assert body["field_count"] == 7
    assert [f["order"] for f in body["fields"]] == [1, 2, 3, 4, 5, 6, 7]
    assert body["created_by_user_id"] == str(editor_auth.user_id)

    detail = await authed_client.get(f"/admin/recruitment-forms/{body['id']}")
    assert detail.status_code == 200
    assert detail.json()["fields"][5]["options"][0]["value"] == "teamwork"


@pytest.mark.asyncio
async def test_invalid_schema_is_rejected_with_every_error(authed_client, form_payload):
    payload = form_payload(
        fields=[
            {"id": "dup", "type": "text", "label": "A"},
            {"id": "dup", "type": "select", "label": "B"},
        ]
    )
    res = await authed_client.post("/admin/recruitment-forms", json=payload)
    assert res.status_code == 422
    codes = {e["code"] for e in res.json()["detail"]["errors"]}
    assert codes == {"duplicate_field_id", "missing_options"}


@pytest.mark.asyncio
async def test_validate_endpoint_does_not_save(authed_client, db, form_payload):
    res = await authed_client.post("/admin/recruitment-forms/validate", json=form_payload(fields=[]))
    assert res.status_code == 200
    assert res.json()["valid"] is False
    assert res.json()["errors"][0]["code"] == "empty_schema"

    ok = await authed_client.post("/admin/recruitment-forms/validate", json=form_payload())
    assert ok.json() == {"valid": True, "errors": []}
    assert form_service.form_stats(db)["total_forms"] == 0


@pytest.mark.asyncio
async def test_overlapping_project_forms_conflict(authed_client, form_payload):
    now = datetime.now(timezone.utc)
    first = form_payload(
        project_item_id="proj-1",
        start_date=_iso(now),
        end_date=_iso(now + timedelta(days=10)),
    )
    assert (await authed_client.post("/admin/recruitment-forms", json=first)).status_code == 201

    overlapping = form_payload(
        project_item_id="proj-1",
        start_date=_iso(now + timedelta(days=5)),
        end_date=_iso(now + timedelta(days=15)),
    )
    res = await authed_client.post("/admin/recruitment-forms", json=overlapping)
    assert res.status_code == 409

    later = form_payload(
        project_item_id="proj-1",
        start_date=_iso(now + timedelta(days=11)),
        end_date=_iso(now + timedelta(days=20)),
    )
    assert (await authed_client.post("/admin/recruitment-forms", json=later)).status_code == 201


@pytest.mark.asyncio
async def test_partial_update_only_touches_sent_keys(authed_client, form_payload):
    created = (await authed_client.post("/admin/recruitment-forms", json=form_payload(max_responses=5))).json()

    res = await authed_client.put(
        f"/admin/recruitment-forms/{created['id']}",
        json={"is_active": False},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["is_active"] is False
    assert body["availability"] == "inactive"
    assert body["max_responses"] == 5
    assert body["title"] == created["title"]

    cleared = await authed_client.put(
        f"/admin/recruitment-forms/{created['id']}",
        json={"max_responses": None},
    )
    assert cleared.json()["max_responses"] is None


@pytest.mark.asyncio
async def test_update_revalidates_schema(authed_client, form_payload):
    created = (await authed_client.post("/admin/recruitment-forms", json=form_payload())).json()
    res = await authed_client.put(
        f"/admin/recruitment-forms/{created['id']}",
        json={"fields": [{"id": "a::b", "type": "text", "label": "A"}]},
    )
    assert res.status_code == 422
    assert res.json()["detail"]["errors"][0]["code"] == "reserved_delimiter"


@pytest.mark.asyncio
async def test_list_filters_and_search(authed_client, form_payload):
    await authed_client.post("/admin/recruitment-forms", json=form_payload())
    await authed_client.post(
        "/admin/recruitment-forms",
        json=form_payload(title={"en": "Film Crew", "ta": "படக்குழு"}, role="crew"),
    )

    crew = (await authed_client.get("/admin/recruitment-forms", params={"role": "crew"})).json()
    assert crew["total"] == 1
    assert crew["items"][0]["title"]["en"] == "Film Crew"

    found = (await authed_client.get("/admin/recruitment-forms", params={"search": "volunteer"})).json()
    assert [f["title"]["en"] for f in found["items"]] == ["Volunteer Intake"]

    everything = (await authed_client.get("/admin/recruitment-forms", params={"per_page": 1})).json()
    assert everything["total"] == 2
    assert everything["pages"] == 2
    assert len(everything["items"]) == 1


@pytest.mark.asyncio
async def test_stats(authed_client, form_payload):
    await authed_client.post("/admin/recruitment-forms", json=form_payload())
    await authed_client.post("/admin/recruitment-forms", json=form_payload(is_active=False))
    stats = (await authed_client.get("/admin/recruitment-forms/stats")).json()
    assert stats == {
        "total_forms": 2,
        "active_forms": 1,
        "total_submissions": 0,
        "average_field_count": 7.0,
    }


@pytest.mark.asyncio
async def test_only_admins_delete_forms(authed_client, admin_client, form_payload):
    created = (await authed_client.post("/admin/recruitment-forms", json=form_payload())).json()

    denied = await authed_client.delete("/admin/recruitment-forms", params={"id": created["id"]})
    assert denied.status_code == 403

    res = await admin_client.delete("/admin/recruitment-forms", params={"id": created["id"]})
    assert res.status_code == 200
    assert (await admin_client.get(f"/admin/recruitment-forms/{created['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_unknown_form_is_404(authed_client):
    res = await authed_client.get(f"/admin/recruitment-forms/{uuid.uuid4()}")
    assert res.status_code == 404
