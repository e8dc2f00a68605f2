"""Tests for console moderation, analytics and CSV export."""

import uuid

import pytest

from app.core.config import settings
from app.db.enums import SubmissionStatus
from app.schemas.forms import FormCreate, SubmissionCreate
from app.services import form_service, form_submission_service, submission_codec
from app.db.models import RecruitmentSubmission


def _create_form(db, payload: dict):
    return form_service.create_form(db, uuid.uuid4(), FormCreate.model_validate(payload))


def _submit(db, form, email: str, name: str = "Anu", **answers):
    base = {"full_bio": "Hello", "skills": {"teamwork": "4", "comms": "5"}}
    base.update(answers)
    payload = SubmissionCreate.model_validate(
        {
            "applicant_name": name,
            "applicant_email": email,
            "answers": submission_codec.encode(base),
        }
    )
    return form_submission_service.create_submission(db, form, payload)


@pytest.mark.asyncio
async def test_list_responses_with_status_counts(authed_client, db, form_payload):
    form = _create_form(db, form_payload())
    first = _submit(db, form, "a@example.lk", name="Anu")
    _submit(db, form, "b@example.lk", name="Bala")
    form_submission_service.update_status(db, first, SubmissionStatus.APPROVED, None, None)

    res = await authed_client.get("/admin/recruitment-responses", params={"form_id": str(form.id)})
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 2
    assert [s["applicant_name"] for s in body["items"]] == ["Bala", "Anu"]
    assert body["status_counts"] == {"pending": 1, "approved": 1, "rejected": 0, "all": 2}

    approved = (
        await authed_client.get(
            "/admin/recruitment-responses",
            params={"form_id": str(form.id), "status": "approved"},
        )
    ).json()
    assert [s["applicant_name"] for s in approved["items"]] == ["Anu"]
    assert approved["status_counts"]["all"] == 2

    found = (await authed_client.get("/admin/recruitment-responses", params={"search": "bala"})).json()
    assert found["total"] == 1


@pytest.mark.asyncio
async def test_review_updates_status_and_notes(authed_client, db, form_payload, editor_auth):
    form = _create_form(db, form_payload())
    submission = _submit(db, form, "a@example.lk")

    res = await authed_client.put(
        f"/admin/recruitment-responses/{submission.id}",
        json={"status": "rejected", "review_notes": "Dates clash"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "rejected"
    assert body["review_notes"] == "Dates clash"
    assert body["reviewed_by_user_id"] == str(editor_auth.user_id)
    assert body["reviewed_at"] is not None

    back = await authed_client.put(
        f"/admin/recruitment-responses/{submission.id}",
        json={"status": "pending"},
    )
    assert back.json()["status"] == "pending"
    assert back.json()["review_notes"] == "Dates clash"


@pytest.mark.asyncio
async def test_deleting_a_response_frees_a_slot(authed_client, admin_client, db, form_payload):
    form = _create_form(db, form_payload(max_responses=1))
    submission = _submit(db, form, "a@example.lk")
    assert form_service.availability(form).value == "full"

    denied = await authed_client.delete("/admin/recruitment-responses", params={"id": str(submission.id)})
    assert denied.status_code == 403

    res = await admin_client.delete("/admin/recruitment-responses", params={"id": str(submission.id)})
    assert res.status_code == 200
    db.refresh(form)
    assert form.current_responses == 0
    assert form_service.availability(form).value == "open"


@pytest.mark.asyncio
async def test_deleting_a_form_removes_its_responses(admin_client, db, form_payload):
    form = _create_form(db, form_payload())
    _submit(db, form, "a@example.lk")
    _submit(db, form, "b@example.lk")

    res = await admin_client.delete("/admin/recruitment-forms", params={"id": str(form.id)})
    assert res.status_code == 200
    assert db.query(RecruitmentSubmission).count() == 0


@pytest.mark.asyncio
async def test_analytics_per_field(authed_client, db, form_payload):
    form = _create_form(db, form_payload())
    _submit(db, form, "a@example.lk", days=["sat", "sun"], energy="2")
    _submit(db, form, "b@example.lk", days=["sun"], energy="4", skills={"teamwork": "5", "comms": "5"})
    _submit(db, form, "c@example.lk", energy="3")

    res = await authed_client.get(f"/admin/recruitment-forms/{form.id}/analytics")
    assert res.status_code == 200
    body = res.json()
    assert body["submission_count"] == 3
    assert body["truncated"] is False
    by_id = {f["field_id"]: f for f in body["fields"]}

    assert by_id["days"]["frequencies"] == [{"name": "sun", "value": 2}, {"name": "sat", "value": 1}]
    assert by_id["energy"]["mean"] == 3
    assert by_id["energy"]["total"] == 3
    teamwork = next(r for r in by_id["skills"]["rows"] if r["row"] == "teamwork")
    assert teamwork["counts"] == {"4": 2, "5": 1}
    assert teamwork["label"] == "Teamwork"
    assert by_id["skills"]["columns"] == ["4", "5"]
    assert by_id["full_bio"]["values"] == ["Hello", "Hello", "Hello"]


@pytest.mark.asyncio
async def test_analytics_keep_the_newest_submissions_when_capped(authed_client, db, form_payload, monkeypatch):
    monkeypatch.setattr(settings, "ANALYTICS_MAX_SUBMISSIONS", 2)
    form = _create_form(db, form_payload())
    for i in range(3):
        _submit(db, form, f"a{i}@example.lk", full_bio=f"bio {i}")

    body = (await authed_client.get(f"/admin/recruitment-forms/{form.id}/analytics")).json()
    assert body["submission_count"] == 2
    assert body["total_submissions"] == 3
    assert body["truncated"] is True
    by_id = {f["field_id"]: f for f in body["fields"]}
    assert by_id["full_bio"]["values"] == ["bio 2", "bio 1"]
    assert by_id["full_bio"]["total"] == 2


@pytest.mark.asyncio
async def test_export_csv(authed_client, db, form_payload):
    form = _create_form(db, form_payload())
    _submit(db, form, "a@example.lk", name="Anu", full_bio='He said "hi"', days=["sat", "sun"])
    _submit(db, form, "b@example.lk", name="Bala")

    res = await authed_client.get(f"/admin/recruitment-forms/{form.id}/export")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert 'filename="Volunteer_Intake_responses.csv"' in res.headers["content-disposition"]

    lines = res.text.splitlines()
    assert lines[0] == (
        '"Submitted At","Name","Email","Phone","Status","About you","Available days",'
        '"Shirt size","Age","Energy","Skills","CV"'
    )
    assert '"Anu","a@example.lk","","pending","He said ""hi""","sat; sun"' in lines[1]
    assert '"teamwork: 4 | comms: 5"' in lines[1]
    assert '"Bala"' in lines[2]


@pytest.mark.asyncio
async def test_missing_response_is_404(authed_client, db):
    res = await authed_client.get(f"/admin/recruitment-responses/{uuid.uuid4()}")
    assert res.status_code == 404
