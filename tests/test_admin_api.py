import json

from app.core.ops_metrics import get_public_ops_metrics


def survey_payload(title="Customer feedback"):
    return {
        "title": title,
        "description": "Quarterly",
        "sections": [
            {"id": "s1", "title": "Rating", "questions": [
                {"id": "rate", "type": "likert-scale", "question": "Rate us", "required": True},
                {"id": "why", "type": "long-answer", "question": "Why so low?",
                 "conditional_logic": {"depends_on": "rate", "show_when": ["1", "2"], "operator": "equals"}},
            ]},
        ],
    }


def test_researcher_creates_and_reads_survey(client, researcher_headers):
    response = client.post("/admin/surveys", json=survey_payload(), headers=researcher_headers)

    assert response.status_code == 201
    created = response.json()
    assert len(created["shareable_id"]) == 12
    assert created["definition"]["sections"][0]["questions"][1]["conditional_logic"]["depends_on"] == "rate"

    detail = client.get(f"/admin/surveys/{created['id']}", headers=researcher_headers)
    assert detail.status_code == 200
    assert detail.json()["title"] == "Customer feedback"


def test_invalid_definition_is_422(client, researcher_headers):
    payload = survey_payload()
    payload["sections"][0]["questions"][1]["conditional_logic"]["depends_on"] = "nope"

    response = client.post("/admin/surveys", json=payload, headers=researcher_headers)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_unapproved_researcher_cannot_author(client, user_factory, headers_for):
    pending = user_factory("pending@surveyflow.org", is_approved=False)
    response = client.post("/admin/surveys", json=survey_payload(), headers=headers_for(pending))
    assert response.status_code == 403


def test_requires_authentication(client, db):
    assert client.get("/admin/surveys").status_code in (401, 403)


def test_researchers_see_only_their_surveys(client, user_factory, headers_for, researcher_headers, admin_headers):
    other = user_factory("other@surveyflow.org")
    other_headers = headers_for(other)
    mine = client.post("/admin/surveys", json=survey_payload("Mine"), headers=researcher_headers).json()
    theirs = client.post("/admin/surveys", json=survey_payload("Theirs"), headers=other_headers).json()

    titles = [s["title"] for s in client.get("/admin/surveys", headers=researcher_headers).json()]
    assert titles == ["Mine"]

    assert client.get(f"/admin/surveys/{theirs['id']}", headers=researcher_headers).status_code == 403

    all_titles = {s["title"] for s in client.get("/admin/surveys", headers=admin_headers).json()}
    assert all_titles == {"Mine", "Theirs"}
    assert client.get(f"/admin/surveys/{mine['id']}", headers=admin_headers).status_code == 200


def test_update_replaces_definition(client, researcher_headers):
    created = client.post("/admin/surveys", json=survey_payload(), headers=researcher_headers).json()

    response = client.put(
        f"/admin/surveys/{created['id']}",
        json={"title": "Renamed", "questions": [{"id": "only", "type": "short-answer", "question": "Only"}],
              "sections": []},
        headers=researcher_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Renamed"
    assert body["description"] == "Quarterly"
    assert body["definition"]["sections"] == []
    assert [q["id"] for q in body["definition"]["questions"]] == ["only"]


def test_update_metadata_keeps_definition(client, researcher_headers):
    created = client.post("/admin/surveys", json=survey_payload(), headers=researcher_headers).json()

    body = client.put(
        f"/admin/surveys/{created['id']}", json={"is_active": False}, headers=researcher_headers
    ).json()

    assert body["is_active"] is False
    assert body["definition"] == created["definition"]


def test_delete_survey(client, researcher_headers):
    created = client.post("/admin/surveys", json=survey_payload(), headers=researcher_headers).json()

    assert client.delete(f"/admin/surveys/{created['id']}", headers=researcher_headers).status_code == 204
    assert client.get(f"/admin/surveys/{created['id']}", headers=researcher_headers).status_code == 404


def test_responses_and_analytics(client, researcher_headers):
    created = client.post("/admin/surveys", json=survey_payload(), headers=researcher_headers).json()
    sid = created["shareable_id"]
    for respondent, rate, why in [("a", "1", "slow"), ("b", "5", None), ("c", "2", "rude staff")]:
        answers = [{"question_id": "rate", "answer": rate}]
        if why:
            answers.append({"question_id": "why", "answer": why})
        response = client.post(
            f"/public/surveys/{sid}/responses",
            data={"respondent_id": respondent, "answers": json.dumps(answers)},
        )
        assert response.status_code == 201

    responses = client.get(f"/admin/surveys/{created['id']}/responses", headers=researcher_headers).json()
    assert len(responses) == 3
    assert {r["respondent_id"] for r in responses} == {"a", "b", "c"}

    analytics = client.get(f"/admin/surveys/{created['id']}/analytics", headers=researcher_headers).json()
    assert analytics["total_responses"] == 3
    rate = next(q for q in analytics["question_analytics"] if q["question_id"] == "rate")
    assert rate["average_score"] == 2.67
    why = next(q for q in analytics["question_analytics"] if q["question_id"] == "why")
    assert why["total_responses"] == 2


def test_session_analytics(client, researcher_headers):
    created = client.post("/admin/surveys", json=survey_payload(), headers=researcher_headers).json()
    events = [
        ("r1", "answered", "rate", 0, 5),
        ("r1", "abandoned", "why", 1, 2),
        ("r2", "answered", "rate", 0, 7),
        ("r2", "completed", None, None, 1),
    ]
    for respondent, action, qid, index, spent in events:
        client.post("/public/sessions", json={
            "survey_id": created["id"], "respondent_id": respondent, "action": action,
            "question_id": qid, "question_index": index, "time_spent": spent,
        })

    body = client.get(
        f"/admin/surveys/{created['id']}/sessions/analytics", headers=researcher_headers
    ).json()

    assert body["total_sessions"] == 2
    assert body["completed_sessions"] == 1
    assert body["abandoned_sessions"] == 1
    assert body["completion_rate"] == 50.0
    assert body["abandonment_points"] == [{"question_id": "why", "question_index": 1, "count": 1}]
    assert body["avg_time_per_question"] == [
        {"question_id": "rate", "question_index": 0, "avg_time": 6.0, "count": 2},
    ]


def test_admin_moderation_flow(client, admin_headers, user_factory):
    pending = user_factory("new@surveyflow.org", is_approved=False)

    listed = client.get("/admin/users", params={"is_approved": False}, headers=admin_headers)
    assert listed.headers["X-Total-Count"] == "1"
    assert listed.json()[0]["email"] == "new@surveyflow.org"

    approved = client.patch(f"/admin/users/{pending.id}", json={"action": "approve"}, headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["is_approved"] is True

    banned = client.patch(
        f"/admin/users/{pending.id}",
        json={"action": "ban", "ban_reason": "spam", "ban_duration_days": 3},
        headers=admin_headers,
    ).json()
    assert banned["is_banned"] is True
    assert banned["ban_reason"] == "spam"
    assert banned["ban_expires_at"] is not None

    unbanned = client.patch(f"/admin/users/{pending.id}", json={"action": "unban"}, headers=admin_headers).json()
    assert unbanned["is_banned"] is False


def test_admin_cannot_moderate_admins(client, admin, admin_headers):
    response = client.patch(f"/admin/users/{admin.id}", json={"action": "ban"}, headers=admin_headers)
    assert response.status_code == 400


def test_user_management_is_admin_only(client, researcher_headers):
    assert client.get("/admin/users", headers=researcher_headers).status_code == 403
    assert client.get("/admin/stats", headers=researcher_headers).status_code == 403


def test_admin_stats(client, admin_headers, researcher_headers, survey):
    response = client.get("/admin/stats", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["totalUsers"] == 2
    assert body["approvedResearchers"] == 1
    assert body["totalSurveys"] == 1
    assert body["activeSurveys"] == 1
    assert response.headers["Cache-Control"] == "private, max-age=60"

    ops = client.get("/admin/stats/ops", headers=admin_headers).json()
    assert ops == get_public_ops_metrics()


def test_overlong_question_id_is_422(client, researcher_headers):
    payload = survey_payload()
    payload["sections"][0]["questions"][0]["id"] = "rate" * 20
    payload["sections"][0]["questions"][1]["conditional_logic"]["depends_on"] = "rate" * 20

    response = client.post("/admin/surveys", json=payload, headers=researcher_headers)

    assert response.status_code == 422


def test_update_can_clear_schedule(client, researcher_headers):
    payload = survey_payload()
    payload["scheduled_date"] = "2026-01-01T00:00:00Z"
    payload["expiration_date"] = "2030-01-01T00:00:00Z"
    created = client.post("/admin/surveys", json=payload, headers=researcher_headers).json()

    body = client.put(
        f"/admin/surveys/{created['id']}", json={"expiration_date": None}, headers=researcher_headers
    ).json()

    assert body["expiration_date"] is None
    assert body["scheduled_date"] is not None
