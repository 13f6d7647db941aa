from datetime import date, timedelta


def _payload(**overrides):
    body = {
        "title": "Team retro",
        "description": "Sprint 12",
        "questions": [
            {"question": "What went well?", "type": "textarea", "data": []},
            {"question": "Mood", "type": "radio", "data": ["good", "meh", "bad"]},
        ],
    }
    body.update(overrides)
    return body


def _create(client, headers, **overrides):
    response = client.post("/api/surveys", json=_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_owner_routes_require_token(client, auth_headers):
    assert client.get("/api/surveys").status_code == 401
    assert client.post("/api/surveys", json=_payload()).status_code == 401
    assert client.get("/api/surveys/1", headers={"Authorization": "Bearer not-a-token"}).status_code == 401
    assert client.get("/api/surveys", headers={"Authorization": "Basic abc"}).status_code == 401


def test_create_and_show_survey(client, auth_headers):
    created = _create(client, auth_headers())

    assert created["id"] == 1
    assert created["version"] == 1
    assert created["status"] is True
    assert created["image_url"] is None
    assert [(q["id"], q["type"], q["position"]) for q in created["questions"]] == [(1, "textarea", 0), (2, "radio", 1)]
    assert created["questions"][1]["data"] == ["good", "meh", "bad"]

    response = client.get("/api/surveys/1", headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["title"] == "Team retro"


def test_create_with_image_returns_public_url(client, auth_headers, png_uri, public_dir):
    created = _create(client, auth_headers(), image=png_uri)

    assert created["image_url"].startswith("http://127.0.0.1:8000/public/images/")
    assert created["image_url"].endswith(".png")
    relative = created["image_url"].split("/public/", 1)[1]
    assert (public_dir / relative).exists()


def test_create_with_unsupported_image(client, auth_headers, public_dir):
    response = client.post(
        "/api/surveys",
        json=_payload(image="data:image/bmp;base64,Qk0="),
        headers=auth_headers(),
    )

    assert response.status_code == 422
    assert response.json()["field"] == "image"
    assert client.get("/api/surveys", headers=auth_headers()).json()["meta"]["total"] == 0
    assert not (public_dir / "images").exists()


def test_create_validation_lists_every_error(client, auth_headers):
    response = client.post(
        "/api/surveys",
        json={
            "title": "",
            "expire_date": date.today().isoformat(),
            "questions": [{"question": "Kind", "type": "dropdown", "data": []}, {"question": ""}],
        },
        headers=auth_headers(),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["status"] == 422
    assert [e["field"] for e in body["errors"]] == [
        "title",
        "expire_date",
        "questions.0.type",
        "questions.1.question",
        "questions.1.type",
        "questions.1.data",
    ]


def test_other_user_cannot_read_update_or_delete(client, auth_headers):
    _create(client, auth_headers("alice"))
    bob = auth_headers("bob")

    for response in (
        client.get("/api/surveys/1", headers=bob),
        client.put("/api/surveys/1", json={"title": "Taken"}, headers=bob),
        client.delete("/api/surveys/1", headers=bob),
    ):
        assert response.status_code == 403
        assert response.json()["detail"] == "Unauthorized action"

    assert client.get("/api/surveys/1", headers=auth_headers("alice")).json()["title"] == "Team retro"


def test_ownership_is_checked_before_body(client, auth_headers):
    _create(client, auth_headers("alice"))

    response = client.put("/api/surveys/1", json={"title": ["not", "a", "string"], "version": "latest"}, headers=auth_headers("bob"))

    assert response.status_code == 403


def test_missing_survey_is_404(client, auth_headers):
    headers = auth_headers()
    assert client.get("/api/surveys/99", headers=headers).status_code == 404
    assert client.put("/api/surveys/99", json={"title": "x"}, headers=headers).status_code == 404
    assert client.delete("/api/surveys/99", headers=headers).status_code == 404
    assert client.get("/api/survey-public/99").status_code == 404
    assert client.post("/api/surveys/99/answer", json={"answers": {"1": "x"}}).status_code == 404


def test_update_reconciles_question_list(client, auth_headers):
    headers = auth_headers()
    _create(client, headers)

    response = client.put(
        "/api/surveys/1",
        json={
            "title": "Team retro (edited)",
            "questions": [
                {"id": 1, "question": "What went really well?"},
                {"question": "Anything to change?", "type": "text", "data": None},
            ],
        },
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["version"] == 2
    assert [(q["id"], q["question"], q["type"]) for q in body["questions"]] == [
        (1, "What went really well?", "textarea"),
        (3, "Anything to change?", "text"),
    ]


def test_resubmitting_returned_questions_changes_nothing(client, auth_headers):
    headers = auth_headers()
    created = _create(client, headers)

    response = client.patch("/api/surveys/1", json={"questions": created["questions"]}, headers=headers)

    assert response.status_code == 200
    assert [q["id"] for q in response.json()["questions"]] == [1, 2]
    assert response.json()["questions"][1]["data"] == ["good", "meh", "bad"]


def test_patch_with_invalid_question_changes_nothing(client, auth_headers):
    headers = auth_headers()
    created = _create(client, headers)

    response = client.patch(
        "/api/surveys/1",
        json={"title": "Changed", "questions": [{"id": 1, "question": ""}, {"question": "no type", "data": []}]},
        headers=headers,
    )

    assert response.status_code == 422
    assert [e["field"] for e in response.json()["errors"]] == ["questions.0.question", "questions.1.type"]
    assert client.get("/api/surveys/1", headers=headers).json() == created


def test_stale_version_is_409(client, auth_headers):
    headers = auth_headers()
    _create(client, headers)
    assert client.patch("/api/surveys/1", json={"title": "One", "version": 1}, headers=headers).status_code == 200

    response = client.patch("/api/surveys/1", json={"title": "Two", "version": 1}, headers=headers)

    assert response.status_code == 409
    assert response.json()["actual"] == 2


def test_delete_survey(client, auth_headers):
    headers = auth_headers()
    _create(client, headers)

    response = client.delete("/api/surveys/1", headers=headers)

    assert response.status_code == 204
    assert response.content == b""
    assert client.get("/api/surveys/1", headers=headers).status_code == 404


def test_public_view_needs_no_token(client, auth_headers):
    _create(client, auth_headers("alice"), status=False)

    response = client.get("/api/survey-public/1")

    assert response.status_code == 200
    assert response.json()["status"] is False
    assert len(response.json()["questions"]) == 2


def test_submit_answers(client, auth_headers):
    _create(client, auth_headers())

    response = client.post("/api/surveys/1/answer", json={"answers": {"1": "hello", "2": ["good"]}})

    assert response.status_code == 201
    body = response.json()
    assert body["survey_id"] == 1
    assert [(a["question_id"], a["answer"]) for a in body["answers"]] == [(1, "hello"), (2, '["good"]')]


def test_submit_answer_to_unknown_question(client, auth_headers):
    _create(client, auth_headers())

    response = client.post("/api/surveys/1/answer", json={"answers": {"1": "hello", "999": "x"}})

    assert response.status_code == 400
    assert response.json()["detail"] == 'Invalid question ID: "999"'
    assert response.json()["question_id"] == "999"


def test_submit_without_answers(client, auth_headers):
    _create(client, auth_headers())
    assert client.post("/api/surveys/1/answer", json={"answers": {}}).status_code == 422


def test_list_surveys_is_paginated_and_owner_scoped(client, auth_headers):
    alice = auth_headers("alice")
    for n in range(6):
        _create(client, alice, title=f"Survey {n}")
    _create(client, auth_headers("bob"))

    first = client.get("/api/surveys", headers=alice).json()
    second = client.get("/api/surveys", params={"page": 2}, headers=alice).json()

    assert first["meta"] == {"current_page": 1, "per_page": 5, "total": 6, "last_page": 2}
    assert [s["title"] for s in first["data"]] == [f"Survey {n}" for n in (5, 4, 3, 2, 1)]
    assert [s["title"] for s in second["data"]] == ["Survey 0"]


def test_expire_date_in_future_is_accepted(client, auth_headers):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    created = _create(client, auth_headers(), expire_date=tomorrow)
    assert created["expire_date"] == tomorrow


def test_type_errors_and_question_errors_share_one_body(client, auth_headers):
    response = client.post(
        "/api/surveys",
        json={"title": 123, "status": "yes", "questions": [{"question": "", "type": "bogus", "data": []}]},
        headers=auth_headers(),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["detail"] == "The given data was invalid."
    assert [e["field"] for e in body["errors"]] == [
        "title",
        "status",
        "questions.0.question",
        "questions.0.type",
    ]


def test_malformed_request_uses_the_same_error_body(client, auth_headers):
    headers = auth_headers()
    _create(client, headers)

    bad_question = client.post(
        "/api/surveys",
        json={"title": "Ok", "questions": [{"id": "abc", "question": "x", "type": "text", "data": []}]},
        headers=headers,
    )
    bad_version = client.patch("/api/surveys/1", json={"version": "latest"}, headers=headers)
    bad_page = client.get("/api/surveys", params={"page": 0}, headers=headers)
    bad_answers = client.post("/api/surveys/1/answer", json={"answers": ["hello"]})

    for response, field in (
        (bad_question, "questions.0.id"),
        (bad_version, "version"),
        (bad_page, "page"),
        (bad_answers, "answers"),
    ):
        assert response.status_code == 422
        body = response.json()
        assert body["status"] == 422
        assert [e["field"] for e in body["errors"]] == [field]
        assert all(isinstance(e["message"], str) for e in body["errors"])


def test_submitting_one_question_twice_is_400(client, auth_headers):
    _create(client, auth_headers())

    response = client.post("/api/surveys/1/answer", json={"answers": {"1": "a", "01": "b"}})

    assert response.status_code == 400
    assert response.json()["question_id"] == "01"
