"""End-to-end tests of the HTTP surface through FastAPI's TestClient."""

import pytest


def _register(client, username="bob", email="bob@x.com", password="secret"):
    return client.post(
        "/api/users/register",
        json={"username": username, "email": email, "password": password, "firstName": "Bob"},
    )


@pytest.fixture()
def auth(client):
    """Bearer headers for a freshly registered user."""
    data = _register(client).json()
    return {"Authorization": f"Bearer {data['token']}"}, data["userId"]


def _create_task(client, headers, **overrides):
    payload = {"title": "Write report", "category": "WORK", "priority": "HIGH"}
    payload.update(overrides)
    return client.post("/api/tasks", json=payload, headers=headers)


def test_health(client):
    for path in ("/health", "/api/health"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "UP"


def test_register_and_login(client):
    response = _register(client)
    assert response.status_code == 201
    data = response.json()
    assert set(data) == {"userId", "username", "email", "message", "token"}
    assert data["username"] == "bob"
    assert "token" in response.cookies

    login = client.post("/api/users/login", json={"username": "bob", "password": "secret"})
    assert login.status_code == 200
    assert login.json()["userId"] == data["userId"]


def test_register_duplicate(client):
    _register(client)
    response = _register(client, email="other@x.com")
    assert response.status_code == 400
    assert response.json() == {"error": "Bad Request", "message": "Username already in use", "status": 400}


def test_login_failures_are_indistinguishable(client):
    _register(client)
    wrong_password = client.post("/api/users/login", json={"username": "bob", "password": "Secret"})
    unknown_user = client.post("/api/users/login", json={"username": "ghost", "password": "anything"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["error"] == "Unauthorized"


def test_user_payload_never_exposes_digest(client, auth):
    headers, user_id = auth
    me = client.get("/api/users/me", headers=headers).json()
    listed = client.get("/api/users", headers=headers).json()
    one = client.get(f"/api/users/{user_id}", headers=headers).json()

    for payload in [me, one] + listed:
        assert set(payload) == {"id", "username", "email", "firstName", "lastName", "createdAt", "updatedAt"}
    assert me["firstName"] == "Bob"


def test_tasks_require_authentication(client):
    response = client.get("/api/tasks")
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"

    bad = client.get("/api/tasks", headers={"Authorization": "Bearer garbage"})
    assert bad.status_code == 401


def test_task_lifecycle(client, auth):
    headers, user_id = auth

    created = _create_task(client, headers)
    assert created.status_code == 201
    task = created.json()
    assert task["userId"] == user_id
    assert task["status"] == "IN_PROGRESS"
    assert task["completedAt"] is None
    assert set(task) == {
        "id", "userId", "title", "description", "category", "priority",
        "status", "dueDate", "completedAt", "createdAt", "updatedAt",
    }

    updated = client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Write report v2", "category": "work", "priority": "low", "status": "IN_PROGRESS",
              "dueDate": "2026-12-01T09:00:00"},
        headers=headers,
    ).json()
    assert updated["title"] == "Write report v2"
    assert updated["priority"] == "LOW"
    assert updated["dueDate"].startswith("2026-12-01T09:00:00")

    completed = client.patch(f"/api/tasks/{task['id']}/complete", headers=headers).json()
    assert completed["status"] == "DONE"
    assert completed["completedAt"] is not None

    history = client.get(f"/api/tasks/{task['id']}/history", headers=headers).json()
    assert [h["action"] for h in history] == ["COMPLETED", "EDITED", "CREATED"]
    assert set(history[0]) == {"id", "taskId", "action", "oldStatus", "newStatus", "description", "changedAt"}

    deleted = client.delete(f"/api/tasks/{task['id']}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/tasks/{task['id']}", headers=headers).status_code == 404


def test_task_validation_error_envelope(client, auth):
    headers, _ = auth
    response = _create_task(client, headers, category="GARDENING")
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Error"
    assert body["status"] == 400
    assert "TECHNOLOGY" in body["message"]


def test_malformed_body_is_a_validation_error(client, auth):
    headers, _ = auth
    response = _create_task(client, headers, dueDate="not-a-date")
    assert response.status_code == 400
    assert response.json()["error"] == "Validation Error"


def test_listing_and_status_filter(client, auth):
    headers, user_id = auth
    first = _create_task(client, headers, title="first").json()
    second = _create_task(client, headers, title="second").json()
    client.patch(f"/api/tasks/{second['id']}/complete", headers=headers)

    mine = client.get("/api/tasks", headers=headers).json()
    assert {t["id"] for t in mine} == {first["id"], second["id"]}

    done = client.get(f"/api/tasks/user/{user_id}/status/done", headers=headers).json()
    assert [t["id"] for t in done] == [second["id"]]

    in_progress = client.get("/api/tasks", params={"status": "IN_PROGRESS"}, headers=headers).json()
    assert [t["id"] for t in in_progress] == [first["id"]]

    invalid = client.get(f"/api/tasks/user/{user_id}/status/PENDING", headers=headers)
    assert invalid.status_code == 400


def test_other_users_tasks_are_hidden(client, auth):
    headers, user_id = auth
    task = _create_task(client, headers).json()

    other = _register(client, username="eve", email="eve@x.com").json()
    eve_headers = {"Authorization": f"Bearer {other['token']}"}

    assert client.get(f"/api/tasks/{task['id']}", headers=eve_headers).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=eve_headers).status_code == 404
    assert client.get(f"/api/tasks/user/{user_id}", headers=eve_headers).status_code == 403
    assert _create_task(client, eve_headers, userId=user_id).status_code == 403


def test_update_and_delete_own_account(client, auth):
    headers, user_id = auth

    response = client.put(f"/api/users/{user_id}", json={"lastName": "Builder"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["lastName"] == "Builder"

    other = _register(client, username="eve", email="eve@x.com").json()
    assert client.delete(f"/api/users/{other['userId']}", headers=headers).status_code == 403

    assert client.delete(f"/api/users/{user_id}", headers=headers).status_code == 204
    assert client.get("/api/users/me", headers=headers).status_code == 401


def test_cookie_authentication(client):
    _register(client)
    # TestClient keeps the cookie set by register
    response = client.get("/api/users/me")
    assert response.status_code == 200
    assert response.json()["username"] == "bob"

    client.post("/api/users/logout")
    assert client.get("/api/users/me").status_code == 401


def test_task_writes_answer_normally_during_audit_outage(client, auth, audit_outage):
    headers, user_id = auth
    audit_outage()

    created = _create_task(client, headers)
    assert created.status_code == 201
    task = created.json()
    assert task["userId"] == user_id
    assert task["title"] == "Write report"

    completed = client.patch(f"/api/tasks/{task['id']}/complete", headers=headers)
    assert completed.status_code == 200
    assert completed.json()["status"] == "DONE"

    assert client.delete(f"/api/tasks/{task['id']}", headers=headers).status_code == 200


def test_unsupported_method_uses_bad_request_category(client):
    response = client.patch("/health")
    assert response.status_code == 405
    assert response.json()["error"] == "Bad Request"
    assert response.json()["status"] == 405


def test_new_account_does_not_inherit_deleted_accounts_tasks(client, auth):
    headers, user_id = auth
    _create_task(client, headers, title="private")
    assert client.delete(f"/api/users/{user_id}", headers=headers).status_code == 204

    carol = _register(client, username="carol", email="carol@x.com").json()
    carol_headers = {"Authorization": f"Bearer {carol['token']}"}

    assert carol["userId"] != user_id
    assert client.get("/api/tasks", headers=carol_headers).json() == []
