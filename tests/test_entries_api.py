from datetime import timedelta

from tests.conftest import auth_headers
from src.utils.time_utils import to_iso, utc_now


def me(client, token):
    return client.get("/auth/me", headers=auth_headers(token)).json()


def test_day_one_scenario(client, login):
    token, user = login("a@x.com")
    assert user["total_entries"] == 0

    created = client.post(
        "/entries", headers=auth_headers(token),
        json={"title": "Day one", "date": "2024-01-01T00:00:00Z"}
    )
    assert created.status_code == 200
    entry = created.json()
    assert entry["title"] == "Day one"
    assert entry["date"] == "2024-01-01T00:00:00.000Z"
    assert me(client, token)["total_entries"] == 1

    listed = client.get("/entries?sort=-date", headers=auth_headers(token)).json()
    assert [e["id"] for e in listed] == [entry["id"]]

    deleted = client.delete(f"/entries/{entry['id']}", headers=auth_headers(token))
    assert deleted.json() == {"ok": True}
    assert client.get("/entries", headers=auth_headers(token)).json() == []
    assert me(client, token)["total_entries"] == 0


def test_list_order_and_limit(client, login):
    token, _ = login()
    for day in ("2024-02-03", "2024-02-01", "2024-02-02"):
        client.post("/entries", headers=auth_headers(token), json={"title": day, "date": f"{day}T12:00:00Z"})

    default = [e["title"] for e in client.get("/entries", headers=auth_headers(token)).json()]
    ascending = [e["title"] for e in client.get("/entries?sort=date", headers=auth_headers(token)).json()]
    limited = client.get("/entries?sort=date&limit=2", headers=auth_headers(token)).json()

    assert default == ["2024-02-03", "2024-02-02", "2024-02-01"]
    assert ascending == ["2024-02-01", "2024-02-02", "2024-02-03"]
    assert [e["title"] for e in limited] == ["2024-02-01", "2024-02-02"]


def test_invalid_limit(client, login):
    token, _ = login()
    response = client.get("/entries?limit=abc", headers=auth_headers(token))
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request"


def test_limit_zero_returns_every_entry(client, login):
    token, _ = login()
    for title in ("first", "second"):
        client.post("/entries", headers=auth_headers(token), json={"title": title})

    response = client.get("/entries?limit=0", headers=auth_headers(token))
    assert response.status_code == 200
    assert len(response.json()) == 2


def test_limit_zero_agrees_with_client(client, login):
    from src.client.journal_client import JournalClient

    token, _ = login()
    journal = JournalClient(token=token, http_client=client)
    journal.create_entry({"title": "first"})
    journal.create_entry({"title": "second"})
    served = client.get("/entries?limit=0", headers=auth_headers(token)).json()
    assert len(journal.list_entries(limit=0)) == len(served) == 2


def test_collection_method_not_allowed_lists_all_methods(client, login):
    token, _ = login()
    response = client.delete("/entries", headers=auth_headers(token))
    assert response.status_code == 405
    assert response.headers["allow"] == "GET, POST"
    assert response.json() == {"message": "Method not allowed"}


def test_chunked_body_over_limit_is_rejected(settings):
    from fastapi.testclient import TestClient
    from src.app import create_app

    app = create_app(settings.model_copy(update={"max_body_bytes": 64}))
    with TestClient(app) as small_client:
        token = small_client.post("/auth/login", json={"email": "a@x.com"}).json()["token"]

        def chunks():
            for _ in range(10):
                yield b" " * 16

        response = small_client.post(
            "/entries",
            headers={**auth_headers(token), "Content-Type": "application/json"},
            content=chunks()
        )
    assert response.status_code == 413


def test_writing_streak_via_api(client, login):
    token, _ = login()
    today = utc_now()
    for offset in (0, 1, 2, 4):
        client.post(
            "/entries", headers=auth_headers(token),
            json={"date": to_iso(today - timedelta(days=offset))}
        )
    profile = me(client, token)
    assert profile["total_entries"] == 4
    assert profile["writing_streak"] == 3


def test_streak_is_zero_without_entry_today(client, login):
    token, _ = login()
    yesterday = utc_now() - timedelta(days=1)
    client.post("/entries", headers=auth_headers(token), json={"date": to_iso(yesterday)})
    assert me(client, token)["writing_streak"] == 0


def test_patch_entry(client, login):
    token, _ = login()
    entry = client.post(
        "/entries", headers=auth_headers(token),
        json={"title": "Draft", "themes": ["growth"], "milestone": True}
    ).json()

    response = client.patch(
        f"/entries/{entry['id']}", headers=auth_headers(token),
        json={"content": "A long day", "mood": "tired"}
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == "Draft"
    assert updated["content"] == "A long day"
    assert updated["mood"] == "tired"
    assert updated["themes"] == ["growth"]
    assert updated["milestone"] is True


def test_patch_rejects_bad_date(client, login):
    token, _ = login()
    entry = client.post("/entries", headers=auth_headers(token), json={}).json()
    response = client.patch(f"/entries/{entry['id']}", headers=auth_headers(token), json={"date": "soon"})
    assert response.status_code == 400


def test_missing_entry_returns_not_found_and_changes_nothing(client, login):
    token, _ = login()
    client.post("/entries", headers=auth_headers(token), json={"title": "Keep"})
    before = me(client, token)

    patched = client.patch("/entries/missing", headers=auth_headers(token), json={"title": "x"})
    deleted = client.delete("/entries/missing", headers=auth_headers(token))

    assert patched.status_code == 404
    assert patched.json() == {"message": "Entry not found"}
    assert deleted.status_code == 404
    assert me(client, token) == before
    assert [e["title"] for e in client.get("/entries", headers=auth_headers(token)).json()] == ["Keep"]


def test_other_users_entries_are_invisible(client, login):
    alice, _ = login("alice@x.com")
    bob, _ = login("bob@x.com")
    entry = client.post("/entries", headers=auth_headers(alice), json={"title": "Private"}).json()

    assert client.get("/entries", headers=auth_headers(bob)).json() == []
    assert client.delete(f"/entries/{entry['id']}", headers=auth_headers(bob)).status_code == 404


def test_requests_without_token_do_not_mutate(client, login):
    token, _ = login()

    assert client.post("/entries", json={"title": "Sneaky"}).status_code == 401
    assert client.post("/entries", headers=auth_headers("bogus"), json={"title": "Sneaky"}).status_code == 401
    assert client.get("/entries").status_code == 401

    assert client.get("/entries", headers=auth_headers(token)).json() == []
    assert me(client, token)["total_entries"] == 0


def test_payload_too_large(client, login):
    token, _ = login()
    headers = {**auth_headers(token), "Content-Type": "application/json"}
    response = client.post("/entries", headers=headers, content=b" " * 1_000_001)
    assert response.status_code == 413
    assert response.json() == {"message": "Payload too large"}


def test_entry_method_not_allowed(client, login):
    token, _ = login()
    response = client.put("/entries/some-id", headers=auth_headers(token), json={})
    assert response.status_code == 405
    assert response.headers["allow"] == "DELETE, PATCH"


def test_unhandled_error_becomes_500(client, app, login):
    token, _ = login()

    def broken(*args, **kwargs):
        raise RuntimeError("disk on fire")

    app.state.entry_service.list_entries = broken
    response = client.get("/entries", headers=auth_headers(token))
    assert response.status_code == 500
    assert response.json() == {"message": "Server error"}
