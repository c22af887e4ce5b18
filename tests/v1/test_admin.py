"""Tests for the admin endpoints."""

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from snipshare.core.security import ADMIN_COOKIE_NAME
from snipshare.core.settings import settings
from snipshare.db.time import now_ms
from snipshare.models import Snippet


def _create(client: TestClient, **payload: object) -> str:
    r = client.post("/api/v1/snippets", json={"content": "x"} | payload)
    assert r.status_code == status.HTTP_201_CREATED
    return r.json()["id"]


def test_login_issues_token_and_cookie(client: TestClient) -> None:
    r = client.post("/api/v1/admin/login", json={"password": settings.admin_password})
    assert r.status_code == status.HTTP_200_OK
    body = r.json()
    assert body["success"] is True
    assert body["expires_in"] == settings.admin_token_ttl_seconds
    cookie = r.headers["set-cookie"]
    assert cookie.startswith(f"{ADMIN_COOKIE_NAME}=")
    assert "httponly" in cookie.lower()

    check = client.get(
        "/api/v1/admin/auth-check", headers={"Authorization": f"Bearer {body['token']}"}
    )
    assert check.json() == {"authenticated": True, "reason": None}


def test_login_rejects_wrong_password(client: TestClient) -> None:
    r = client.post("/api/v1/admin/login", json={"password": "nope"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_auth_check_without_token(client: TestClient) -> None:
    r = client.get("/api/v1/admin/auth-check")
    assert r.json() == {"authenticated": False, "reason": "No token provided"}


def test_admin_routes_require_auth(client: TestClient) -> None:
    for path in ("/api/v1/admin/stats", "/api/v1/admin/snippets", "/api/v1/admin/settings"):
        assert client.get(path).status_code == status.HTTP_401_UNAUTHORIZED
    r = client.get("/api/v1/admin/stats", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"detail": "Unauthorized"}


def test_admin_cookie_is_accepted(client: TestClient, admin_headers: dict[str, str]) -> None:
    token = admin_headers["Authorization"].removeprefix("Bearer ")
    r = client.get("/api/v1/admin/stats", headers={"Cookie": f"{ADMIN_COOKIE_NAME}={token}"})
    assert r.status_code == status.HTTP_200_OK


def test_logout_clears_cookie(client: TestClient) -> None:
    r = client.post("/api/v1/admin/logout")
    assert r.status_code == status.HTTP_200_OK
    assert ADMIN_COOKIE_NAME in r.headers["set-cookie"]


def test_stats(client: TestClient, admin_headers: dict[str, str]) -> None:
    _create(client)
    _create(client, password="pw")
    burned = _create(client, burn_after_read=True)
    client.get(f"/api/v1/snippets/{burned}")
    client.get(f"/api/v1/snippets/{burned}")

    r = client.get("/api/v1/admin/stats", headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    stats = r.json()
    assert stats["total"] == 3
    assert stats["active"] == 2
    assert stats["today"] == 3
    assert stats["deleted"] == 1
    assert stats["password_protected"] == 1
    assert stats["burn_after_read"] == 1
    assert stats["rate_limit_entries_24h"] == 9


def test_list_and_search(client: TestClient, admin_headers: dict[str, str]) -> None:
    _create(client, title="alpha notes")
    _create(client, title="beta notes")
    target = _create(client, title="gamma")

    r = client.get("/api/v1/admin/snippets", headers=admin_headers, params={"page_size": 2})
    page = r.json()
    assert page["total"] == 3
    assert page["total_pages"] == 2
    assert len(page["snippets"]) == 2
    assert "server_key" not in page["snippets"][0]
    assert "payload" not in page["snippets"][0]

    r = client.get("/api/v1/admin/snippets", headers=admin_headers, params={"search": "notes"})
    assert {item["title"] for item in r.json()["snippets"]} == {"alpha notes", "beta notes"}

    r = client.get("/api/v1/admin/snippets", headers=admin_headers, params={"search": target})
    assert [item["id"] for item in r.json()["snippets"]] == [target]


def test_admin_delete(client: TestClient, admin_headers: dict[str, str]) -> None:
    snippet_id = _create(client)
    r = client.delete(f"/api/v1/admin/snippets/{snippet_id}", headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    assert client.get(f"/api/v1/snippets/{snippet_id}").status_code == status.HTTP_404_NOT_FOUND

    r = client.delete("/api/v1/admin/snippets/missing", headers=admin_headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_admin_cleanup(
    client: TestClient, admin_headers: dict[str, str], db_session: Session
) -> None:
    snippet_id = _create(client, expires_in=60)
    snippet = db_session.get(Snippet, snippet_id)
    snippet.expires_at = now_ms() - 1000
    db_session.commit()

    r = client.post("/api/v1/admin/cleanup", headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["marked_deleted"] == 1

    r = client.post("/api/v1/admin/cleanup", headers=admin_headers)
    assert r.json()["marked_deleted"] == 0


def test_security_block_flow(client: TestClient, admin_headers: dict[str, str]) -> None:
    address = "192.0.2.77"
    body = {"action": "block", "address": address, "reason": "spam"}
    r = client.post("/api/v1/admin/security", json=body, headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK

    r = client.post("/api/v1/admin/security", json=body, headers=admin_headers)
    assert r.status_code == status.HTTP_409_CONFLICT

    r = client.get("/api/v1/admin/security", params={"section": "blocked"}, headers=admin_headers)
    blocked = r.json()["blocked"]
    assert blocked[0]["address"] == address
    assert blocked[0]["reason"] == "spam"

    r = client.post(
        "/api/v1/snippets", json={"content": "x"}, headers={"CF-Connecting-IP": address}
    )
    assert r.status_code == status.HTTP_403_FORBIDDEN

    r = client.post(
        "/api/v1/admin/security",
        json={"action": "unblock", "address": address},
        headers=admin_headers,
    )
    assert r.status_code == status.HTTP_200_OK
    r = client.post(
        "/api/v1/snippets", json={"content": "x"}, headers={"CF-Connecting-IP": address}
    )
    assert r.status_code == status.HTTP_201_CREATED


def test_security_activity_views(client: TestClient, admin_headers: dict[str, str]) -> None:
    _create(client)
    r = client.get("/api/v1/admin/security", headers=admin_headers)
    activity = r.json()["activity"]
    assert {item["action"] for item in activity} == {"create:minute", "create:hour", "create:day"}
    assert all(item["address"] == "testclient" for item in activity)

    r = client.get("/api/v1/admin/security", params={"section": "rate-log"}, headers=admin_headers)
    assert len(r.json()["logs"]) == 3

    r = client.get("/api/v1/admin/security", params={"section": "bogus"}, headers=admin_headers)
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_settings_round_trip(client: TestClient, admin_headers: dict[str, str]) -> None:
    r = client.get("/api/v1/admin/settings", headers=admin_headers)
    assert r.json()["rate_limit_per_minute"] == 10

    r = client.put(
        "/api/v1/admin/settings",
        json={"max_file_size_mb": 10, "allowed_file_types": ".txt,.md"},
        headers=admin_headers,
    )
    assert r.status_code == status.HTTP_200_OK
    body = r.json()
    assert body["updated"] == ["allowed_file_types", "max_file_size_mb"]
    assert body["settings"]["max_file_size_mb"] == 10

    r = client.put("/api/v1/admin/settings", json={"max_file_size_mb": 1000}, headers=admin_headers)
    assert r.status_code == status.HTTP_400_BAD_REQUEST

    public = client.get("/api/v1/settings/public").json()
    assert public == {"max_file_size_mb": 10, "allowed_file_types": [".md", ".txt"]}
