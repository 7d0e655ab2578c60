from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from printvault.core.config import AppPaths, Settings
from printvault.core.errors import StoreError
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo
from printvault.web.app import create_app


def _paths(tmp_path: Path) -> AppPaths:
    data_dir = tmp_path / ".printvault"
    return AppPaths(project_root=tmp_path, data_dir=data_dir, db_path=data_dir / "printvault.db")


def _settings(**overrides) -> Settings:
    options = {"admin_password": "s3cret", "jwt_secret": "test-secret"}
    options.update(overrides)
    return Settings(**options)


def _login(client: TestClient) -> dict[str, str]:
    r = client.post("/api/admin/login", json={"password": "s3cret"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['data']['token']}"}


def _create(client: TestClient, headers: dict[str, str], **overrides) -> dict:
    body = {
        "title": "Lord Ganesha!!",
        "category": "bhagwan",
        "description": "Traditional line art",
        "tags": ["Ganesh", "hindu"],
        "drivePdfId": "PDF1",
        "driveCdrId": "CDR1",
    }
    body.update(overrides)
    r = client.post("/api/admin/resources", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_health_and_api_info(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["success"] is True

        r = client.get("/api")
        assert r.json()["endpoints"]["resources"] == "/api/resources"


def test_empty_listing_envelope(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        r = client.get("/api/resources?limit=1000&page=-3&sort=weird&category=nope")

    assert r.status_code == 200
    payload = r.json()
    assert payload["success"] is True
    assert payload["data"] == []
    assert payload["meta"] == {
        "page": 1,
        "limit": 100,
        "total": 0,
        "totalPages": 0,
        "hasNextPage": False,
        "hasPrevPage": False,
    }


def test_admin_routes_require_token(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        r = client.get("/api/admin/stats")
        assert r.status_code == 401
        assert r.json() == {"success": False, "error": "Authentication required"}

        r = client.get("/api/admin/verify", headers={"Authorization": "Bearer garbage"})
        assert r.status_code == 401
        assert r.json()["error"] == "Invalid token"


def test_login_failures(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        r = client.post("/api/admin/login", json={"password": "wrong"})
        assert r.status_code == 401
        assert r.json()["error"] == "Invalid password"

        r = client.post("/api/admin/login", json={})
        assert r.status_code == 400
        assert r.json()["error"] == "Password is required"

        r = client.post(
            "/api/admin/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json()["success"] is False


def test_login_sets_cookie_accepted_by_admin_routes(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        r = client.post("/api/admin/login", json={"password": "s3cret"})
        assert "adminToken" in r.cookies

        r = client.get("/api/admin/verify")
        assert r.status_code == 200
        assert r.json()["data"] == {"authenticated": True}


def test_public_catalog_flow(tmp_path: Path) -> None:
    app = create_app(_paths(tmp_path), _settings())
    with TestClient(app) as client:
        headers = _login(client)
        ganesha = _create(client, headers, featured=True)
        _create(
            client,
            headers,
            title="Royal Gold Frame",
            category="frames",
            tags=["gold", "hindu"],
            drivePdfId="https://drive.google.com/file/d/FRAME1/view",
            driveCdrId=None,
        )

        assert ganesha["slug"] == "lord-ganesha"
        assert ganesha["formats"] == ["pdf", "cdr"]
        assert ganesha["tags"] == ["ganesh", "hindu"]

        r = client.get("/api/resources", params={"category": "frames"})
        data = r.json()["data"]
        assert [item["slug"] for item in data] == ["royal-gold-frame"]
        assert data[0]["drivePdfId"] == "FRAME1"
        assert data[0]["formats"] == ["pdf"]

        r = client.get("/api/resources", params={"q": "ganesha"})
        assert r.json()["meta"]["total"] == 1

        r = client.get("/api/resources", params={"tag": "HINDU"})
        assert r.json()["meta"]["total"] == 2

        r = client.get("/api/resources/categories")
        assert {c["name"]: c["label"] for c in r.json()["data"]} == {
            "bhagwan": "Bhagwan / Deities",
            "frames": "Frames & Borders",
        }

        r = client.get("/api/resources/tags")
        assert r.json()["data"][0] == {"name": "hindu", "count": 2}

        r = client.get("/api/resources/featured")
        assert [item["slug"] for item in r.json()["data"]] == ["lord-ganesha"]

        r = client.get("/api/resources/lord-ganesha/related")
        assert [item["slug"] for item in r.json()["data"]] == ["royal-gold-frame"]

        r = client.get("/api/resources/missing")
        assert r.status_code == 404
        assert r.json() == {"success": False, "error": "Resource not found"}


def test_download_redirects_and_counts(tmp_path: Path) -> None:
    app = create_app(_paths(tmp_path), _settings())
    with TestClient(app) as client:
        headers = _login(client)
        _create(client, headers)

        r = client.get("/api/resources/lord-ganesha/download?format=cdr", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "https://drive.google.com/uc?export=download&id=CDR1"
        assert app.state.download_recorder.flush()

        r = client.get("/api/resources/lord-ganesha/download?format=svg", follow_redirects=False)
        assert r.status_code == 404
        assert r.json()["error"] == 'Format "svg" not available for this resource'

        r = client.get("/api/resources/lord-ganesha/download", follow_redirects=False)
        assert r.status_code == 400

        assert app.state.download_recorder.flush()
        r = client.get("/api/resources/lord-ganesha")
        assert r.json()["data"]["downloadCount"] == 1


def test_admin_crud_flow(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        headers = _login(client)
        created = _create(client, headers)
        second = _create(client, headers)
        assert second["slug"] == "lord-ganesha-1"

        r = client.post(
            "/api/admin/resources",
            json={"title": "Missing fields"},
            headers=headers,
        )
        assert r.status_code == 400
        assert r.json()["error"] == "Title, category, and description are required"

        r = client.put(
            f"/api/admin/resources/{created['id']}",
            json={"drivePdfId": ""},
            headers=headers,
        )
        assert r.status_code == 200
        assert r.json()["message"] == "Resource updated successfully"
        updated = r.json()["data"]
        assert updated["formats"] == ["cdr"]
        assert updated["driveCdrId"] == "CDR1"
        assert updated["slug"] == "lord-ganesha"

        r = client.patch(f"/api/admin/resources/{created['id']}/featured", headers=headers)
        assert r.json()["message"] == "Resource marked as featured"
        r = client.patch(f"/api/admin/resources/{created['id']}/featured", headers=headers)
        assert r.json()["message"] == "Resource removed from featured"

        r = client.get("/api/admin/resources", params={"q": "ganesha"}, headers=headers)
        assert r.json()["meta"]["total"] == 2
        assert r.json()["meta"]["limit"] == 20

        r = client.get(f"/api/admin/resources/{created['id']}", headers=headers)
        assert r.json()["data"]["id"] == created["id"]

        r = client.get("/api/admin/stats", headers=headers)
        stats = r.json()["data"]
        assert stats["totalResources"] == 2
        assert stats["categoryStats"] == [{"category": "bhagwan", "count": 2}]

        r = client.post("/api/admin/resources/bulk-delete", json={"ids": []}, headers=headers)
        assert r.status_code == 400
        assert r.json()["error"] == "Resource IDs array is required"

        r = client.delete(f"/api/admin/resources/{created['id']}", headers=headers)
        assert r.json()["message"] == "Resource deleted successfully"
        r = client.delete(f"/api/admin/resources/{created['id']}", headers=headers)
        assert r.status_code == 404

        r = client.post(
            "/api/admin/resources/bulk-delete",
            json={"ids": [second["id"]]},
            headers=headers,
        )
        assert r.json()["message"] == "1 resources deleted"
        assert r.json()["data"] == {"deletedCount": 1}

        r = client.post("/api/admin/logout", headers=headers)
        assert r.json()["message"] == "Logout successful"


def test_unknown_endpoint(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        r = client.get("/api/does-not-exist")

    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Endpoint not found"}


@pytest.mark.parametrize(
    ("env", "expected"),
    [("development", "Database error: disk I/O"), ("production", "Internal server error")],
)
def test_store_errors_hide_detail_outside_development(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, env: str, expected: str
) -> None:
    def _boom(self, *args, **kwargs):
        raise StoreError("Database error: disk I/O")

    monkeypatch.setattr(ResourceRepo, "find_many", _boom)
    with TestClient(create_app(_paths(tmp_path), _settings(env=env))) as client:
        r = client.get("/api/resources")

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": expected}


def test_huge_page_returns_an_empty_page(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        r = client.get("/api/resources", params={"page": "1e20"})

    assert r.status_code == 200
    payload = r.json()
    assert payload["data"] == []
    assert payload["meta"]["hasNextPage"] is False
    assert payload["meta"]["hasPrevPage"] is True


def test_route_word_titles_do_not_shadow_fixed_routes(tmp_path: Path) -> None:
    with TestClient(create_app(_paths(tmp_path), _settings())) as client:
        headers = _login(client)
        created = _create(client, headers, title="Tags")
        assert created["slug"] == "tags-1"

        r = client.get("/api/resources/tags")
        assert [t["name"] for t in r.json()["data"]] == ["ganesh", "hindu"]

        r = client.get("/api/resources/tags-1")
        assert r.json()["data"]["id"] == created["id"]
