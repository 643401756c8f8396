"""
tests/test_api_personas.py -- Integration tests for /api/admin/personas and /api/admin/persona/{id}.

Covers:
  - POST creates and the list returns the new persona
  - Validation: name and bio required, role must be a known value
  - PUT replaces fields but leaves isActive alone unless it is sent
  - DELETE deactivates (isActive=false) and the persona stays listed
  - ?activeOnly=true hides deactivated personas
  - 404 persona_not_found for unknown ids
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _create(client: TestClient, token: str, **overrides) -> dict:
    payload = {"name": "Nova Quill", "bio": "Covers machine learning policy.", "role": "reporter"}
    payload.update(overrides)
    resp = client.post("/api/admin/personas", json=payload, headers=_auth(token))
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


class TestCreateAndList:
    def test_create_returns_camel_case_persona(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        data = _create(
            client,
            token,
            name="Camel Case",
            profileImageUrl="https://img.example/p.png",
            externalLinks=["https://example.com/about"],
            displayOrder=3,
        )
        assert data["id"] > 0
        assert data["name"] == "Camel Case"
        assert data["profileImageUrl"] == "https://img.example/p.png"
        assert data["externalLinks"] == ["https://example.com/about"]
        assert data["displayOrder"] == 3
        assert data["isActive"] is True
        assert data["articleCount"] == 0
        assert data["createdAt"]

    def test_list_returns_created_persona(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(client, token, name="Listed Persona")
        resp = client.get("/api/admin/personas", headers=_auth(token))
        assert resp.status_code == 200
        listed = {p["id"]: p for p in resp.json()}
        assert created["id"] in listed
        assert listed[created["id"]]["name"] == "Listed Persona"

    def test_get_one(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(client, token, name="Single")
        resp = client.get(f"/api/admin/persona/{created['id']}", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json()["name"] == "Single"

    def test_comma_separated_links_are_split(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        data = _create(client, token, externalLinks="https://a.example, https://b.example,")
        assert data["externalLinks"] == ["https://a.example", "https://b.example"]

    def test_snake_case_keys_accepted(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        data = _create(client, token, display_order=7)
        assert data["displayOrder"] == 7

    def test_missing_name_is_rejected(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        resp = client.post("/api/admin/personas", json={"bio": "No name"}, headers=_auth(token))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_blank_bio_is_rejected(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        resp = client.post("/api/admin/personas", json={"name": "Blank", "bio": "   "}, headers=_auth(token))
        assert resp.status_code == 422

    def test_unknown_role_is_rejected(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        resp = client.post(
            "/api/admin/personas", json={"name": "X", "bio": "Y", "role": "editor-in-chief"}, headers=_auth(token)
        )
        assert resp.status_code == 422


class TestUpdate:
    def test_put_updates_fields(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(client, token, moreInfoText="Old info")
        resp = client.put(
            f"/api/admin/persona/{created['id']}",
            json={"name": "Renamed", "bio": "New bio", "role": "commentator", "moreInfoText": ""},
            headers=_auth(token),
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["name"] == "Renamed"
        assert data["role"] == "commentator"
        assert data["moreInfoText"] is None

    def test_put_keeps_fields_missing_from_payload(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(
            client,
            token,
            externalLinks=["https://example.com/nova"],
            moreInfoText="Keeps a blog.",
            displayOrder=4,
        )
        # The admin form sends no externalLinks when editing.
        resp = client.put(
            f"/api/admin/persona/{created['id']}",
            json={"name": "Nova Quill", "bio": "Edited bio.", "role": "reporter"},
            headers=_auth(token),
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["bio"] == "Edited bio."
        assert data["externalLinks"] == ["https://example.com/nova"]
        assert data["moreInfoText"] == "Keeps a blog."
        assert data["displayOrder"] == 4

    def test_put_without_is_active_keeps_state(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(client, token)
        client.delete(f"/api/admin/persona/{created['id']}", headers=_auth(token))
        resp = client.put(
            f"/api/admin/persona/{created['id']}",
            json={"name": "Still Inactive", "bio": "Edited"},
            headers=_auth(token),
        )
        assert resp.json()["isActive"] is False

    def test_put_can_reactivate(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(client, token)
        client.delete(f"/api/admin/persona/{created['id']}", headers=_auth(token))
        resp = client.put(
            f"/api/admin/persona/{created['id']}",
            json={"name": "Back", "bio": "Returned", "isActive": True},
            headers=_auth(token),
        )
        assert resp.json()["isActive"] is True

    def test_put_unknown_is_404(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        resp = client.put("/api/admin/persona/999999", json={"name": "N", "bio": "B"}, headers=_auth(token))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "persona_not_found"


class TestDeactivate:
    def test_delete_sets_inactive_without_removing(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(client, token, name="Soon Retired")

        resp = client.delete(f"/api/admin/persona/{created['id']}", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json()["isActive"] is False

        fetched = client.get(f"/api/admin/persona/{created['id']}", headers=_auth(token))
        assert fetched.status_code == 200
        assert fetched.json()["isActive"] is False

        listed = {p["id"]: p for p in client.get("/api/admin/personas", headers=_auth(token)).json()}
        assert listed[created["id"]]["isActive"] is False

    def test_delete_is_idempotent(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        created = _create(client, token)
        client.delete(f"/api/admin/persona/{created['id']}", headers=_auth(token))
        resp = client.delete(f"/api/admin/persona/{created['id']}", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json()["isActive"] is False

    def test_active_only_filter(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        active = _create(client, token, name="Active One")
        retired = _create(client, token, name="Retired One")
        client.delete(f"/api/admin/persona/{retired['id']}", headers=_auth(token))

        ids = {p["id"] for p in client.get("/api/admin/personas?activeOnly=true", headers=_auth(token)).json()}
        assert active["id"] in ids
        assert retired["id"] not in ids

    def test_delete_unknown_is_404(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        resp = client.delete("/api/admin/persona/999999", headers=_auth(token))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "persona_not_found"
