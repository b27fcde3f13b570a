"""HTTP-level tests for the user administration endpoints."""

from __future__ import annotations

import pytest

from tests.factories.user import DEFAULT_PASSWORD, UserFactory

BASE = "/api/users"
MISSING_ID = "0" * 32


def _login(client, user) -> dict[str, str]:
    resp = client.post(
        "/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, UserFactory(roles=["Admin", "User"]))


@pytest.fixture
def member(client):
    return UserFactory(roles=["User"])


@pytest.fixture
def member_headers(client, member):
    return _login(client, member)


class TestSelfService:
    def test_update_me_keeps_blank_fields(self, client, member, member_headers):
        resp = client.put(
            f"{BASE}/me",
            headers=member_headers,
            json={"firstName": "Changed", "lastName": " ", "phoneNumber": "555-0100"},
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["firstName"] == "Changed"
        assert body["lastName"] == member.last_name
        assert body["phoneNumber"] == "555-0100"

    def test_lookup_by_id_and_email(self, client, member, member_headers):
        by_id = client.get(f"{BASE}/{member.id}", headers=member_headers)
        by_email = client.get(f"{BASE}/email/{member.email.upper()}", headers=member_headers)
        roles = client.get(f"{BASE}/{member.id}/roles", headers=member_headers)

        assert by_id.get_json()["email"] == member.email
        assert by_email.get_json()["id"] == member.id
        assert roles.get_json() == {"userId": member.id, "roles": ["User"]}

    def test_missing_user_is_404(self, client, member_headers):
        resp = client.get(f"{BASE}/{MISSING_ID}", headers=member_headers)

        assert resp.status_code == 404
        assert resp.mimetype == "application/problem+json"
        assert resp.get_json()["code"] == "not_found"

    def test_requires_bearer(self, client):
        assert client.get(f"{BASE}/me").status_code == 401

    def test_rejects_garbage_bearer(self, client):
        resp = client.get(f"{BASE}/me", headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401


class TestAdminOnly:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", ""),
            ("delete", "/{id}"),
            ("post", "/{id}/deactivate"),
            ("post", "/{id}/roles/Admin"),
        ],
    )
    def test_member_is_forbidden(self, client, member, member_headers, method, path):
        resp = getattr(client, method)(BASE + path.format(id=member.id), headers=member_headers)

        assert resp.status_code == 403
        assert resp.get_json()["detail"] == "Insufficient role"

    def test_list_users_with_meta(self, client, admin_headers):
        for name in ("c", "a", "b"):
            UserFactory(email=f"{name}@example.com")

        resp = client.get(f"{BASE}?page=1&limit=2&sort=email", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert [u["email"] for u in body["data"]] == ["a@example.com", "b@example.com"]
        assert body["meta"]["total"] == 4
        assert body["meta"]["hasNext"] is True
        assert body["meta"]["hasPrev"] is False

    def test_invalid_pagination_is_400(self, client, admin_headers):
        resp = client.get(f"{BASE}?page=0", headers=admin_headers)
        assert resp.status_code == 400

    def test_deactivate_blocks_login_and_activate_restores(self, client, admin_headers):
        user = UserFactory()

        off = client.post(f"{BASE}/{user.id}/deactivate", headers=admin_headers)
        blocked = client.post(
            "/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
        )
        on = client.post(f"{BASE}/{user.id}/activate", headers=admin_headers)
        allowed = client.post(
            "/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
        )

        assert off.get_json() == {"success": True, "message": "User deactivated successfully"}
        assert blocked.status_code == 401
        assert on.status_code == 200
        assert allowed.status_code == 200

    def test_role_management(self, client, admin_headers, member):
        added = client.post(f"{BASE}/{member.id}/roles/Auditor", headers=admin_headers)
        duplicate = client.post(f"{BASE}/{member.id}/roles/Auditor", headers=admin_headers)
        removed = client.delete(f"{BASE}/{member.id}/roles/Auditor", headers=admin_headers)
        missing = client.delete(f"{BASE}/{member.id}/roles/Auditor", headers=admin_headers)

        assert added.get_json() == {"userId": member.id, "roles": ["Auditor", "User"]}
        assert duplicate.status_code == 409
        assert removed.get_json() == {"userId": member.id, "roles": ["User"]}
        assert missing.status_code == 400

    def test_admin_updates_and_deletes(self, client, admin_headers, member):
        updated = client.put(
            f"{BASE}/{member.id}", headers=admin_headers, json={"lastName": "Renamed"}
        )
        deleted = client.delete(f"{BASE}/{member.id}", headers=admin_headers)
        gone = client.get(f"{BASE}/{member.id}", headers=admin_headers)

        assert updated.get_json()["lastName"] == "Renamed"
        assert deleted.get_json()["success"] is True
        assert gone.status_code == 404

    def test_delete_missing_user(self, client, admin_headers):
        resp = client.delete(f"{BASE}/{MISSING_ID}", headers=admin_headers)
        assert resp.status_code == 404
