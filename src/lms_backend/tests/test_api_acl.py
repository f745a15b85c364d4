"""
ACL management router tests against the application in lms_backend.server.
"""

import pytest
from fastapi.testclient import TestClient

from lms_backend.database import get_db
from lms_backend.model import AclEntry
from lms_backend.permissions.service import AclService
from lms_backend.server import app


@pytest.fixture
def client(session, acl_settings, monkeypatch):
    monkeypatch.setattr(acl_settings, "DEBUG_MODE", "development")
    app.dependency_overrides[get_db] = lambda: session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def people(roles, factory):
    return {
        "admin": factory.user("admin"),
        "instructor": factory.user("instructor"),
        "student": factory.user("student"),
    }


@pytest.fixture
def page(session, factory, people):
    page = factory.content(course=factory.course(people["instructor"]), creator=people["instructor"])
    AclService(session).setup_default_permissions(page)
    return page


def as_user(user):
    return {"X-User-Id": str(user.id)}


class TestEntries:
    def test_list_entries(self, client, page, people, roles):
        response = client.get(f"/acl/page/{page.id}/entries", headers=as_user(people["instructor"]))

        assert response.status_code == 200
        entries = response.json()
        assert {(e["permission_type"], e["grantee_type"], e["grantee_id"]) for e in entries} == {
            ("manage", "user", people["instructor"].id),
            ("view", "role", roles["student"]),
        }
        assert all(e["content_type"] == "page" and e["content_id"] == page.id for e in entries)

    def test_list_entries_requires_manage(self, client, page, people):
        assert client.get(f"/acl/page/{page.id}/entries", headers=as_user(people["student"])).status_code == 403

    def test_unauthenticated(self, client, page):
        assert client.get(f"/acl/page/{page.id}/entries").status_code == 401

    def test_unknown_kind(self, client, page, people):
        response = client.get(f"/acl/widget/{page.id}/entries", headers=as_user(people["instructor"]))
        assert response.status_code == 400

    def test_wrong_kind_for_id(self, client, page, people):
        response = client.get(f"/acl/quiz/{page.id}/entries", headers=as_user(people["instructor"]))
        assert response.status_code == 404

    def test_grant_is_idempotent(self, client, page, people):
        student = people["student"]
        body = {"permission_type": "edit", "grantee_type": "user", "grantee_id": student.id}
        headers = as_user(people["instructor"])

        assert client.post(f"/acl/page/{page.id}/entries", json=body, headers=headers).json() == {"created": True}
        assert client.post(f"/acl/page/{page.id}/entries", json=body, headers=headers).json() == {"created": False}

    def test_grant_rejects_invalid_kinds(self, client, session, page, people):
        headers = as_user(people["instructor"])
        before = session.query(AclEntry).count()

        response = client.post(f"/acl/page/{page.id}/entries",
                               json={"permission_type": "own", "grantee_type": "user", "grantee_id": 1}, headers=headers)
        assert response.status_code == 400

        response = client.post(f"/acl/page/{page.id}/entries",
                               json={"permission_type": "view", "grantee_type": "group", "grantee_id": 1}, headers=headers)
        assert response.status_code == 400
        assert session.query(AclEntry).count() == before

    def test_revoke(self, client, page, people, roles):
        params = {"permission_type": "view", "grantee_type": "role", "grantee_id": roles["student"]}
        headers = as_user(people["instructor"])

        assert client.delete(f"/acl/page/{page.id}/entries", params=params, headers=headers).json() == {"revoked": True}
        assert client.delete(f"/acl/page/{page.id}/entries", params=params, headers=headers).json() == {"revoked": False}
        assert client.get(f"/acl/page/{page.id}/permissions", headers=as_user(people["student"])).status_code == 403


class TestPermissions:
    def test_my_permissions(self, client, page, people):
        response = client.get(f"/acl/page/{page.id}/permissions", headers=as_user(people["student"]))

        assert response.status_code == 200
        assert response.json() == {"content_type": "page", "content_id": page.id, "permissions": ["view"]}

    def test_admin_permissions(self, client, page, people):
        response = client.get(f"/acl/page/{page.id}/permissions", headers=as_user(people["admin"]))
        assert response.json()["permissions"] == ["view", "edit", "delete", "manage"]

    def test_accessible_content(self, client, session, factory, page, people):
        factory.content(title="Hidden")

        response = client.get("/acl/page", headers=as_user(people["student"]))
        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [page.id]

        response = client.get("/acl/page", headers=as_user(people["admin"]))
        assert len(response.json()) == 2


class TestVisibility:
    def test_public_then_private(self, client, session, factory, people):
        instructor = people["instructor"]
        page = factory.content(creator=instructor)
        AclService(session).setup_default_permissions(page)
        headers = as_user(instructor)

        assert client.get(f"/acl/page/{page.id}/permissions", headers=as_user(people["student"])).status_code == 403

        assert client.post(f"/acl/page/{page.id}/public", headers=headers).json() == {"ok": True}
        assert client.get(f"/acl/page/{page.id}/permissions", headers=as_user(people["student"])).status_code == 200

        assert client.post(f"/acl/page/{page.id}/private", headers=headers).json() == {"deleted": 2}
        # Private removes the manage grant of the caller as well
        assert client.get(f"/acl/page/{page.id}/entries", headers=headers).status_code == 403


class TestBulk:
    def test_bulk_grant_and_revoke(self, client, factory, people):
        pages = [factory.content() for _ in range(3)]
        body = {
            "permission_type": "view",
            "grantee_type": "user",
            "grantee_id": people["student"].id,
            "content_ids": [page.id for page in pages],
        }
        headers = as_user(people["admin"])

        assert client.post("/acl/page/bulk/grant", json=body, headers=headers).json() == {"created": 3}
        assert client.post("/acl/page/bulk/grant", json=body, headers=headers).json() == {"created": 0}
        assert client.post("/acl/page/bulk/revoke", json=body, headers=headers).json() == {"revoked": 3}

    def test_bulk_requires_admin(self, client, factory, people):
        page = factory.content()
        body = {"permission_type": "view", "grantee_type": "user", "grantee_id": 1, "content_ids": [page.id]}

        response = client.post("/acl/page/bulk/grant", json=body, headers=as_user(people["instructor"]))
        assert response.status_code == 403
        assert response.json()["detail"]["message"] == "Access denied. Required role: admin"

    def test_bulk_unknown_kind(self, client, people):
        body = {"permission_type": "view", "grantee_type": "user", "grantee_id": 1, "content_ids": [1]}
        assert client.post("/acl/course/bulk/grant", json=body, headers=as_user(people["admin"])).status_code == 400
