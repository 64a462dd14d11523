"""
Tests for login / logout and role permissions
"""
from unittest.mock import Mock

from communityfund.auth import RolePermissionAuthProvider, ROLE_PERMISSIONS, ROLES


def test_login_returns_user_and_sets_session(client, cmb_user):
    response = client.post("/login", data={"email": "cmb@kalo.vn", "password": "secret"})

    assert response.status_code == 200
    assert response.json() == {
        "user_id": 1,
        "full_name": "Ho Van Minh",
        "role": "cmb",
        "community_id": 10,
        "commune_id": 1,
    }
    workflow = client.get("/api/v1/workflow/10/1")
    assert workflow.status_code == 200


def test_login_wrong_password(client, cmb_user):
    response = client.post("/login", data={"email": "cmb@kalo.vn", "password": "nope"})
    assert response.status_code == 401


def test_login_unknown_email(client, cmb_user):
    response = client.post("/login", data={"email": "ghost@kalo.vn", "password": "secret"})
    assert response.status_code == 401


def test_logout_clears_session(client, cmb_user):
    client.post("/login", data={"email": "cmb@kalo.vn", "password": "secret"})
    assert client.get("/logout").json() == {"ok": True}
    assert client.get("/api/v1/workflow/10/1").status_code == 401


def test_anonymous_is_rejected(client, geography):
    assert client.get("/api/v1/dashboard/fund-flow", params={"fiscal_year_id": 1}).status_code == 401


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.text == "ok"


class TestRolePermissions:
    def _user(self, role):
        user = Mock()
        user.role = role
        return user

    def test_every_role_has_permissions(self):
        assert set(ROLE_PERMISSIONS) == set(ROLES)

    def test_direct_permission(self):
        provider = RolePermissionAuthProvider()
        assert provider.has_permission(self._user("cmb"), "create_plan") is True
        assert provider.has_permission(self._user("pf"), "create_plan") is False

    def test_view_all_covers_view_actions(self):
        provider = RolePermissionAuthProvider()
        assert provider.has_permission(self._user("pf"), "view_monitoring") is True
        assert provider.has_permission(self._user("cmb"), "view_dashboard") is True

    def test_view_all_does_not_cover_writes(self):
        provider = RolePermissionAuthProvider()
        assert provider.has_permission(self._user("pf"), "submit_report") is False

    def test_limited_roles(self):
        provider = RolePermissionAuthProvider()
        assert provider.has_permission(self._user("community_member"), "submit_idea") is True
        assert provider.has_permission(self._user("community_member"), "view_dashboard") is False
        assert provider.has_permission(self._user("forest_owner"), "view_budget") is True
        assert provider.has_permission(self._user("viewer"), "view_monitoring") is True
        assert provider.has_permission(self._user("viewer"), "view_budget") is False

    def test_unknown_role_and_no_user(self):
        provider = RolePermissionAuthProvider()
        assert provider.has_permission(self._user("admin"), "view_plan") is False
        assert provider.has_permission(None, "view_plan") is False

    def test_custom_table(self):
        provider = RolePermissionAuthProvider({"auditor": frozenset({"view_reports"})})
        assert provider.has_permission(self._user("auditor"), "view_reports") is True
        assert provider.has_permission(self._user("cmb"), "create_plan") is False
