"""
HTTP surface: admin permission management, user hierarchy and self-service routes.
"""
from datetime import timedelta

from conftest import (
    BETA_USER_ID,
    BRANCH1_USER_ID,
    BRANCH2_USER_ID,
    DOWN_ADMIN_ID,
    INACTIVE_USER_ID,
    MAIN_ADMIN_ID,
    MISSING_USER_ID,
    SCENARIO_USER_ID,
    SCOPED_ADMIN_ID,
    SUSPENDED_USER_ID,
    auth_headers,
)
from rfidstock.utils.auth_internal import create_access_token

PRODUCT_GRANT = {
    "module": "Product",
    "canView": True,
    "canCreate": True,
    "canEdit": False,
    "canDelete": False,
    "canExport": True,
    "canImport": False,
}


def _grant(client, user_id, grants, admin_id=MAIN_ADMIN_ID):
    return client.post(f"/api/admin/users/{user_id}/permissions", json=grants, headers=auth_headers(admin_id))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestAuthentication:
    def test_missing_token(self, client):
        assert client.get("/api/admin/permissions/modules").status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/api/admin/permissions/modules", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_expired_token(self, client):
        token = create_access_token(MAIN_ADMIN_ID, "ACME", expires_delta=timedelta(minutes=-1))
        response = client.get("/api/admin/permissions/modules", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_inactive_user(self, client):
        response = client.get("/api/user-permissions/my-permissions", headers=auth_headers(INACTIVE_USER_ID))
        assert response.status_code == 401

    def test_token_for_other_tenant(self, client):
        response = client.get("/api/user-permissions/my-permissions", headers=auth_headers(MAIN_ADMIN_ID, "BETA"))
        assert response.status_code == 403

    def test_suspended_tenant(self, client):
        response = client.get("/api/user-permissions/my-permissions", headers=auth_headers(SUSPENDED_USER_ID, "SUSP"))
        assert response.status_code == 403

    def test_admin_routes_reject_plain_users(self, client):
        response = client.get("/api/admin/permissions", headers=auth_headers(BRANCH1_USER_ID))
        assert response.status_code == 403


class TestAdminPermissions:
    def test_modules(self, client):
        response = client.get("/api/admin/permissions/modules", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 200
        assert response.json() == [
            "Product", "RFID", "Invoice", "Reports", "StockTransfer",
            "StockVerification", "ProductImage", "User", "Admin",
        ]

    def test_assign_and_list(self, client):
        response = _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT])
        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == SCENARIO_USER_ID
        assert len(body["permissions"]) == 1

        response = client.get(f"/api/admin/users/{SCENARIO_USER_ID}/permissions", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 200
        [grant] = response.json()
        assert grant["module"] == "Product"
        assert grant["can_view"] is True
        assert grant["can_edit"] is False
        assert grant["can_export"] is True
        assert grant["created_by"] == MAIN_ADMIN_ID
        assert grant["user_email"] == "user123@acme.example.com"

    def test_snake_case_body_accepted(self, client):
        response = _grant(client, SCENARIO_USER_ID, [{"module": "RFID", "can_view": True}])
        assert response.status_code == 200
        assert response.json()["permissions"][0]["can_view"] is True

    def test_put_upserts(self, client):
        _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT])
        response = client.put(
            f"/api/admin/users/{SCENARIO_USER_ID}/permissions",
            json=[{**PRODUCT_GRANT, "canDelete": True}],
            headers=auth_headers(MAIN_ADMIN_ID),
        )
        assert response.status_code == 200
        [grant] = response.json()["permissions"]
        assert grant["can_delete"] is True

    def test_unknown_module_is_400(self, client):
        response = _grant(client, SCENARIO_USER_ID, [{**PRODUCT_GRANT, "module": "Bogus"}])
        assert response.status_code == 400

    def test_duplicate_module_is_400(self, client):
        response = _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT, PRODUCT_GRANT])
        assert response.status_code == 400

    def test_malformed_body_is_400(self, client):
        response = client.post(
            f"/api/admin/users/{SCENARIO_USER_ID}/permissions",
            json={"module": "Product"},
            headers=auth_headers(MAIN_ADMIN_ID),
        )
        assert response.status_code == 400

    def test_unknown_user_is_404(self, client):
        assert _grant(client, MISSING_USER_ID, [PRODUCT_GRANT]).status_code == 404
        response = client.get(f"/api/admin/users/{MISSING_USER_ID}/permissions/summary", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 404

    def test_other_tenant_user_is_404(self, client):
        assert _grant(client, BETA_USER_ID, [PRODUCT_GRANT]).status_code == 404

    def test_scoped_admin_outside_scope_is_403(self, client):
        assert _grant(client, BRANCH2_USER_ID, [PRODUCT_GRANT], admin_id=SCOPED_ADMIN_ID).status_code == 403
        assert _grant(client, BRANCH1_USER_ID, [PRODUCT_GRANT], admin_id=SCOPED_ADMIN_ID).status_code == 200

    def test_summary(self, client):
        _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT])
        response = client.get(f"/api/admin/users/{SCENARIO_USER_ID}/permissions/summary", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 200
        body = response.json()
        assert body["total_permissions"] == 6
        assert body["active_permissions"] == 3
        assert body["module_summaries"][0]["permission_count"] == 3

    def test_remove_one_module(self, client):
        _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT])
        url = f"/api/admin/users/{SCENARIO_USER_ID}/permissions/Product"
        assert client.delete(url, headers=auth_headers(MAIN_ADMIN_ID)).status_code == 200
        # Idempotent
        assert client.delete(url, headers=auth_headers(MAIN_ADMIN_ID)).status_code == 200
        response = client.get(f"/api/admin/users/{SCENARIO_USER_ID}/permissions", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.json() == []

    def test_remove_unknown_module_is_400(self, client):
        response = client.delete(
            f"/api/admin/users/{SCENARIO_USER_ID}/permissions/Bogus",
            headers=auth_headers(MAIN_ADMIN_ID),
        )
        assert response.status_code == 400

    def test_remove_all(self, client):
        _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT, {**PRODUCT_GRANT, "module": "Reports"}])
        response = client.delete(f"/api/admin/users/{SCENARIO_USER_ID}/permissions", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 200
        assert response.json()["message"] == "Removed 2 permission(s)"

    def test_organization_listing_respects_scope(self, client):
        _grant(client, BRANCH1_USER_ID, [PRODUCT_GRANT])
        _grant(client, BRANCH2_USER_ID, [PRODUCT_GRANT])

        response = client.get("/api/admin/permissions", headers=auth_headers(MAIN_ADMIN_ID))
        assert sorted(g["user_id"] for g in response.json()) == [BRANCH1_USER_ID, BRANCH2_USER_ID]

        response = client.get("/api/admin/permissions", headers=auth_headers(SCOPED_ADMIN_ID))
        assert [g["user_id"] for g in response.json()] == [BRANCH1_USER_ID]


class TestBulk:
    def test_bulk_update_reports_per_user(self, client):
        response = client.post(
            "/api/admin/permissions/bulk-update",
            json={"userIds": [1, 2, MISSING_USER_ID], "permissions": [PRODUCT_GRANT]},
            headers=auth_headers(MAIN_ADMIN_ID),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["succeeded"] == 2
        assert body["failed"] == 1
        assert {r["user_id"]: r["success"] for r in body["results"]} == {1: True, 2: True, MISSING_USER_ID: False}

    def test_bulk_remove(self, client):
        _grant(client, BRANCH1_USER_ID, [PRODUCT_GRANT])
        response = client.post(
            "/api/admin/permissions/bulk-remove",
            json={"userIds": [BRANCH1_USER_ID], "modules": ["Product"]},
            headers=auth_headers(MAIN_ADMIN_ID),
        )
        assert response.status_code == 200
        assert response.json()["succeeded"] == 1

    def test_bulk_remove_inconsistent_payload(self, client):
        headers = auth_headers(MAIN_ADMIN_ID)
        neither = client.post("/api/admin/permissions/bulk-remove", json={"userIds": [BRANCH1_USER_ID]}, headers=headers)
        both = client.post(
            "/api/admin/permissions/bulk-remove",
            json={"userIds": [BRANCH1_USER_ID], "modules": ["Product"], "removeAll": True},
            headers=headers,
        )
        empty_ids = client.post("/api/admin/permissions/bulk-remove", json={"userIds": [], "removeAll": True}, headers=headers)
        assert neither.status_code == 400
        assert both.status_code == 400
        assert empty_ids.status_code == 400

    def test_bulk_update_duplicate_module_is_rejected(self, client):
        response = client.post(
            "/api/admin/permissions/bulk-update",
            json={"userIds": [BRANCH1_USER_ID, BRANCH2_USER_ID], "permissions": [PRODUCT_GRANT, PRODUCT_GRANT]},
            headers=auth_headers(MAIN_ADMIN_ID),
        )
        assert response.status_code == 400
        listed = client.get(f"/api/admin/users/{BRANCH1_USER_ID}/permissions", headers=auth_headers(MAIN_ADMIN_ID))
        assert listed.json() == []


class TestAdminUsers:
    def test_get_user(self, client):
        response = client.get(f"/api/admin/users/{BRANCH1_USER_ID}", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 200
        assert response.json()["branch_id"] == 1

    def test_deactivate_and_activate(self, client):
        headers = auth_headers(MAIN_ADMIN_ID)
        response = client.put(f"/api/admin/users/{BRANCH1_USER_ID}/deactivate", headers=headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        # A deactivated user can no longer authenticate.
        assert client.get("/api/user-permissions/my-permissions", headers=auth_headers(BRANCH1_USER_ID)).status_code == 401

        response = client.put(f"/api/admin/users/{BRANCH1_USER_ID}/activate", headers=headers)
        assert response.json()["is_active"] is True

    def test_cannot_deactivate_self(self, client):
        response = client.put(f"/api/admin/users/{MAIN_ADMIN_ID}/deactivate", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 400

    def test_hierarchy(self, client):
        response = client.get("/api/admin/user-hierarchy", headers=auth_headers(SCOPED_ADMIN_ID))
        assert response.status_code == 200
        assert [u["id"] for u in response.json()["users"]] == [BRANCH1_USER_ID]

    def test_hierarchy_by_admin_is_main_admin_only(self, client):
        url = f"/api/admin/user-hierarchy/admin/{SCOPED_ADMIN_ID}"
        response = client.get(url, headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert client.get(url, headers=auth_headers(SCOPED_ADMIN_ID)).status_code == 403

    def test_branches(self, client):
        response = client.get("/api/admin/branches", headers=auth_headers(MAIN_ADMIN_ID))
        assert response.status_code == 200
        assert [b["branch_name"] for b in response.json()] == ["Main Branch", "City Branch"]

    def test_branches_with_unreachable_store(self, client):
        response = client.get("/api/admin/branches", headers=auth_headers(DOWN_ADMIN_ID, "DOWN"))
        assert response.status_code == 200
        assert response.json() == []

    def test_branch_counters(self, client):
        headers = auth_headers(MAIN_ADMIN_ID)
        branch1 = client.get("/api/admin/branches/1/counters", headers=headers)
        branch2 = client.get("/api/admin/branches/2/counters", headers=headers)
        assert branch1.status_code == 200
        assert [c["counter_name"] for c in branch1.json()] == ["Counter A", "Counter B"]
        assert [c["counter_id"] for c in branch2.json()] == [3]
        assert client.get("/api/admin/branches/99/counters", headers=headers).json() == []

    def test_branch_counters_with_unreachable_store(self, client):
        response = client.get("/api/admin/branches/1/counters", headers=auth_headers(DOWN_ADMIN_ID, "DOWN"))
        assert response.status_code == 200
        assert response.json() == []

    def test_branch_counters_need_admin(self, client):
        response = client.get("/api/admin/branches/1/counters", headers=auth_headers(BRANCH1_USER_ID))
        assert response.status_code == 403

    def test_users_by_location(self, client):
        headers = auth_headers(MAIN_ADMIN_ID)
        by_branch = client.get("/api/admin/users/by-location?branchId=1", headers=headers)
        by_both = client.get("/api/admin/users/by-location?branchId=1&counterId=2", headers=headers)
        assert by_branch.status_code == 200
        assert sorted(u["id"] for u in by_branch.json()) == [BRANCH1_USER_ID, INACTIVE_USER_ID, SCENARIO_USER_ID]
        assert [u["id"] for u in by_both.json()] == [SCENARIO_USER_ID]

    def test_users_by_location_follows_hierarchy(self, client):
        response = client.get("/api/admin/users/by-location?branchId=1", headers=auth_headers(SCOPED_ADMIN_ID))
        assert [u["id"] for u in response.json()] == [BRANCH1_USER_ID]


class TestSelfService:
    def test_my_permissions_and_check(self, client):
        _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT])
        headers = auth_headers(SCENARIO_USER_ID)

        response = client.get("/api/user-permissions/my-permissions", headers=headers)
        assert [g["module"] for g in response.json()] == ["Product"]

        response = client.get("/api/user-permissions/check-permission?module=Product&action=view", headers=headers)
        assert response.json()["has_permission"] is True
        response = client.get("/api/user-permissions/check-permission?module=Product&action=delete", headers=headers)
        assert response.json()["has_permission"] is False

    def test_check_permission_requires_parameters(self, client):
        response = client.get("/api/user-permissions/check-permission?module=Product", headers=auth_headers(SCENARIO_USER_ID))
        assert response.status_code == 400

    def test_access_info_and_ids(self, client):
        headers = auth_headers(SCENARIO_USER_ID)
        info = client.get("/api/user-permissions/my-access-info", headers=headers).json()
        assert info["branch_name"] == "Main Branch"
        assert info["counter_name"] == "Counter B"
        assert client.get("/api/user-permissions/my-accessible-branches", headers=headers).json() == [1]
        assert client.get("/api/user-permissions/my-accessible-counters", headers=headers).json() == [2]

    def test_permission_details(self, client):
        _grant(client, SCENARIO_USER_ID, [PRODUCT_GRANT])
        body = client.get("/api/user-permissions/my-permission-details", headers=auth_headers(SCENARIO_USER_ID)).json()
        assert body["permission_summary"]["active_permissions"] == 3
        assert body["access_info"]["user_id"] == SCENARIO_USER_ID
        assert len(body["available_modules"]) == 9
