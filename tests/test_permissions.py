"""
Tests for role seeding and permission enforcement on routes.
"""
import pytest

from app.db.models.role import Permission, Role
from app.services.role_service import (
    PERMISSIONS,
    get_user_permissions,
    has_permission,
    seed_roles_and_permissions,
)
from app.services.password_service import create_reset_token


def test_seed_is_idempotent(db):
    seed_roles_and_permissions(db)
    seed_roles_and_permissions(db)

    assert db.query(Permission).count() == len(PERMISSIONS)
    assert sorted(r.name for r in db.query(Role).all()) == ["admin", "user"]
    admin = db.query(Role).filter(Role.name == "admin").one()
    assert len(admin.permissions) == len(PERMISSIONS)


def test_basic_role_permissions(basic_user):
    assert get_user_permissions(basic_user) == {"user_list"}
    assert has_permission(basic_user, "user_list") is True
    assert has_permission(basic_user, "subscription_add") is False


def test_admin_bypasses_checks(test_user):
    assert has_permission(test_user, "anything_at_all") is True


def test_user_without_role_has_no_permissions(db, basic_user):
    basic_user.role_id = None
    db.commit()
    db.refresh(basic_user)

    assert get_user_permissions(basic_user) == set()
    assert has_permission(basic_user, "user_list") is False


@pytest.mark.parametrize("method, path", [
    ("get", "/subscriptions"),
    ("get", "/subscriptions/export"),
    ("post", "/subscriptions"),
    ("put", "/subscriptions/1"),
    ("delete", "/subscriptions/1"),
    ("get", "/departments"),
    ("post", "/departments"),
    ("get", "/jobs"),
    ("post", "/jobs/subscription_status/run"),
    ("post", "/currency/update"),
    ("post", "/users"),
    ("delete", "/users/1"),
])
def test_missing_permission_is_forbidden(client, basic_headers, method, path):
    response = getattr(client, method)(path, headers=basic_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied: insufficient permission"


def test_granted_permission_allows_access(client, db, basic_user, basic_headers, roles):
    role = roles["user"]
    role.permissions.append(db.query(Permission).filter(Permission.name == "subscription_list").one())
    db.commit()

    response = client.get("/subscriptions", headers=basic_headers)

    assert response.status_code == 200


def test_inactive_user_token_is_rejected(client, db, test_user, auth_headers):
    test_user.status = "Inactive"
    db.commit()

    response = client.get("/subscriptions", headers=auth_headers)

    assert response.status_code == 403


def test_reset_token_is_not_a_session(client, test_user):
    token = create_reset_token(test_user)

    response = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
