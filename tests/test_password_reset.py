"""
Tests for the forgot-password and reset-password flow.
"""
from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from app.core.security import verify_password
from app.db.models.user import User
from app.services.password_service import (
    InvalidResetTokenError,
    create_reset_token,
    request_password_reset,
    reset_password,
)


def token_from(link: str) -> str:
    return parse_qs(urlparse(link).query)["token"][0]


def test_request_sends_link(db, test_user, dispatcher):
    assert request_password_reset(db, "Asha@Example.com", dispatcher) is True

    email, link = dispatcher.resets[0]
    assert email == "asha@example.com"
    assert link.startswith("http://localhost:5173/reset-password?token=")


def test_request_for_unknown_email_sends_nothing(db, test_user, dispatcher):
    assert request_password_reset(db, "nobody@example.com", dispatcher) is False
    assert dispatcher.resets == []


def test_reset_changes_password_once(db, test_user):
    token = create_reset_token(test_user)

    reset_password(db, token, "brand-new-pass")

    db.expire_all()
    assert verify_password("brand-new-pass", db.get(User, test_user.id).password_hash)
    with pytest.raises(InvalidResetTokenError):
        reset_password(db, token, "another-pass")


def test_expired_token_rejected(db, test_user):
    token = create_reset_token(test_user, expires_delta=timedelta(seconds=-1))

    with pytest.raises(InvalidResetTokenError):
        reset_password(db, token, "brand-new-pass")


def test_access_token_is_not_a_reset_token(db, test_user):
    from app.core.security import create_access_token

    token = create_access_token({"sub": str(test_user.id)})

    with pytest.raises(InvalidResetTokenError):
        reset_password(db, token, "brand-new-pass")


def test_forgot_password_route_hides_unknown_accounts(client, test_user, dispatcher):
    known = client.post("/auth/forgot-password", json={"email": "asha@example.com"})
    unknown = client.post("/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.status_code == 200
    assert unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]
    assert len(dispatcher.resets) == 1


def test_reset_password_route(client, test_user, dispatcher):
    client.post("/auth/forgot-password", json={"email": "asha@example.com"})
    token = token_from(dispatcher.resets[0][1])

    response = client.post("/auth/reset-password", json={"token": token, "new_password": "s3cure-pass"})
    login = client.post("/auth/login", json={"email": "asha@example.com", "password": "s3cure-pass"})

    assert response.status_code == 200
    assert login.status_code == 200


def test_reset_password_route_bad_token(client, test_user):
    response = client.post("/auth/reset-password", json={"token": "garbage", "new_password": "s3cure-pass"})

    assert response.status_code == 400
    assert response.json()["success"] is False
