import pytest

import auth
import config
from errors import Unauthorized, ValidationError


def test_admin_password_is_not_stored_in_plain_text(db):
    admin = db.find_one("admin", {"email": config.ADMIN_EMAIL})
    assert "password" not in admin
    assert admin["password_hash"] != config.ADMIN_PASSWORD
    assert auth.verify_password(config.ADMIN_PASSWORD, admin["password_hash"])


def test_login_issues_token_that_resolves_to_admin(db):
    session = auth.login_admin(db, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
    assert session["admin"]["email"] == config.ADMIN_EMAIL
    assert auth.admin_from_token(db, session["token"]) == session["admin"]


def test_login_failures(db):
    with pytest.raises(ValidationError):
        auth.login_admin(db, "", "x")
    with pytest.raises(Unauthorized):
        auth.login_admin(db, config.ADMIN_EMAIL, "wrong")
    with pytest.raises(Unauthorized):
        auth.login_admin(db, "someone@else.com", config.ADMIN_PASSWORD)


def test_tampered_expired_and_foreign_tokens_are_rejected(db):
    admin = db.find_one("admin", {"email": config.ADMIN_EMAIL})
    token = auth.create_token(admin["id"], admin["email"])
    header, payload, sig = token.split(".")

    for bad in (
        f"{header}.{payload}.{'0' * len(sig)}",
        "not-a-token",
        f"admin_{admin['id']}",
        auth.create_token(admin["id"], admin["email"], expires_in=-10),
        auth.create_token("unknown-admin", admin["email"]),
    ):
        with pytest.raises(Unauthorized):
            auth.admin_from_token(db, bad)


def test_duplicate_admin_rejected(db):
    with pytest.raises(ValidationError):
        auth.create_admin(db, config.ADMIN_EMAIL, "another")
