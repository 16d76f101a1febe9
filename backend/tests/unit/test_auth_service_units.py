"""
Unit tests for auth_service and the bearer-token middleware.

Repositories are mocked; the Flask app is only used for current_app config
and a request context.
"""

from __future__ import annotations

from datetime import timedelta

import bcrypt
import jwt
import pytest
from flask import Flask, g

from backend.campusshare.errors import AppError, ErrorCode
from backend.campusshare.middleware.auth_middleware import optional_auth, require_auth
from backend.campusshare.services import auth_service

from . import factories


@pytest.fixture
def app():
    flask_app = Flask(__name__)
    flask_app.config.update(
        JWT_SECRET_KEY="unit-test-secret-with-32-bytes-min",
        JWT_ACCESS_TOKEN_EXPIRES=timedelta(minutes=5),
        JWT_ALGORITHM="HS256",
        BCRYPT_LOG_ROUNDS=4,
    )
    return flask_app


def _hashed(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


# ═══════════════════════════════════════════════════════════════════════════
# auth_service
# ═══════════════════════════════════════════════════════════════════════════

def test_register_hashes_password_and_issues_token(app):
    repos = factories.mock_repos()
    repos.users.create.return_value = factories.user("u-1")

    with app.app_context():
        result = auth_service.register_user(
            {
                "email": "alice@campus.edu",
                "password": "Secure123",
                "first_name": "Alice",
                "last_name": "Nguyen",
                "university": "State University",
            },
            repos,
        )

    kwargs = repos.users.create.call_args.kwargs
    assert kwargs["password_hash"] != "Secure123"
    assert bcrypt.checkpw(b"Secure123", kwargs["password_hash"].encode("utf-8"))
    assert kwargs["major"] is None

    payload = jwt.decode(result["access_token"], "unit-test-secret-with-32-bytes-min", algorithms=["HS256"])
    assert payload["sub"] == "u-1"
    assert "jti" in payload
    assert "password_hash" not in result["user"]


def test_login_success(app):
    repos = factories.mock_repos()
    repos.users.find_by_email.return_value = factories.user("u-1", password_hash=_hashed("Secure123"))

    with app.app_context():
        result = auth_service.login_user("alice@campus.edu", "Secure123", repos)

    assert result["user"]["user_id"] == "u-1"


def test_login_wrong_password_raises_401(app):
    repos = factories.mock_repos()
    repos.users.find_by_email.return_value = factories.user("u-1", password_hash=_hashed("Secure123"))

    with app.app_context(), pytest.raises(AppError) as exc_info:
        auth_service.login_user("alice@campus.edu", "Wrong1234", repos)

    assert exc_info.value.code == ErrorCode.INVALID_CREDENTIALS
    assert exc_info.value.http_status == 401


def test_login_unknown_email_raises_same_error(app):
    repos = factories.mock_repos()
    repos.users.find_by_email.return_value = None

    with app.app_context(), pytest.raises(AppError) as exc_info:
        auth_service.login_user("ghost@campus.edu", "Secure123", repos)

    assert exc_info.value.code == ErrorCode.INVALID_CREDENTIALS


def test_tokens_issued_back_to_back_differ(app):
    with app.app_context():
        first = auth_service._create_access_token("u-1")
        second = auth_service._create_access_token("u-1")

    assert first != second


def test_get_current_user_raises_user_not_found():
    repos = factories.mock_repos()

    with pytest.raises(AppError) as exc_info:
        auth_service.get_current_user("u-404", repos)

    assert exc_info.value.code == ErrorCode.USER_NOT_FOUND
    assert exc_info.value.http_status == 404


# ═══════════════════════════════════════════════════════════════════════════
# Middleware
# ═══════════════════════════════════════════════════════════════════════════

@require_auth
def _protected():
    return g.user_id


@optional_auth
def _personalised():
    return g.user_id


def _token(app) -> str:
    with app.app_context():
        return auth_service._create_access_token("u-1")


def test_require_auth_sets_user_id(app):
    token = _token(app)
    with app.test_request_context(headers={"Authorization": f"Bearer {token}"}):
        assert _protected() == "u-1"


def test_require_auth_without_header(app):
    with app.test_request_context(), pytest.raises(AppError) as exc_info:
        _protected()
    assert exc_info.value.code == ErrorCode.TOKEN_MISSING


def test_require_auth_rejects_wrong_scheme(app):
    token = _token(app)
    with app.test_request_context(headers={"Authorization": f"Basic {token}"}), \
            pytest.raises(AppError) as exc_info:
        _protected()
    assert exc_info.value.code == ErrorCode.TOKEN_INVALID


def test_require_auth_rejects_non_string_sub(app):
    token = jwt.encode({"sub": 42}, "unit-test-secret-with-32-bytes-min", algorithm="HS256")
    with app.test_request_context(headers={"Authorization": f"Bearer {token}"}), \
            pytest.raises(AppError) as exc_info:
        _protected()
    assert exc_info.value.code == ErrorCode.TOKEN_INVALID


def test_require_auth_rejects_other_secret(app):
    token = jwt.encode({"sub": "u-1"}, "another-secret-also-32-bytes-long", algorithm="HS256")
    with app.test_request_context(headers={"Authorization": f"Bearer {token}"}), \
            pytest.raises(AppError) as exc_info:
        _protected()
    assert exc_info.value.code == ErrorCode.TOKEN_INVALID


def test_optional_auth_without_header_is_anonymous(app):
    with app.test_request_context():
        assert _personalised() is None


def test_optional_auth_with_bad_header_still_fails(app):
    with app.test_request_context(headers={"Authorization": "Bearer nope"}), \
            pytest.raises(AppError) as exc_info:
        _personalised()
    assert exc_info.value.code == ErrorCode.TOKEN_INVALID
