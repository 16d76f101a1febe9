"""
services/auth_service.py — Registration, login and bearer-token issue.

Token design:
  - Access token only: JWT, HS256, sub = user_id (str), TTL from
    JWT_ACCESS_TOKEN_EXPIRES. There are no refresh tokens; a client whose
    token expires logs in again.

Password storage:
  - Hashed with bcrypt (cost factor from config BCRYPT_LOG_ROUNDS, default 12)
  - Raw password is never stored, never logged

current_app.config is the only Flask dependency here (JWT secret, expiry,
bcrypt rounds).
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

import bcrypt
import jwt
from flask import current_app

from backend.campusshare.errors import AppError, ErrorCode, NotFoundError
from backend.campusshare.repositories import Repositories

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def _create_access_token(user_id: str) -> str:
    """
    Payload: sub (user_id), iat, exp, jti.
    Secret from current_app.config["JWT_SECRET_KEY"].
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"],
        # Two tokens issued in the same second still differ.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


# ── Public service functions ───────────────────────────────────────────────

def register_user(data: dict, repos: Repositories) -> dict:
    """
    Creates a new user account and issues an access token.

    Raises:
      ConflictError(DUPLICATE_EMAIL, 409) — email already registered

    Returns: {"user": {...}, "access_token": "..."}
    """
    user = repos.users.create(
        email=data["email"],
        password_hash=_hash_password(data["password"]),
        first_name=data["first_name"],
        last_name=data["last_name"],
        university=data["university"],
        major=data.get("major"),
        year=data.get("year"),
        profile_image=data.get("profile_image"),
    )
    logger.info("Registered user %s", user.user_id)

    return {
        "user": user.to_dict(),
        "access_token": _create_access_token(user.user_id),
    }


def login_user(email: str, password: str, repos: Repositories) -> dict:
    """
    Validates credentials and issues a new access token.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) — unknown email or wrong password.
      Same error for both so registered emails cannot be enumerated.
    """
    user = repos.users.find_by_email(email)

    if user is None or not bcrypt.checkpw(
            password.encode("utf-8"),
            user.password_hash.encode("utf-8"),
    ):
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "The email or password is incorrect.",
            401,
        )

    return {
        "user": user.to_dict(),
        "access_token": _create_access_token(user.user_id),
    }


def get_current_user(user_id: str, repos: Repositories) -> dict:
    """
    Raises:
      NotFoundError(USER_NOT_FOUND) — the token outlived its user.
    """
    user = repos.users.get(user_id)
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, f"User {user_id} not found.")
    return user.to_dict()
