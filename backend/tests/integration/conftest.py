"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against in-memory SQLite (TestingConfig) unless TEST_DATABASE_URL
    points somewhere else.
  - The app is created once per session using create_app("testing") and every
    table is created with db.create_all().
  - Between tests every row is deleted so tests are isolated. There are no
    foreign keys, so the delete order does not matter.

Helper functions (not fixtures) for common operations:
  - register(client, ...)      → {"user": {...}, "access_token": "..."}
  - auth_headers(token)        → {"Authorization": "Bearer <token>"}
  - make_listing(client, ...)  → listing dict
  - make_proposal(client, ...) → HTTP response
  - make_group(client, ...)    → group dict

They are plain functions so tests can call them with arbitrary arguments.
"""

from __future__ import annotations

import pytest
from sqlalchemy import delete

from backend.campusshare import create_app
from backend.campusshare.extensions import db as _db


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        for table in reversed(_db.metadata.sorted_tables):
            _db.session.execute(delete(table))
        _db.session.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def register(
    client,
    first_name: str = "Alice",
    email: str | None = None,
    password: str = "Password1",
    **extra,
) -> dict:
    """Registers a new user and returns the response data dict."""
    if email is None:
        email = f"{first_name.lower()}@campus.edu"
    payload = {
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": "Student",
        "university": "State University",
        **extra,
    }
    resp = client.post("/api/auth/register", json=payload)
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def listing_payload(**overrides) -> dict:
    payload = {
        "title": "Calculus Textbook",
        "description": "Stewart, 8th edition, a few highlighted pages.",
        "price": "20.00",
        "price_type": "sale",
        "category": "textbook",
        "condition": "good",
        "location": "Main Library",
    }
    payload.update(overrides)
    return payload


def make_listing(client, token: str, **overrides) -> dict:
    resp = client.post(
        "/api/listings/",
        json=listing_payload(**overrides),
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_listing failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_proposal(
    client,
    token: str,
    listing_id: str,
    message: str = "I would like to buy this, is it still available?",
    **extra,
):
    """Sends a proposal. Returns the HTTP response."""
    return client.post(
        "/api/proposals/",
        json={"listing_id": listing_id, "message": message, **extra},
        headers=auth_headers(token),
    )


def set_proposal_status(client, token: str, proposal_id: str, status: str):
    return client.put(
        f"/api/proposals/{proposal_id}/status",
        json={"status": status},
        headers=auth_headers(token),
    )


def make_group(client, token: str, **overrides) -> dict:
    payload = {
        "name": "Linear Algebra Crew",
        "description": "Weekly problem sets and exam prep.",
        "course": "MATH 221",
        "subject": "Mathematics",
        "max_members": 5,
    }
    payload.update(overrides)
    resp = client.post("/api/groups/", json=payload, headers=auth_headers(token))
    assert resp.status_code == 201, f"make_group failed: {resp.get_json()}"
    return resp.get_json()["data"]
