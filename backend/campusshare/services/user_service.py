"""
services/user_service.py — Profiles and peer ratings.
"""

from __future__ import annotations

import logging

from backend.campusshare.errors import ErrorCode, InvalidOperationError, NotFoundError
from backend.campusshare.repositories import Repositories
from backend.campusshare.repositories.users import UserRecord

logger = logging.getLogger(__name__)


def _get_user_or_404(user_id: str, repos: Repositories) -> UserRecord:
    user = repos.users.get(user_id)
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, f"User {user_id} not found.")
    return user


def user_summaries(user_ids, repos: Repositories) -> dict[str, dict | None]:
    """
    Looks each distinct user up once. Unknown ids map to None rather than
    failing the whole read.
    """
    summaries: dict[str, dict | None] = {}
    for user_id in user_ids:
        if user_id in summaries:
            continue
        user = repos.users.get(user_id)
        summaries[user_id] = user.public_summary() if user is not None else None
    return summaries


def update_profile(user_id: str, changes: dict, repos: Repositories) -> dict:
    """Only first/last name, university, major, year and profile image change."""
    _get_user_or_404(user_id, repos)
    return repos.users.update_profile(user_id, changes).to_dict()


def _public_dict(user: UserRecord) -> dict:
    return {**user.public_summary(), "profile_image": user.profile_image}


def get_public_profile(user_id: str, repos: Repositories) -> dict:
    """Public view of another user: no email, no credential."""
    return _public_dict(_get_user_or_404(user_id, repos))


def rate_user(rater_id: str, user_id: str, score: int, repos: Repositories) -> dict:
    """
    Folds a 1–5 score into the target's average.

    Raises:
      InvalidOperationError(SELF_RATING, 422)
      NotFoundError(USER_NOT_FOUND, 404)
    """
    if rater_id == user_id:
        raise InvalidOperationError(ErrorCode.SELF_RATING, "You cannot rate yourself.")

    _get_user_or_404(user_id, repos)
    user = repos.users.add_rating(user_id, score)
    logger.info("User %s rated %s (%d)", rater_id, user_id, score)
    return _public_dict(user)
