"""
repositories — Typed access to the key-value store, one repository per entity.

Services receive a Repositories container rather than a session, so unit
tests can hand them MagicMock repositories.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from backend.campusshare.repositories.favorites import FavoriteRepository
from backend.campusshare.repositories.listings import ListingRepository
from backend.campusshare.repositories.proposals import ProposalRepository
from backend.campusshare.repositories.study_groups import StudyGroupRepository
from backend.campusshare.repositories.users import UserRepository
from backend.campusshare.store import KeyValueStore


@dataclass
class Repositories:
    users: UserRepository
    listings: ListingRepository
    proposals: ProposalRepository
    groups: StudyGroupRepository
    favorites: FavoriteRepository

    @classmethod
    def from_session(cls, session: Session) -> "Repositories":
        store = KeyValueStore(session)
        return cls(
            users=UserRepository(store),
            listings=ListingRepository(store),
            proposals=ProposalRepository(store),
            groups=StudyGroupRepository(store),
            favorites=FavoriteRepository(store),
        )
