"""
Collaborator interfaces consumed by the matching core.

The services receive implementations through their constructors: the SQL
repositories in soulmate.db.repositories, AIService for enrichment, or test
doubles.
"""
from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from soulmate.models.match import Match
from soulmate.schemas.match import SafetyAnalysis
from soulmate.schemas.profile import UserProfile

UserId = Union[uuid.UUID, str]


@dataclass(frozen=True)
class PairKey:
    """Canonical identity of an unordered pair of users."""
    user_a_id: UserId
    user_b_id: UserId
    key: str

    @classmethod
    def of(cls, first: UserId, second: UserId) -> "PairKey":
        low, high = sorted((first, second), key=str)
        key = hashlib.md5(f"{low}{high}".encode("utf-8")).hexdigest()
        return cls(user_a_id=low, user_b_id=high, key=key)

    def side_of(self, user_id: UserId) -> str:
        """'a' or 'b': which action slot belongs to user_id."""
        if str(user_id) == str(self.user_a_id):
            return "a"
        if str(user_id) == str(self.user_b_id):
            return "b"
        raise ValueError(f"User {user_id} is not part of pair {self.key}")


@dataclass(frozen=True)
class GeoQuery:
    """Candidate search around a point. radius_miles is applied as a bounding box."""
    lat: float
    lng: float
    radius_miles: float
    exclude_ids: Sequence[UserId] = field(default_factory=tuple)
    limit: Optional[int] = None


@runtime_checkable
class MatchRepository(Protocol):

    async def find_one(self, pair_key: str) -> Optional[Match]:
        ...

    async def upsert(
        self,
        pair: PairKey,
        defaults: Optional[Dict[str, Any]],
        patch: Callable[[Match], None],
    ) -> Match:
        """
        Atomically find-or-create the record for `pair` and apply `patch` to it.

        `defaults` are the creation-time columns (score, band, insight); they are
        ignored when the record already exists. Two concurrent calls for one pair
        must end up with a single record carrying both patches.
        """
        ...

    async def set_analysis(self, pair_key: str, analysis: str) -> None:
        ...

    async def find_mutual_for_user(self, user_id: UserId) -> List[Match]:
        ...


@runtime_checkable
class UserRepository(Protocol):

    async def find_user_by_id(self, user_id: UserId) -> Optional[UserProfile]:
        ...

    async def find_candidates(self, query: GeoQuery) -> List[UserProfile]:
        ...

    async def set_active(
        self, user_id: UserId, is_active: bool, suspended_for_review: Optional[bool] = None
    ) -> None:
        ...


@runtime_checkable
class EnrichmentProvider(Protocol):
    """Best-effort text generation. Every call may raise or hang."""

    async def generate_insight(self, profile_a: UserProfile, profile_b: UserProfile, score: float) -> str:
        ...

    async def analyze_conversation(
        self, profile_a: UserProfile, profile_b: UserProfile, recent_messages: Sequence[Any]
    ) -> str:
        ...

    async def analyze_safety_risk(self, profile_data: Dict[str, Any], messages: Sequence[Any]) -> SafetyAnalysis:
        ...
