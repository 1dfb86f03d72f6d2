import asyncio
import logging
from typing import Iterable, List, Optional

from soulmate.config.constants import DISCOVERY_MIN_SCORE
from soulmate.core.config import settings
from soulmate.core.exceptions import NotFoundError, ValidationError
from soulmate.schemas.match import CompatibilityMode, DiscoveryMatch
from soulmate.schemas.profile import UserProfile
from soulmate.services.compatibility_service import CompatibilityEngine
from soulmate.services.protocols import GeoQuery, UserId, UserRepository
from soulmate.utils.geo import calculate_age, haversine_miles

logger = logging.getLogger(__name__)

# looking_for value -> genders it accepts
_LOOKING_FOR_GENDERS = {
    "men": {"man"},
    "women": {"woman"},
}


def _accepts_gender(looking_for: Optional[str], gender: Optional[str]) -> bool:
    if not looking_for or not gender:
        return True
    accepted = _LOOKING_FOR_GENDERS.get(looking_for.lower())
    if accepted is None:  # "everyone" or an unknown value
        return True
    return gender.lower() in accepted


def _accepts_age(seeker: UserProfile, candidate: UserProfile) -> bool:
    age = calculate_age(candidate.birth_date)
    if age is None:
        return True
    prefs = seeker.preferences
    if prefs.min_age is not None and age < prefs.min_age:
        return False
    if prefs.max_age is not None and age > prefs.max_age:
        return False
    return True


def preferences_match(seeker: UserProfile, candidate: UserProfile) -> bool:
    """Both sides' gender preferences and the seeker's age range. Unset values never exclude."""
    if not candidate.is_active or candidate.is_banned:
        return False
    if not _accepts_gender(seeker.looking_for, candidate.gender):
        return False
    if not _accepts_gender(candidate.looking_for, seeker.gender):
        return False
    return _accepts_age(seeker, candidate)


class DiscoveryService:
    def __init__(self, engine: CompatibilityEngine, users: Optional[UserRepository] = None):
        self.engine = engine
        self.users = users

    async def discover(
        self,
        seeker: UserProfile,
        pool: Iterable[UserProfile],
        max_distance: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[DiscoveryMatch]:
        """
        Rank `pool` for `seeker`.

        Distance and preference filters run first, then the pure baseline score
        (> DISCOVERY_MIN_SCORE kept), then ordering by score desc / id asc and
        truncation. Only the returned candidates are sent for AI enrichment.
        """
        if max_distance is None:
            max_distance = seeker.preferences.max_distance or settings.DEFAULT_MAX_DISTANCE_MILES
        if limit is None:
            limit = settings.DISCOVERY_DEFAULT_LIMIT
        if seeker.location is None:
            raise ValidationError("Seeker has no location", [{"field": "location", "message": "required for discovery"}])

        scored = []
        for candidate in pool:
            if str(candidate.id) == str(seeker.id):
                continue
            if candidate.location is None:
                continue
            distance = haversine_miles(
                seeker.location.lat, seeker.location.lng,
                candidate.location.lat, candidate.location.lng,
            )
            if distance > max_distance:
                continue
            if not preferences_match(seeker, candidate):
                continue

            result = self.engine.score(seeker, candidate, CompatibilityMode.BASELINE)
            if result.score > DISCOVERY_MIN_SCORE:
                scored.append(DiscoveryMatch(user=candidate, distance_miles=distance, result=result))

        scored.sort(key=lambda m: (-m.result.score, str(m.user.id)))
        selected = scored[:max(0, limit)]

        if selected:
            enriched = await asyncio.gather(
                *(self.engine.enrich(seeker, m.user, m.result) for m in selected)
            )
            selected = [m.model_copy(update={"result": r}) for m, r in zip(selected, enriched)]

        logger.info(f"Discovery for {seeker.id}: {len(scored)} compatible, returning {len(selected)}")
        return selected

    async def discover_for_user(self, user_id: UserId, limit: Optional[int] = None) -> List[DiscoveryMatch]:
        """Load the seeker and nearby candidates from the user repository, then discover."""
        if self.users is None:
            raise RuntimeError("DiscoveryService needs a UserRepository for discover_for_user")

        seeker = await self.users.find_user_by_id(user_id)
        if seeker is None:
            raise NotFoundError(f"User {user_id} not found")
        if seeker.location is None:
            raise ValidationError("Seeker has no location", [{"field": "location", "message": "required for discovery"}])

        max_distance = seeker.preferences.max_distance or settings.DEFAULT_MAX_DISTANCE_MILES
        pool = await self.users.find_candidates(
            GeoQuery(
                lat=seeker.location.lat,
                lng=seeker.location.lng,
                radius_miles=max_distance,
                exclude_ids=(seeker.id,),
            )
        )
        return await self.discover(seeker, pool, max_distance=max_distance, limit=limit)
