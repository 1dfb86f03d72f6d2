import asyncio
import logging
from typing import Any, List, Optional, Sequence, Tuple

from soulmate.core.config import settings
from soulmate.core.exceptions import EnrichmentError, NotFoundError, PremiumRequiredError, SelfActionError
from soulmate.schemas.match import CompatibilityMode, CompatibilityResult
from soulmate.schemas.profile import UserProfile
from soulmate.services.ai_service import AIService
from soulmate.services.compatibility_service import CompatibilityEngine
from soulmate.services.enrichment import best_effort
from soulmate.services.protocols import UserId, UserRepository

logger = logging.getLogger(__name__)


class CoachingService:
    """AI-assisted extras for a pair of users: detailed insights, openers, coaching."""

    def __init__(
        self,
        users: UserRepository,
        engine: CompatibilityEngine,
        ai: AIService,
        timeout: Optional[float] = None,
    ):
        self.users = users
        self.engine = engine
        self.ai = ai
        self.timeout = timeout

    async def _load_pair(self, user_id: UserId, other_id: UserId) -> Tuple[UserProfile, UserProfile]:
        if str(user_id) == str(other_id):
            raise SelfActionError("Cannot request insights about yourself")
        user = await self.users.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        other = await self.users.find_user_by_id(other_id)
        if other is None:
            raise NotFoundError(f"User {other_id} not found")
        return user, other

    @staticmethod
    def _require_premium(user: UserProfile) -> None:
        if not user.is_premium:
            raise PremiumRequiredError("Premium subscription required")

    async def compatibility_insights(self, user_id: UserId, other_id: UserId) -> CompatibilityResult:
        """Detailed four-factor score plus a long-form AI write-up (premium)."""
        user, other = await self._load_pair(user_id, other_id)
        self._require_premium(user)

        result = self.engine.score(user, other, CompatibilityMode.DETAILED)
        insights = await best_effort(
            self.ai.generate_detailed_insights(user, other),
            what=f"detailed insights {user.id}->{other.id}",
            timeout=self.timeout,
        )
        return result.model_copy(update={"enrichment": insights})

    async def conversation_starters(self, user_id: UserId, other_id: UserId) -> List[str]:
        user, other = await self._load_pair(user_id, other_id)
        return await self.ai.generate_conversation_starters(user, other)

    async def coach_conversation(self, user_id: UserId, other_id: UserId, messages: Sequence[Any]) -> str:
        """
        Coaching advice on a running conversation (premium).

        The advice is the whole result here, so provider failures are raised
        as EnrichmentError instead of being swallowed.
        """
        user, other = await self._load_pair(user_id, other_id)
        self._require_premium(user)

        timeout = settings.ENRICHMENT_TIMEOUT_SECONDS if self.timeout is None else self.timeout
        try:
            return await asyncio.wait_for(self.ai.analyze_conversation(user, other, messages), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Conversation coaching for {user.id} timed out after {timeout}s")
            raise EnrichmentError("Unable to analyze conversation") from e
