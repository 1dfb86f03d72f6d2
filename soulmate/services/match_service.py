import logging
from typing import List, Optional, Union

from soulmate.core.exceptions import CollaboratorUnavailable, NotFoundError, SelfActionError, ValidationError
from soulmate.models.match import Match, MatchAction, MatchStatus
from soulmate.schemas.match import ActionResult, CompatibilityMode
from soulmate.schemas.profile import UserProfile
from soulmate.services.compatibility_service import CompatibilityEngine
from soulmate.services.enrichment import best_effort
from soulmate.services.protocols import EnrichmentProvider, MatchRepository, PairKey, UserId, UserRepository

logger = logging.getLogger(__name__)

_POSITIVE = {MatchAction.LIKE.value, MatchAction.SUPER_LIKE.value}
_TERMINAL = {MatchStatus.MUTUAL.value, MatchStatus.REJECTED.value}


def next_status(
    user_a_action: Optional[str],
    user_b_action: Optional[str],
    incoming: str,
    current: str = MatchStatus.PENDING.value,
) -> MatchStatus:
    """
    Status after `incoming` has been written into one of the two action slots.

    mutual and rejected are terminal: once reached they are returned as-is.
    """
    if current in _TERMINAL:
        return MatchStatus(current)
    if user_a_action in _POSITIVE and user_b_action in _POSITIVE:
        return MatchStatus.MUTUAL
    if incoming == MatchAction.PASS.value:
        return MatchStatus.REJECTED
    return MatchStatus.PENDING


def _parse_action(action: Union[MatchAction, str]) -> MatchAction:
    try:
        return MatchAction(action)
    except ValueError:
        allowed = ", ".join(a.value for a in MatchAction)
        raise ValidationError(
            f"Unknown action '{action}'",
            [{"field": "action", "message": f"must be one of: {allowed}"}],
        )


class MatchService:
    """
    Owns the per-pair like/pass state.

    Score, band and insight are written once, when the first action between two
    users creates the record. The conversation analysis is added after a pair
    turns mutual and is best-effort.
    """

    def __init__(
        self,
        matches: MatchRepository,
        users: UserRepository,
        engine: CompatibilityEngine,
        enrichment: Optional[EnrichmentProvider] = None,
        timeout: Optional[float] = None,
    ):
        self.matches = matches
        self.users = users
        self.engine = engine
        self.enrichment = enrichment
        self.timeout = timeout

    async def _load_profile(self, user_id: UserId) -> UserProfile:
        profile = await self.users.find_user_by_id(user_id)
        if profile is None:
            raise NotFoundError(f"User {user_id} not found")
        return profile

    async def apply_action(
        self,
        user_id: UserId,
        target_user_id: UserId,
        action: Union[MatchAction, str],
    ) -> ActionResult:
        if str(user_id) == str(target_user_id):
            raise SelfActionError("Cannot action yourself")
        action = _parse_action(action)

        pair = PairKey.of(user_id, target_user_id)
        side = pair.side_of(user_id)

        defaults = None
        actor = target = None
        existing = await self.matches.find_one(pair.key)
        if existing is None:
            actor = await self._load_profile(user_id)
            target = await self._load_profile(target_user_id)
            result = await self.engine.evaluate(actor, target, CompatibilityMode.BASELINE)
            defaults = {
                "user_a_id": pair.user_a_id,
                "user_b_id": pair.user_b_id,
                "score": result.score,
                "band": result.band.value,
                "insight": result.enrichment,
            }

        became_mutual = False

        def patch(record: Match) -> None:
            nonlocal became_mutual
            if record.status in _TERMINAL:
                logger.info(f"Ignoring '{action.value}' from {user_id} on {record.status} pair {pair.key}")
                return
            if side == "a":
                record.user_a_action = action.value
            else:
                record.user_b_action = action.value
            record.status = next_status(
                record.user_a_action,
                record.user_b_action,
                action.value,
                record.status or MatchStatus.PENDING.value,
            ).value
            became_mutual = record.status == MatchStatus.MUTUAL.value

        record = await self.matches.upsert(pair, defaults, patch)
        matched = record.status == MatchStatus.MUTUAL.value

        if became_mutual:
            logger.info(f"Mutual match between {pair.user_a_id} and {pair.user_b_id}")
            if self.enrichment is not None:
                actor = actor or await self._load_profile(user_id)
                target = target or await self._load_profile(target_user_id)
                analysis = await best_effort(
                    self.enrichment.analyze_conversation(actor, target, []),
                    what=f"match analysis {pair.key}",
                    timeout=self.timeout,
                )
                if analysis:
                    try:
                        await self.matches.set_analysis(pair.key, analysis)
                        record.ai_analysis = analysis
                    except CollaboratorUnavailable as e:
                        logger.exception(f"Failed to store analysis for mutual match {pair.key}: {e}")

        return ActionResult(matched=matched, record=record)

    async def get_mutual_matches(self, user_id: UserId) -> List[Match]:
        return await self.matches.find_mutual_for_user(user_id)
