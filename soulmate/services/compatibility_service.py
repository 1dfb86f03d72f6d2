import logging
from typing import Optional

from soulmate.config.constants import (
    BASELINE_TRAIT_WEIGHTS,
    DETAILED_TRAIT_WEIGHTS,
    BASELINE_BLEND,
    DETAILED_BLEND,
    BAND_PERFECT_MIN,
    BAND_EXCELLENT_MIN,
    BAND_GOOD_MIN,
)
from soulmate.models.match import MatchBand
from soulmate.schemas.match import CompatibilityMode, CompatibilityResult
from soulmate.schemas.profile import UserProfile
from soulmate.services.enrichment import best_effort
from soulmate.services.protocols import EnrichmentProvider
from soulmate.services.scoring import (
    deal_breaker_score,
    lifestyle_score,
    score_traits,
    shared_interests_score,
    shared_values_score,
)

logger = logging.getLogger(__name__)


def band_for_score(score: float) -> MatchBand:
    if score >= BAND_PERFECT_MIN:
        return MatchBand.PERFECT
    if score >= BAND_EXCELLENT_MIN:
        return MatchBand.EXCELLENT
    if score >= BAND_GOOD_MIN:
        return MatchBand.GOOD
    return MatchBand.POTENTIAL


class CompatibilityEngine:
    """
    Scores a pair of users in two phases.

    `score` is the authoritative, pure computation. `enrich` adds the optional
    AI insight for paying requesters and never fails. `evaluate` runs both.
    """

    def __init__(self, enrichment: Optional[EnrichmentProvider] = None, timeout: Optional[float] = None):
        self.enrichment = enrichment
        self.timeout = timeout

    def score(
        self,
        user_a: UserProfile,
        user_b: UserProfile,
        mode: CompatibilityMode = CompatibilityMode.BASELINE,
    ) -> CompatibilityResult:
        dealbreakers = deal_breaker_score(user_a, user_b)
        weights = BASELINE_TRAIT_WEIGHTS if mode == CompatibilityMode.BASELINE else DETAILED_TRAIT_WEIGHTS
        personality = score_traits(user_a.traits.as_scores(), user_b.traits.as_scores(), weights)
        lifestyle = lifestyle_score(user_a.lifestyle, user_b.lifestyle)

        if mode == CompatibilityMode.BASELINE:
            components = {
                "personality": personality,
                "lifestyle": lifestyle,
                "deal_breakers": dealbreakers,
            }
            blend = BASELINE_BLEND
        else:
            # Deal-breakers are reported but take no part in the detailed blend
            components = {
                "personality": personality,
                "interests": shared_interests_score(user_a.interests, user_b.interests),
                "lifestyle": lifestyle,
                "values": shared_values_score(user_a.values, user_b.values),
                "deal_breakers": dealbreakers,
            }
            blend = DETAILED_BLEND

        final = sum(components[name] * weight for name, weight in blend.items())
        final = min(100.0, max(0.0, final))

        return CompatibilityResult(
            score=final,
            band=band_for_score(final),
            mode=mode,
            components=components,
        )

    async def enrich(
        self,
        user_a: UserProfile,
        user_b: UserProfile,
        result: CompatibilityResult,
    ) -> CompatibilityResult:
        """Attach an AI insight when user_a (the requester) is on a paid tier."""
        if self.enrichment is None or not user_a.is_premium:
            return result

        insight = await best_effort(
            self.enrichment.generate_insight(user_a, user_b, result.score),
            what=f"insight {user_a.id}->{user_b.id}",
            timeout=self.timeout,
        )
        return result.model_copy(update={"enrichment": insight})

    async def evaluate(
        self,
        user_a: UserProfile,
        user_b: UserProfile,
        mode: CompatibilityMode = CompatibilityMode.BASELINE,
    ) -> CompatibilityResult:
        result = self.score(user_a, user_b, mode)
        logger.debug(f"Compatibility {user_a.id}<->{user_b.id} ({mode.value}): {result.score:.2f} {result.band.value}")
        return await self.enrich(user_a, user_b, result)
