import pytest

from soulmate.models.match import MatchBand
from soulmate.models.user import SubscriptionTier
from soulmate.schemas.match import CompatibilityMode
from soulmate.services.compatibility_service import CompatibilityEngine, band_for_score
from tests.conftest import CANDIDATE_TRAITS, FakeEnrichment


@pytest.mark.parametrize(
    "score, band",
    [
        (100, MatchBand.PERFECT),
        (90, MatchBand.PERFECT),
        (89.999, MatchBand.EXCELLENT),
        (80, MatchBand.EXCELLENT),
        (79.999, MatchBand.GOOD),
        (70, MatchBand.GOOD),
        (69.999, MatchBand.POTENTIAL),
        (0, MatchBand.POTENTIAL),
    ],
)
def test_band_boundaries(score, band):
    assert band_for_score(score) == band


def test_baseline_score_example_pair(make_profile, engine):
    seeker = make_profile()
    candidate = make_profile(traits=CANDIDATE_TRAITS)

    result = engine.score(seeker, candidate)

    assert result.score == pytest.approx(89.62)
    assert result.band == MatchBand.EXCELLENT
    assert result.mode == CompatibilityMode.BASELINE
    assert result.components["personality"] == pytest.approx(95.2)
    assert result.components["lifestyle"] == 75.0
    assert result.components["deal_breakers"] == 100
    assert result.enrichment is None


def test_deal_breaker_veto_lowers_but_does_not_zero_score(make_profile, engine):
    seeker = make_profile(deal_breakers={"smoking": True})
    candidate = make_profile(traits=CANDIDATE_TRAITS, lifestyle={"smoking": True})

    result = engine.score(seeker, candidate)

    assert result.score == pytest.approx(79.62)
    assert result.band == MatchBand.GOOD


def test_score_is_symmetric(make_profile, engine):
    seeker = make_profile(deal_breakers={"pets": True}, lifestyle={"exerciseFrequency": 2})
    candidate = make_profile(traits=CANDIDATE_TRAITS, has_pets=True, lifestyle={"exerciseFrequency": 4})

    assert engine.score(seeker, candidate).score == pytest.approx(engine.score(candidate, seeker).score)


def test_self_compatibility_is_perfect(make_profile, engine):
    profile = make_profile(lifestyle={"exerciseFrequency": 3, "socialLevel": 2})
    result = engine.score(profile, profile)
    assert result.score == pytest.approx(100.0)
    assert result.band == MatchBand.PERFECT


def test_detailed_mode_blend(make_profile, engine):
    seeker = make_profile()
    candidate = make_profile(traits=CANDIDATE_TRAITS)

    result = engine.score(seeker, candidate, CompatibilityMode.DETAILED)

    assert result.score == pytest.approx(73.14)
    assert result.mode == CompatibilityMode.DETAILED
    assert result.components["interests"] == 50.0
    assert result.components["values"] == 50.0
    # Reported, not blended
    assert result.components["deal_breakers"] == 100


@pytest.mark.asyncio
async def test_evaluate_enriches_premium_requester(make_profile):
    enrichment = FakeEnrichment()
    engine = CompatibilityEngine(enrichment=enrichment)
    seeker = make_profile(first_name="Ada", subscription_tier=SubscriptionTier.PREMIUM)
    candidate = make_profile(traits=CANDIDATE_TRAITS)

    result = await engine.evaluate(seeker, candidate)

    assert result.score == pytest.approx(89.62)
    assert result.enrichment == "Insight for Ada: 90%"
    assert enrichment.calls == ["generate_insight"]


@pytest.mark.asyncio
async def test_evaluate_skips_enrichment_for_free_tier(make_profile):
    enrichment = FakeEnrichment()
    engine = CompatibilityEngine(enrichment=enrichment)

    result = await engine.evaluate(make_profile(), make_profile(traits=CANDIDATE_TRAITS))

    assert result.enrichment is None
    assert enrichment.calls == []


@pytest.mark.asyncio
async def test_enrichment_failure_keeps_score(make_profile):
    engine = CompatibilityEngine(enrichment=FakeEnrichment(fail=True))
    seeker = make_profile(subscription_tier=SubscriptionTier.ELITE)

    result = await engine.evaluate(seeker, make_profile(traits=CANDIDATE_TRAITS))

    assert result.score == pytest.approx(89.62)
    assert result.enrichment is None


@pytest.mark.asyncio
async def test_enrichment_timeout_keeps_score(make_profile):
    engine = CompatibilityEngine(enrichment=FakeEnrichment(delay=1.0), timeout=0.01)
    seeker = make_profile(subscription_tier=SubscriptionTier.PLATINUM)

    result = await engine.evaluate(seeker, make_profile(traits=CANDIDATE_TRAITS))

    assert result.score == pytest.approx(89.62)
    assert result.enrichment is None
