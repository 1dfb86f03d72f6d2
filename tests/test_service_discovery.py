import uuid
from datetime import date

import pytest

from soulmate.core.exceptions import NotFoundError, ValidationError
from soulmate.models.user import SubscriptionTier
from soulmate.services.compatibility_service import CompatibilityEngine
from soulmate.services.discovery_service import DiscoveryService, preferences_match
from tests.conftest import CANDIDATE_TRAITS, NYC, FakeEnrichment, FakeUserRepository

NEARBY = {"lat": NYC["lat"] + 0.1, "lng": NYC["lng"]}   # ~7 miles north
FAR_AWAY = {"lat": NYC["lat"] + 1.0, "lng": NYC["lng"]}  # ~69 miles north
LOW_TRAITS = {t: 0 for t in ("openness", "conscientiousness", "extraversion", "agreeableness", "neuroticism")}


@pytest.mark.asyncio
async def test_discover_excludes_candidates_beyond_max_distance(make_profile, engine):
    seeker = make_profile()
    near = make_profile(traits=CANDIDATE_TRAITS, location=NEARBY)
    far = make_profile(traits=CANDIDATE_TRAITS, location=FAR_AWAY)

    results = await DiscoveryService(engine).discover(seeker, [near, far], max_distance=50)

    assert [m.user.id for m in results] == [near.id]
    assert results[0].distance_miles == pytest.approx(6.9, abs=0.1)


@pytest.mark.asyncio
async def test_discover_uses_seeker_max_distance_preference(make_profile, engine):
    seeker = make_profile(preferences={"maxDistance": 100})
    far = make_profile(traits=CANDIDATE_TRAITS, location=FAR_AWAY)

    results = await DiscoveryService(engine).discover(seeker, [far])

    assert [m.user.id for m in results] == [far.id]


@pytest.mark.asyncio
async def test_discover_drops_scores_at_or_below_threshold(make_profile, engine):
    seeker = make_profile()
    poor = make_profile(traits=LOW_TRAITS)
    good = make_profile(traits=CANDIDATE_TRAITS)

    results = await DiscoveryService(engine).discover(seeker, [poor, good])

    assert [m.user.id for m in results] == [good.id]
    assert all(m.result.score > 70 for m in results)


@pytest.mark.asyncio
async def test_discover_orders_by_score_then_id(make_profile, engine):
    seeker = make_profile()
    twin_b = make_profile(id=uuid.UUID("ffffffff-0000-0000-0000-000000000000"))
    twin_a = make_profile(id=uuid.UUID("00000000-0000-0000-0000-000000000001"))
    close = make_profile(traits=CANDIDATE_TRAITS)

    results = await DiscoveryService(engine).discover(seeker, [close, twin_b, twin_a])

    assert [m.user.id for m in results] == [twin_a.id, twin_b.id, close.id]
    assert results[0].result.score == pytest.approx(92.5)
    assert results[0].result.score == results[1].result.score


@pytest.mark.asyncio
async def test_discover_truncates_to_limit(make_profile, engine):
    seeker = make_profile()
    pool = [make_profile(traits=CANDIDATE_TRAITS) for _ in range(5)]

    results = await DiscoveryService(engine).discover(seeker, pool, limit=2)

    assert len(results) == 2


@pytest.mark.asyncio
async def test_discover_skips_self_and_unlocated_candidates(make_profile, engine):
    seeker = make_profile()
    unlocated = make_profile(location=None)

    results = await DiscoveryService(engine).discover(seeker, [seeker, unlocated])

    assert results == []


@pytest.mark.asyncio
async def test_discover_requires_seeker_location(make_profile, engine):
    with pytest.raises(ValidationError):
        await DiscoveryService(engine).discover(make_profile(location=None), [])


@pytest.mark.asyncio
async def test_discover_enriches_only_returned_candidates(make_profile):
    enrichment = FakeEnrichment()
    service = DiscoveryService(CompatibilityEngine(enrichment=enrichment))
    seeker = make_profile(subscription_tier=SubscriptionTier.PREMIUM)
    pool = [make_profile(traits=CANDIDATE_TRAITS) for _ in range(4)]

    results = await service.discover(seeker, pool, limit=2)

    assert len(results) == 2
    assert enrichment.calls == ["generate_insight", "generate_insight"]
    assert all(m.result.enrichment for m in results)


@pytest.mark.asyncio
async def test_discover_survives_enrichment_failure(make_profile):
    service = DiscoveryService(CompatibilityEngine(enrichment=FakeEnrichment(fail=True)))
    seeker = make_profile(subscription_tier=SubscriptionTier.PREMIUM)

    results = await service.discover(seeker, [make_profile(traits=CANDIDATE_TRAITS)])

    assert len(results) == 1
    assert results[0].result.enrichment is None


def test_preferences_match_checks_gender_both_ways(make_profile):
    seeker = make_profile(gender="woman", looking_for="men")

    assert preferences_match(seeker, make_profile(gender="man", looking_for="women"))
    assert not preferences_match(seeker, make_profile(gender="woman", looking_for="everyone"))
    assert not preferences_match(seeker, make_profile(gender="man", looking_for="men"))
    assert preferences_match(make_profile(looking_for="everyone"), make_profile(gender="non-binary"))


def test_preferences_match_checks_age_range(make_profile):
    seeker = make_profile(preferences={"minAge": 30, "maxAge": 40})
    today = date.today()

    assert not preferences_match(seeker, make_profile(birth_date=date(today.year - 25, 1, 1)))
    assert preferences_match(seeker, make_profile(birth_date=date(today.year - 35, 1, 1)))
    assert not preferences_match(seeker, make_profile(birth_date=date(today.year - 45, 1, 1)))
    # Unknown age never excludes
    assert preferences_match(seeker, make_profile())


def test_preferences_match_excludes_inactive_and_banned(make_profile):
    seeker = make_profile()
    assert not preferences_match(seeker, make_profile(is_active=False))
    assert not preferences_match(seeker, make_profile(is_banned=True))


@pytest.mark.asyncio
async def test_discover_for_user_loads_seeker_and_candidates(make_profile, engine):
    seeker = make_profile(preferences={"maxDistance": 25})
    candidate = make_profile(traits=CANDIDATE_TRAITS, location=NEARBY)
    users = FakeUserRepository(seeker, candidate)

    results = await DiscoveryService(engine, users).discover_for_user(seeker.id)

    assert [m.user.id for m in results] == [candidate.id]
    query = users.queries[0]
    assert query.radius_miles == 25
    assert query.lat == NYC["lat"]
    assert list(query.exclude_ids) == [seeker.id]


@pytest.mark.asyncio
async def test_discover_for_unknown_user_raises(engine):
    with pytest.raises(NotFoundError):
        await DiscoveryService(engine, FakeUserRepository()).discover_for_user(uuid.uuid4())
