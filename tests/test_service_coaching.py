import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from soulmate.core.exceptions import EnrichmentError, NotFoundError, PremiumRequiredError, SelfActionError
from soulmate.models.user import SubscriptionTier
from soulmate.schemas.match import CompatibilityMode
from soulmate.services.coaching_service import CoachingService
from tests.conftest import CANDIDATE_TRAITS


@pytest.fixture
def ai():
    ai = MagicMock()
    ai.generate_detailed_insights = AsyncMock(return_value="You balance each other well")
    ai.generate_conversation_starters = AsyncMock(return_value=["Favourite trail?"])
    ai.analyze_conversation = AsyncMock(return_value="Ask about the trip")
    return ai


@pytest.fixture
def members(make_profile, user_repo):
    premium = make_profile(first_name="Pat", subscription_tier=SubscriptionTier.PREMIUM)
    free = make_profile(first_name="Fran", traits=CANDIDATE_TRAITS)
    user_repo.add(premium, free)
    return premium, free


@pytest.fixture
def coaching(user_repo, engine, ai):
    return CoachingService(user_repo, engine, ai)


@pytest.mark.asyncio
async def test_compatibility_insights_for_premium(coaching, members, ai):
    premium, free = members

    result = await coaching.compatibility_insights(premium.id, free.id)

    assert result.mode == CompatibilityMode.DETAILED
    assert result.score == pytest.approx(73.14)
    assert result.enrichment == "You balance each other well"
    ai.generate_detailed_insights.assert_awaited_once()


@pytest.mark.asyncio
async def test_compatibility_insights_requires_premium(coaching, members, ai):
    premium, free = members

    with pytest.raises(PremiumRequiredError):
        await coaching.compatibility_insights(free.id, premium.id)
    ai.generate_detailed_insights.assert_not_called()


@pytest.mark.asyncio
async def test_compatibility_insights_without_ai_text(coaching, members, ai):
    premium, free = members
    ai.generate_detailed_insights.side_effect = EnrichmentError("down")

    result = await coaching.compatibility_insights(premium.id, free.id)

    assert result.score == pytest.approx(73.14)
    assert result.enrichment is None


@pytest.mark.asyncio
async def test_conversation_starters_open_to_free_tier(coaching, members):
    premium, free = members
    assert await coaching.conversation_starters(free.id, premium.id) == ["Favourite trail?"]


@pytest.mark.asyncio
async def test_coach_conversation(coaching, members, ai):
    premium, free = members
    messages = [{"from": "Pat", "text": "Hi!"}]

    assert await coaching.coach_conversation(premium.id, free.id, messages) == "Ask about the trip"
    assert ai.analyze_conversation.call_args.args[2] == messages


@pytest.mark.asyncio
async def test_coach_conversation_surfaces_failures(coaching, members, ai):
    premium, free = members
    ai.analyze_conversation.side_effect = EnrichmentError("quota exceeded")

    with pytest.raises(EnrichmentError):
        await coaching.coach_conversation(premium.id, free.id, [])


@pytest.mark.asyncio
async def test_coach_conversation_timeout(user_repo, engine, ai, members):
    premium, free = members

    async def slow(*args):
        await asyncio.sleep(1)

    ai.analyze_conversation.side_effect = slow
    coaching = CoachingService(user_repo, engine, ai, timeout=0.01)

    with pytest.raises(EnrichmentError):
        await coaching.coach_conversation(premium.id, free.id, [])


@pytest.mark.asyncio
async def test_coach_conversation_requires_premium(coaching, members):
    premium, free = members
    with pytest.raises(PremiumRequiredError):
        await coaching.coach_conversation(free.id, premium.id, [])


@pytest.mark.asyncio
async def test_unknown_or_same_user(coaching, members):
    premium, _ = members
    with pytest.raises(NotFoundError):
        await coaching.conversation_starters(premium.id, uuid.uuid4())
    with pytest.raises(SelfActionError):
        await coaching.conversation_starters(premium.id, premium.id)
