import os

# Settings() requires database credentials at import time
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")

import asyncio
import uuid
from collections import defaultdict
from unittest.mock import AsyncMock, MagicMock

import pytest

from soulmate.core.exceptions import CollaboratorUnavailable
from soulmate.models.match import Match, MatchStatus
from soulmate.schemas.match import RiskLevel, SafetyAnalysis
from soulmate.schemas.profile import UserProfile
from soulmate.services.compatibility_service import CompatibilityEngine

SEEKER_TRAITS = {
    "openness": 70,
    "conscientiousness": 60,
    "extraversion": 50,
    "agreeableness": 80,
    "neuroticism": 30,
}
CANDIDATE_TRAITS = {
    "openness": 72,
    "conscientiousness": 65,
    "extraversion": 45,
    "agreeableness": 85,
    "neuroticism": 40,
}
NYC = {"lat": 40.7128, "lng": -74.0060}


@pytest.fixture
def mock_session():
    session = AsyncMock()

    # Setup execute result
    mock_result = MagicMock()
    # Ensure scalar_one_or_none returns a value, not a coroutine
    mock_result.scalar_one_or_none.return_value = None
    mock_result.scalars.return_value.all.return_value = []
    mock_result.scalars.return_value.first.return_value = None

    # Configure session.execute to return this result when awaited
    session.execute.side_effect = None
    session.execute.return_value = mock_result

    # Configure session.get to return None by default
    session.get.return_value = None
    session.scalar.return_value = 0

    # Standard methods
    session.add = MagicMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()

    return session


@pytest.fixture
def make_profile():
    """Factory for valid profiles; keyword overrides use snake_case field names."""
    def _make(traits=None, **overrides) -> UserProfile:
        data = {
            "id": uuid.uuid4(),
            "first_name": "Test",
            "gender": "woman",
            "looking_for": "everyone",
            "traits": dict(SEEKER_TRAITS if traits is None else traits),
            "location": dict(NYC),
        }
        data.update(overrides)
        return UserProfile.model_validate(data)
    return _make


class FakeMatchRepository:
    """In-memory MatchRepository with one lock per pair, like a row lock."""

    def __init__(self):
        self.records = {}
        self.created = 0
        self.analyses = {}
        self._locks = defaultdict(asyncio.Lock)

    async def find_one(self, pair_key):
        # Yield so concurrent callers interleave between lookup and upsert
        await asyncio.sleep(0)
        return self.records.get(pair_key)

    async def upsert(self, pair, defaults, patch):
        async with self._locks[pair.key]:
            record = self.records.get(pair.key)
            if record is None:
                if defaults is None:
                    raise CollaboratorUnavailable(f"Match {pair.key} missing")
                record = Match(
                    id=uuid.uuid4(),
                    pair_key=pair.key,
                    status=MatchStatus.PENDING.value,
                    user_a_action=None,
                    user_b_action=None,
                    **defaults,
                )
                self.records[pair.key] = record
                self.created += 1
            await asyncio.sleep(0)
            patch(record)
            return record

    async def set_analysis(self, pair_key, analysis):
        self.analyses[pair_key] = analysis
        self.records[pair_key].ai_analysis = analysis

    async def find_mutual_for_user(self, user_id):
        return [
            r for r in self.records.values()
            if r.status == MatchStatus.MUTUAL.value and str(user_id) in (str(r.user_a_id), str(r.user_b_id))
        ]


class FakeUserRepository:
    def __init__(self, *profiles):
        self.profiles = {str(p.id): p for p in profiles}
        self.queries = []
        self.deactivated = []

    def add(self, *profiles):
        for p in profiles:
            self.profiles[str(p.id)] = p

    async def find_user_by_id(self, user_id):
        return self.profiles.get(str(user_id))

    async def find_candidates(self, query):
        self.queries.append(query)
        excluded = {str(uid) for uid in query.exclude_ids}
        return [p for uid, p in self.profiles.items() if uid not in excluded]

    async def set_active(self, user_id, is_active, suspended_for_review=None):
        self.deactivated.append((str(user_id), is_active, suspended_for_review))
        profile = self.profiles.get(str(user_id))
        if profile is not None:
            self.profiles[str(user_id)] = profile.model_copy(update={"is_active": is_active})


class FakeEnrichment:
    """Enrichment provider double. `fail` raises, `delay` makes every call hang for that long."""

    def __init__(self, fail=False, delay=0.0, risk_level=RiskLevel.LOW):
        self.fail = fail
        self.delay = delay
        self.risk_level = risk_level
        self.calls = []

    async def _respond(self, name, text):
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError(f"{name} provider down")
        return text

    async def generate_insight(self, profile_a, profile_b, score):
        return await self._respond("generate_insight", f"Insight for {profile_a.first_name}: {score:.0f}%")

    async def analyze_conversation(self, profile_a, profile_b, recent_messages):
        return await self._respond("analyze_conversation", "Great start, keep asking questions")

    async def analyze_safety_risk(self, profile_data, messages=()):
        await self._respond("analyze_safety_risk", "")
        return SafetyAnalysis(
            risk_level=self.risk_level,
            analysis=f"{self.risk_level.value} risk",
            requires_review=self.risk_level == RiskLevel.HIGH,
        )


@pytest.fixture
def match_repo():
    return FakeMatchRepository()


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def enrichment():
    return FakeEnrichment()


@pytest.fixture
def engine():
    return CompatibilityEngine()
