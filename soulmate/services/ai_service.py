import google.generativeai as genai
from openai import AsyncOpenAI
from soulmate.config.constants import (
    INSIGHT_MAX_TOKENS,
    CONVERSATION_ANALYSIS_MAX_TOKENS,
    SAFETY_ANALYSIS_MAX_TOKENS,
    CONVERSATION_STARTERS_MAX_TOKENS,
    MAX_COACHING_MESSAGES,
    MAX_CONVERSATION_STARTERS,
    FALLBACK_CONVERSATION_STARTERS,
)
from soulmate.core.config import settings
from soulmate.core.exceptions import EnrichmentError
from soulmate.schemas.match import RiskLevel, SafetyAnalysis
from soulmate.schemas.profile import UserProfile
from typing import Any, Dict, List, Sequence
import json
import logging

logger = logging.getLogger(__name__)


def extract_risk_level(analysis: str) -> RiskLevel:
    text = analysis.lower()
    if "high" in text and "risk" in text:
        return RiskLevel.HIGH
    if "medium" in text and "risk" in text:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class AIService:
    """
    Text enrichment backed by Gemini or OpenAI.

    Methods raise EnrichmentError when no provider is configured or the call
    fails, except where a fallback value is part of the contract
    (analyze_safety_risk, generate_conversation_starters).
    """

    def __init__(
        self,
        gemini_api_key: str = None,
        openai_api_key: str = None,
        preferred_provider: str = None,
    ):
        self.provider = None
        self.gemini_model = None
        self.openai_client = None

        g_key = gemini_api_key or settings.GEMINI_API_KEY
        o_key = openai_api_key or settings.OPENAI_API_KEY
        preferred = preferred_provider or settings.AI_PREFERRED_PROVIDER

        order = ["gemini", "openai"] if preferred != "openai" else ["openai", "gemini"]
        for name in order:
            if name == "gemini" and g_key:
                try:
                    genai.configure(api_key=g_key)
                    self.gemini_model = genai.GenerativeModel(settings.GEMINI_MODEL)
                    self.provider = "gemini"
                    logger.info("AIService initialized with Gemini")
                    break
                except Exception as e:
                    logger.error(f"Failed to configure Gemini: {e}")
                    self.gemini_model = None
            elif name == "openai" and o_key:
                try:
                    self.openai_client = AsyncOpenAI(api_key=o_key)
                    self.provider = "openai"
                    logger.info("AIService initialized with OpenAI")
                    break
                except Exception as e:
                    logger.error(f"Failed to configure OpenAI: {e}")
                    self.openai_client = None

        if not self.provider:
            logger.warning("No AI provider available (GEMINI_API_KEY and OPENAI_API_KEY are missing or invalid)")

    async def _generate_text(self, prompt: str, max_tokens: int, temperature: float) -> str:
        if not self.provider:
            raise EnrichmentError("No AI provider configured")

        try:
            if self.provider == "gemini":
                response = await self.gemini_model.generate_content_async(
                    prompt,
                    generation_config=genai.GenerationConfig(
                        max_output_tokens=max_tokens,
                        temperature=temperature,
                    ),
                )
                text = response.text
            else:
                response = await self.openai_client.chat.completions.create(
                    model=settings.OPENAI_MODEL,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
                text = response.choices[0].message.content
        except Exception as e:
            raise EnrichmentError(f"{self.provider} call failed: {e}") from e

        if not isinstance(text, str) or not text.strip():
            raise EnrichmentError(f"{self.provider} returned an empty response")
        return text.strip()

    async def generate_insight(self, profile_a: UserProfile, profile_b: UserProfile, score: float) -> str:
        prompt = f"""Analyze compatibility between two people:
Person 1: {json.dumps(profile_a.traits.as_scores())}
Person 2: {json.dumps(profile_b.traits.as_scores())}
Compatibility Score: {score:.0f}%

Provide specific insights about why they match and potential challenges."""
        return await self._generate_text(prompt, INSIGHT_MAX_TOKENS, temperature=0.7)

    async def generate_detailed_insights(self, profile_a: UserProfile, profile_b: UserProfile) -> str:
        prompt = f"""Generate detailed compatibility insights for these two people:

Person 1: {json.dumps(profile_a.summary())}

Person 2: {json.dumps(profile_b.summary())}

Provide insights on:
1. Why you're compatible (3-4 specific reasons)
2. Potential challenges and how to overcome them
3. Relationship success probability (percentage)
4. Timeline prediction for relationship milestones
5. Communication style recommendations

Be specific and actionable."""
        return await self._generate_text(prompt, 500, temperature=0.8)

    async def analyze_conversation(
        self,
        profile_a: UserProfile,
        profile_b: UserProfile,
        recent_messages: Sequence[Any],
    ) -> str:
        messages = list(recent_messages)[-MAX_COACHING_MESSAGES:]
        if messages:
            conversation = f"Recent Messages: {json.dumps(messages, default=str)}"
        else:
            conversation = "They have just matched and have not talked yet."

        prompt = f"""Analyze this dating match for relationship coaching:

User 1 Personality: {json.dumps(profile_a.traits.as_scores())}
User 2 Personality: {json.dumps(profile_b.traits.as_scores())}

{conversation}

Provide specific advice on:
1. Conversation flow and engagement
2. Compatibility indicators
3. Red flags or concerns
4. Next conversation topics
5. Relationship progression suggestions

Be encouraging but realistic."""
        return await self._generate_text(prompt, CONVERSATION_ANALYSIS_MAX_TOKENS, temperature=0.7)

    async def analyze_safety_risk(self, profile_data: Dict[str, Any], messages: Sequence[Any] = ()) -> SafetyAnalysis:
        prompt = f"""Analyze this dating profile and messages for potential safety risks:

Profile Data: {json.dumps(profile_data, default=str)}
Recent Messages: {json.dumps(list(messages), default=str)}

Look for red flags including:
- Manipulative language patterns
- Love bombing or excessive flattery
- Requests for personal information too quickly
- Financial requests or job offers
- Inconsistent story details
- Aggressive or controlling language
- Signs of catfishing

Provide:
1. Risk level (LOW/MEDIUM/HIGH)
2. Specific concerns found
3. Safety recommendations
4. Whether to recommend blocking/reporting

Be thorough but not paranoid."""
        try:
            analysis = await self._generate_text(prompt, SAFETY_ANALYSIS_MAX_TOKENS, temperature=0.3)
        except EnrichmentError as e:
            logger.error(f"AI safety analysis error: {e}")
            return SafetyAnalysis(
                risk_level=RiskLevel.UNKNOWN,
                analysis="Unable to analyze safety risks at this time.",
                requires_review=True,
            )

        risk_level = extract_risk_level(analysis)
        return SafetyAnalysis(
            risk_level=risk_level,
            analysis=analysis,
            requires_review=risk_level == RiskLevel.HIGH,
        )

    async def generate_conversation_starters(self, profile_a: UserProfile, profile_b: UserProfile) -> List[str]:
        prompt = f"""Generate {MAX_CONVERSATION_STARTERS} personalized conversation starters for these matched users:

User 1:
- Interests: {', '.join(profile_a.interests)}
- Hobbies: {', '.join(profile_a.hobbies)}
- Personality: {json.dumps(profile_a.traits.as_scores())}

User 2:
- Interests: {', '.join(profile_b.interests)}
- Hobbies: {', '.join(profile_b.hobbies)}
- Personality: {json.dumps(profile_b.traits.as_scores())}

Create engaging, specific questions that reference shared interests, show
genuine curiosity and feel natural. Format as a simple list."""
        try:
            text = await self._generate_text(prompt, CONVERSATION_STARTERS_MAX_TOKENS, temperature=0.9)
        except EnrichmentError as e:
            logger.error(f"AI conversation starters error: {e}")
            return list(FALLBACK_CONVERSATION_STARTERS)

        starters = [line.strip() for line in text.splitlines() if line.strip()]
        return starters[:MAX_CONVERSATION_STARTERS] or list(FALLBACK_CONVERSATION_STARTERS)
