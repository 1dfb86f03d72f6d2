"""
Application Constants

This module contains the scoring weights, thresholds and fixed values used by
the matching core. Centralizing them keeps the algorithms free of magic numbers.
"""

# ============================================================================
# Personality Traits
# ============================================================================

REQUIRED_TRAITS = (
    "openness",
    "conscientiousness",
    "extraversion",
    "agreeableness",
    "neuroticism",
)
OPTIONAL_TRAITS = ("emotional_intelligence",)

# Value used for a trait that one of the profiles does not carry
NEUTRAL_TRAIT_VALUE = 50.0

TRAIT_MIN_VALUE = 0.0
TRAIT_MAX_VALUE = 100.0

# Used when a match record is created and during discovery
BASELINE_TRAIT_WEIGHTS = {
    "openness": 0.15,
    "conscientiousness": 0.20,
    "extraversion": 0.18,
    "agreeableness": 0.22,
    "neuroticism": 0.15,
    "emotional_intelligence": 0.10,
}

# Used by the detailed (insights) compatibility report
DETAILED_TRAIT_WEIGHTS = {
    "openness": 0.15,
    "conscientiousness": 0.20,
    "extraversion": 0.18,
    "agreeableness": 0.25,
    "neuroticism": 0.12,
    "emotional_intelligence": 0.10,
}

# ============================================================================
# Compatibility Blends
# ============================================================================

BASELINE_BLEND = {
    "personality": 0.6,
    "lifestyle": 0.3,
    "deal_breakers": 0.1,
}

DETAILED_BLEND = {
    "personality": 0.4,
    "interests": 0.2,
    "lifestyle": 0.2,
    "values": 0.2,
}

# Lifestyle factors compared on a small ordinal scale (1-5)
LIFESTYLE_FACTORS = (
    "exercise_frequency",
    "drinking_habits",
    "social_level",
    "sleep_schedule",
)
LIFESTYLE_DIFF_PENALTY = 20
# Assumed score when the two profiles share no comparable lifestyle factor
LIFESTYLE_NEUTRAL_SCORE = 75.0

# Score for interests/values when either side has none listed
OVERLAP_NEUTRAL_SCORE = 50.0

DEAL_BREAKER_PASS_SCORE = 100.0
DEAL_BREAKER_VETO_SCORE = 0.0

# ============================================================================
# Bands (closed-open lower bounds, checked top-down)
# ============================================================================

BAND_PERFECT_MIN = 90.0
BAND_EXCELLENT_MIN = 80.0
BAND_GOOD_MIN = 70.0

# ============================================================================
# Discovery
# ============================================================================

EARTH_RADIUS_MILES = 3959.0
# Candidates must score strictly above this to be suggested
DISCOVERY_MIN_SCORE = 70.0
# Miles per degree of latitude, used for the SQL bounding-box pre-filter
MILES_PER_DEGREE_LATITUDE = 69.0

# ============================================================================
# AI / Enrichment
# ============================================================================

INSIGHT_MAX_TOKENS = 300
CONVERSATION_ANALYSIS_MAX_TOKENS = 400
SAFETY_ANALYSIS_MAX_TOKENS = 300
CONVERSATION_STARTERS_MAX_TOKENS = 250

# Only the tail of a conversation is sent to the provider
MAX_COACHING_MESSAGES = 10
MAX_CONVERSATION_STARTERS = 5

FALLBACK_CONVERSATION_STARTERS = [
    "What's been the highlight of your week so far?",
    "I noticed we both enjoy [shared interest] - what got you into that?",
    "If you could travel anywhere right now, where would you go?",
    "What's something you're passionate about that might surprise me?",
    "What's your ideal way to spend a Sunday?",
]

# ============================================================================
# Safety
# ============================================================================

SAFETY_MULTIPLE_REPORTS_THRESHOLD = 2
SAFETY_RECENT_REPORT_DAYS = 7
SAFETY_NEW_ACCOUNT_HOURS = 24

SAFETY_RECOMMENDATIONS_HIGH = [
    "Meet in public places only",
    "Tell friends about your date plans",
    "Video chat before meeting",
    "Use the app's built-in calling feature",
]
SAFETY_RECOMMENDATIONS_MEDIUM = [
    "Video chat before meeting",
    "Meet in public places",
    "Trust your instincts",
]
SAFETY_RECOMMENDATIONS_LOW = [
    "Follow standard dating safety practices",
    "Meet in public for first dates",
]
