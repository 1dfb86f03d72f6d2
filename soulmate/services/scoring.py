"""
Pure compatibility sub-scores.

Every function here is deterministic, symmetric in its two profiles and free of
I/O. Scores are on a 0-100 scale.
"""
import math
from typing import Mapping, Optional, Sequence

from soulmate.config.constants import (
    BASELINE_TRAIT_WEIGHTS,
    DETAILED_TRAIT_WEIGHTS,
    NEUTRAL_TRAIT_VALUE,
    LIFESTYLE_FACTORS,
    LIFESTYLE_DIFF_PENALTY,
    LIFESTYLE_NEUTRAL_SCORE,
    OVERLAP_NEUTRAL_SCORE,
    DEAL_BREAKER_PASS_SCORE,
    DEAL_BREAKER_VETO_SCORE,
)
from soulmate.schemas.profile import DealBreakers, Lifestyle, LifestyleFacts, UserProfile


def _check_weights(name: str, weights: Mapping[str, float]) -> None:
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-9):
        raise ValueError(f"{name} must sum to 1.0, got {total}")


_check_weights("BASELINE_TRAIT_WEIGHTS", BASELINE_TRAIT_WEIGHTS)
_check_weights("DETAILED_TRAIT_WEIGHTS", DETAILED_TRAIT_WEIGHTS)


def score_traits(
    traits_a: Mapping[str, float],
    traits_b: Mapping[str, float],
    weights: Mapping[str, float] = BASELINE_TRAIT_WEIGHTS,
) -> float:
    """
    Weighted personality similarity.

    Each trait contributes weight * max(0, 1 - |a - b| / 100). A trait missing
    from either side is treated as NEUTRAL_TRAIT_VALUE.
    """
    total = 0.0
    for trait, weight in weights.items():
        a = traits_a.get(trait)
        b = traits_b.get(trait)
        a = NEUTRAL_TRAIT_VALUE if a is None else float(a)
        b = NEUTRAL_TRAIT_VALUE if b is None else float(b)
        total += weight * max(0.0, 1 - abs(a - b) / 100)
    return min(100.0, max(0.0, total * 100))


def passes_deal_breakers(
    seeker_deal_breakers: DealBreakers,
    seeker_facts: LifestyleFacts,
    candidate_deal_breakers: DealBreakers,
    candidate_facts: LifestyleFacts,
) -> bool:
    """False when either side declared a deal-breaker the other side has."""
    return not (
        _vetoes(seeker_deal_breakers, candidate_facts)
        or _vetoes(candidate_deal_breakers, seeker_facts)
    )


def _vetoes(deal_breakers: DealBreakers, other: LifestyleFacts) -> bool:
    return (
        (deal_breakers.smoking and other.smoking)
        or (deal_breakers.has_kids and other.has_kids)
        or (deal_breakers.pets and other.has_pets)
    )


def deal_breaker_score(user_a: UserProfile, user_b: UserProfile) -> float:
    """100 when no veto fires in either direction, otherwise 0."""
    if passes_deal_breakers(user_a.deal_breakers, user_a.facts, user_b.deal_breakers, user_b.facts):
        return DEAL_BREAKER_PASS_SCORE
    return DEAL_BREAKER_VETO_SCORE


def lifestyle_score(lifestyle_a: Lifestyle, lifestyle_b: Lifestyle) -> float:
    """
    Mean of max(0, 100 - 20 * |diff|) over factors set on both profiles.

    With nothing to compare, the pair gets LIFESTYLE_NEUTRAL_SCORE rather than a
    penalty.
    """
    scores = []
    for factor in LIFESTYLE_FACTORS:
        a: Optional[float] = getattr(lifestyle_a, factor)
        b: Optional[float] = getattr(lifestyle_b, factor)
        if a is None or b is None:
            continue
        scores.append(max(0.0, 100 - LIFESTYLE_DIFF_PENALTY * abs(a - b)))

    if not scores:
        return LIFESTYLE_NEUTRAL_SCORE
    return sum(scores) / len(scores)


def shared_interests_score(interests_a: Sequence[str], interests_b: Sequence[str]) -> float:
    """Jaccard overlap of the two interest lists."""
    if not interests_a or not interests_b:
        return OVERLAP_NEUTRAL_SCORE
    set_a, set_b = set(interests_a), set(interests_b)
    return len(set_a & set_b) / len(set_a | set_b) * 100


def shared_values_score(values_a: Sequence[str], values_b: Sequence[str]) -> float:
    """Shared values relative to the longer list."""
    if not values_a or not values_b:
        return OVERLAP_NEUTRAL_SCORE
    set_a, set_b = set(values_a), set(values_b)
    return len(set_a & set_b) / max(len(set_a), len(set_b)) * 100
