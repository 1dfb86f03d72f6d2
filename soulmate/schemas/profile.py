from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from typing import Any, Dict, List, Mapping, Optional
from datetime import date
import uuid

from soulmate.config.constants import TRAIT_MIN_VALUE, TRAIT_MAX_VALUE
from soulmate.core.exceptions import ValidationError
from soulmate.models.user import SubscriptionTier


class _CamelModel(BaseModel):
    # Stored JSON uses the clients' camelCase keys; Python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TraitProfile(_CamelModel):
    openness: float = Field(ge=TRAIT_MIN_VALUE, le=TRAIT_MAX_VALUE)
    conscientiousness: float = Field(ge=TRAIT_MIN_VALUE, le=TRAIT_MAX_VALUE)
    extraversion: float = Field(ge=TRAIT_MIN_VALUE, le=TRAIT_MAX_VALUE)
    agreeableness: float = Field(ge=TRAIT_MIN_VALUE, le=TRAIT_MAX_VALUE)
    neuroticism: float = Field(ge=TRAIT_MIN_VALUE, le=TRAIT_MAX_VALUE)
    emotional_intelligence: Optional[float] = Field(
        None, alias="emotionalIntelligence", ge=TRAIT_MIN_VALUE, le=TRAIT_MAX_VALUE
    )

    def as_scores(self) -> Dict[str, float]:
        """Plain trait -> value mapping, omitting traits that were not submitted."""
        return {name: value for name, value in self.model_dump().items() if value is not None}


class DealBreakers(_CamelModel):
    smoking: bool = False
    has_kids: bool = Field(False, alias="hasKids")
    pets: bool = False


class Lifestyle(_CamelModel):
    smoking: bool = False
    exercise_frequency: Optional[float] = Field(None, alias="exerciseFrequency")
    drinking_habits: Optional[float] = Field(None, alias="drinkingHabits")
    social_level: Optional[float] = Field(None, alias="socialLevel")
    sleep_schedule: Optional[float] = Field(None, alias="sleepSchedule")


class LifestyleFacts(_CamelModel):
    """The side of a profile that deal-breakers are checked against."""
    smoking: bool = False
    has_kids: bool = Field(False, alias="hasKids")
    has_pets: bool = Field(False, alias="hasPets")


class Location(_CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Preferences(_CamelModel):
    max_distance: Optional[float] = Field(None, alias="maxDistance", gt=0)
    min_age: Optional[int] = Field(None, alias="minAge")
    max_age: Optional[int] = Field(None, alias="maxAge")


class UserProfile(_CamelModel):
    """Everything the matching core reads about a user."""
    id: uuid.UUID
    first_name: Optional[str] = Field(None, alias="firstName")
    gender: Optional[str] = None
    looking_for: Optional[str] = Field(None, alias="lookingFor")
    birth_date: Optional[date] = Field(None, alias="birthDate")

    traits: TraitProfile
    deal_breakers: DealBreakers = Field(default_factory=DealBreakers, alias="dealBreakers")
    lifestyle: Lifestyle = Field(default_factory=Lifestyle)
    has_kids: bool = Field(False, alias="hasKids")
    has_pets: bool = Field(False, alias="hasPets")
    interests: List[str] = Field(default_factory=list)
    values: List[str] = Field(default_factory=list)
    hobbies: List[str] = Field(default_factory=list)

    location: Optional[Location] = None
    preferences: Preferences = Field(default_factory=Preferences)

    subscription_tier: SubscriptionTier = Field(SubscriptionTier.FREE, alias="subscriptionTier")
    is_active: bool = Field(True, alias="isActive")
    is_verified: bool = Field(False, alias="isVerified")
    is_banned: bool = Field(False, alias="isBanned")

    @property
    def is_premium(self) -> bool:
        return self.subscription_tier != SubscriptionTier.FREE

    @property
    def facts(self) -> LifestyleFacts:
        return LifestyleFacts(smoking=self.lifestyle.smoking, has_kids=self.has_kids, has_pets=self.has_pets)

    @classmethod
    def from_user(cls, user) -> "UserProfile":
        """
        Build a profile from a `User` row.

        Raises ValidationError with field-level detail when the stored
        personality assessment is incomplete.
        """
        location = None
        if user.latitude is not None and user.longitude is not None:
            location = {"lat": user.latitude, "lng": user.longitude}

        data = {
            "id": user.id,
            "first_name": user.first_name,
            "gender": user.gender,
            "looking_for": user.looking_for,
            "birth_date": user.birth_date,
            "traits": user.personality_traits or {},
            "deal_breakers": user.deal_breakers or {},
            "lifestyle": user.lifestyle or {},
            "has_kids": bool(user.has_kids),
            "has_pets": bool(user.has_pets),
            "interests": list(user.interests or []),
            "values": list(user.values or []),
            "hobbies": list(user.hobbies or []),
            "location": location,
            "preferences": user.preferences or {},
            "subscription_tier": user.subscription_tier or SubscriptionTier.FREE.value,
            "is_active": user.is_active if user.is_active is not None else True,
            "is_verified": bool(user.is_verified),
            "is_banned": bool(user.is_banned),
        }
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(f"Invalid profile for user {user.id}", e) from e

    def summary(self) -> Dict[str, Any]:
        """Compact, JSON-friendly view used in AI prompts."""
        return {
            "personality": self.traits.as_scores(),
            "interests": self.interests,
            "hobbies": self.hobbies,
            "values": self.values,
            "lifestyle": self.lifestyle.model_dump(exclude_none=True),
        }


def validate_trait_profile(traits: Mapping[str, Any]) -> TraitProfile:
    """Validate a submitted personality assessment; every required trait must be in [0, 100]."""
    try:
        return TraitProfile.model_validate(dict(traits))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic("Complete personality assessment required", e) from e
