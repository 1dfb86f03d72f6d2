from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from datetime import datetime, timezone
import enum

from soulmate.models.match import Match, MatchBand
from soulmate.schemas.profile import UserProfile


class CompatibilityMode(str, enum.Enum):
    BASELINE = "baseline"   # personality / lifestyle / deal-breakers
    DETAILED = "detailed"   # personality / interests / lifestyle / values


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"


class CompatibilityResult(BaseModel):
    score: float = Field(ge=0, le=100)
    band: MatchBand
    enrichment: Optional[str] = None
    mode: CompatibilityMode = CompatibilityMode.BASELINE
    components: Dict[str, float] = Field(default_factory=dict)


class DiscoveryMatch(BaseModel):
    user: UserProfile
    distance_miles: float
    result: CompatibilityResult


class ActionResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    matched: bool
    record: Match


class SafetyAnalysis(BaseModel):
    risk_level: RiskLevel
    analysis: str
    requires_review: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SafetyAssessment(BaseModel):
    risk_level: RiskLevel
    risk_factors: Dict[str, bool]
    recommendations: List[str]
