"""
Evaluation models for Liora

Defines the founder caliber rubric, per-response evaluations, red flags
and the investment score built from them.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResponseEvaluation(BaseModel):
    """Interviewer's evaluation of a single answer."""

    quality: float = Field(..., ge=0, le=100)
    completeness: float = Field(..., ge=0, le=100)
    credibility: float = Field(..., ge=0, le=100)
    insights: list[str] = Field(default_factory=list)
    follow_up_needed: bool = False
    suggested_follow_ups: list[str] = Field(default_factory=list)


class CaliberCategory(BaseModel):
    """Score for one caliber dimension."""

    score: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=1)
    evidence: list[str] = Field(default_factory=list)
    key_indicators: list[str] = Field(default_factory=list)


# Category weights for the overall caliber score
CALIBER_WEIGHTS: dict[str, float] = {
    "communication": 0.20,
    "leadership": 0.25,
    "market_knowledge": 0.15,
    "strategic_thinking": 0.20,
    "resilience": 0.10,
    "business_acumen": 0.10,
}


class CaliberCategories(BaseModel):
    """The six caliber dimensions."""

    communication: CaliberCategory
    leadership: CaliberCategory
    market_knowledge: CaliberCategory
    strategic_thinking: CaliberCategory
    resilience: CaliberCategory
    business_acumen: CaliberCategory

    def items(self) -> list[tuple[str, CaliberCategory]]:
        return [(name, getattr(self, name)) for name in CALIBER_WEIGHTS]

    def weighted_score(self) -> float:
        """Calculate weighted overall score."""
        return sum(
            getattr(self, name).score * weight
            for name, weight in CALIBER_WEIGHTS.items()
        )


class Severity(str, Enum):
    """Red flag and concern severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RedFlagType(str, Enum):
    """Red flag areas."""

    FINANCIAL = "financial"
    MARKET = "market"
    TEAM = "team"
    PRODUCT = "product"
    LEGAL = "legal"


class RedFlag(BaseModel):
    """A warning sign detected in the founder's answers."""

    type: RedFlagType
    severity: Severity
    description: str
    evidence: str
    timestamp: datetime = Field(default_factory=_utcnow)


class Strength(BaseModel):
    """A standout caliber dimension."""

    category: str
    description: str
    evidence: str
    impact: Severity = Severity.MEDIUM


class Concern(BaseModel):
    """A weak caliber dimension."""

    category: str
    description: str
    evidence: str
    severity: Severity = Severity.MEDIUM


class CaliberMetrics(BaseModel):
    """Founder caliber assessment for one answer."""

    overall: float = Field(..., ge=0, le=100)
    categories: CaliberCategories
    red_flags: list[RedFlag] = Field(default_factory=list)
    strengths: list[Strength] = Field(default_factory=list)
    concerns: list[Concern] = Field(default_factory=list)

    @classmethod
    def from_categories(cls, categories: CaliberCategories, **kwargs) -> "CaliberMetrics":
        return cls(overall=round(categories.weighted_score(), 2), categories=categories, **kwargs)


class InsightType(str, Enum):
    """Insight polarity."""

    STRENGTH = "strength"
    CONCERN = "concern"
    OPPORTUNITY = "opportunity"
    RISK = "risk"


class Insight(BaseModel):
    """An observation about the founder or company."""

    type: InsightType
    category: str
    description: str
    evidence: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0, le=1)
    timestamp: datetime = Field(default_factory=_utcnow)


class InsightCollection(BaseModel):
    """Insights grouped by polarity."""

    strengths: list[Insight] = Field(default_factory=list)
    concerns: list[Insight] = Field(default_factory=list)
    opportunities: list[Insight] = Field(default_factory=list)
    risks: list[Insight] = Field(default_factory=list)

    def add(self, insight: Insight) -> None:
        bucket = {
            InsightType.STRENGTH: self.strengths,
            InsightType.CONCERN: self.concerns,
            InsightType.OPPORTUNITY: self.opportunities,
            InsightType.RISK: self.risks,
        }[insight.type]
        bucket.append(insight)

    def all(self) -> list[Insight]:
        return [*self.strengths, *self.concerns, *self.opportunities, *self.risks]


class FounderInsight(BaseModel):
    """Insight derived from the founder's answers as a whole."""

    founder_id: str
    category: str
    insight: str
    confidence: float = Field(..., ge=0, le=1)
    evidence: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)


class Recommendation(str, Enum):
    """Investment recommendation."""

    STRONG_YES = "strong_yes"
    YES = "yes"
    MAYBE = "maybe"
    NO = "no"
    STRONG_NO = "strong_no"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def from_score(cls, score: float) -> "Recommendation":
        if score >= 85:
            return cls.STRONG_YES
        elif score >= 70:
            return cls.YES
        elif score >= 50:
            return cls.MAYBE
        elif score >= 30:
            return cls.NO
        else:
            return cls.STRONG_NO


class InvestmentCategories(BaseModel):
    """Per-area investment scores."""

    market: float = Field(..., ge=0, le=100)
    product: float = Field(..., ge=0, le=100)
    team: float = Field(..., ge=0, le=100)
    traction: float = Field(..., ge=0, le=100)
    financials: float = Field(..., ge=0, le=100)


class InvestmentScore(BaseModel):
    """Overall investment potential."""

    overall: float = Field(..., ge=0, le=100)
    categories: InvestmentCategories
    recommendation: Recommendation
    reasoning: list[str] = Field(default_factory=list)
