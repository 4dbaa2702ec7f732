"""
Investment memo models for Liora

Structure of the memo produced at the end of an interview.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class RiskLevel(str, Enum):
    """Risk levels used throughout the memo."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CompetitivePosition(str, Enum):
    """Where the company sits in its market."""

    LEADER = "leader"
    CHALLENGER = "challenger"
    FOLLOWER = "follower"
    NICHE = "niche"


class CompanyOverview(BaseModel):
    """Company facts."""

    id: str
    name: str
    description: str = ""
    sector: str = ""
    stage: str = ""
    founded_year: int | None = None
    location: str = ""
    website: str | None = None
    tagline: str | None = None
    employee_count: int | None = None
    funding_raised: float | None = Field(default=None, description="USD")
    valuation: float | None = Field(default=None, description="USD")


class MarketSize(BaseModel):
    """Market size, in USD."""

    current: float
    projected: float
    year: int
    currency: str = "USD"


class ChartPoint(BaseModel):
    """One point of the market growth chart."""

    year: int
    value: float


class MarketAnalysis(BaseModel):
    """Market opportunity section."""

    market_size: MarketSize
    growth_rate: float = Field(description="Annual growth, percent")
    trends: list[str] = Field(default_factory=list)
    chart_data: list[ChartPoint] = Field(default_factory=list)
    competitive_position: CompetitivePosition = CompetitivePosition.CHALLENGER


class FounderSummary(BaseModel):
    """Founder section."""

    id: str
    name: str
    role: str = "Founder & CEO"
    bio: str = ""
    experience: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)


class Competitor(BaseModel):
    """A competitor in the memo."""

    name: str
    description: str = ""
    funding_raised: float | None = Field(default=None, description="USD")
    market_share: float | None = Field(default=None, description="Percent")
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class CompetitorAnalysis(BaseModel):
    """Competition section."""

    competitors: list[Competitor] = Field(default_factory=list)
    competitive_advantages: list[str] = Field(default_factory=list)
    market_position: str = ""


class RevenueMetrics(BaseModel):
    current: float | None = None
    growth: float | None = Field(default=None, description="Percent")
    recurring: bool = False


class CustomerMetrics(BaseModel):
    total: int | None = None
    growth: float | None = Field(default=None, description="Percent")
    churn: float | None = Field(default=None, description="Percent")


class KPIMetrics(BaseModel):
    """Key performance indicators."""

    revenue: RevenueMetrics = Field(default_factory=RevenueMetrics)
    customers: CustomerMetrics = Field(default_factory=CustomerMetrics)
    sector_specific: dict[str, Any] = Field(default_factory=dict)


class RiskCategory(BaseModel):
    level: RiskLevel = RiskLevel.LOW
    factors: list[str] = Field(default_factory=list)


class RiskCategories(BaseModel):
    market: RiskCategory = Field(default_factory=RiskCategory)
    financial: RiskCategory = Field(default_factory=RiskCategory)
    operational: RiskCategory = Field(default_factory=RiskCategory)
    team: RiskCategory = Field(default_factory=RiskCategory)


class RiskAssessment(BaseModel):
    """Risk section."""

    risk_level: RiskLevel = RiskLevel.LOW
    categories: RiskCategories = Field(default_factory=RiskCategories)
    red_flags: list[str] = Field(default_factory=list)
    mitigation_strategies: list[str] = Field(default_factory=list)


class MemoRecommendation(BaseModel):
    """Final recommendation."""

    score: float = Field(..., ge=0, le=100)
    recommendation: str
    reasoning: list[str] = Field(default_factory=list)
    investment_thesis: str = ""


class InvestmentMemo(BaseModel):
    """Complete investment memo."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    session_id: str
    company_id: str
    version: int = 1
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    overview: CompanyOverview
    market_analysis: MarketAnalysis
    founders: list[FounderSummary] = Field(default_factory=list)
    competition: CompetitorAnalysis = Field(default_factory=CompetitorAnalysis)
    kpis: KPIMetrics = Field(default_factory=KPIMetrics)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    recommendation: MemoRecommendation
