"""
Founder, company and public market models for Liora

These are the records the RAG agent retrieves and splices into questions.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class FounderProfile(BaseModel):
    """Who the founder is."""

    id: str
    name: str
    email: str = ""
    background: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    previous_companies: list[str] = Field(default_factory=list)


class CompanyData(BaseModel):
    """The founder's company."""

    id: str
    name: str
    sector: str = ""
    stage: str = ""
    description: str = ""
    website: str | None = None
    founded_date: str | None = None
    location: str | None = None


class DocumentData(BaseModel):
    """A document the founder shared before the interview."""

    id: str
    name: str
    type: str
    content: str = ""
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class InterviewSummary(BaseModel):
    """Summary of an earlier interview with the same founder."""

    id: str
    date: datetime
    duration: int = Field(description="Seconds")
    topics: list[str] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    caliber_score: float = Field(default=0, ge=0, le=100)


class FounderData(BaseModel):
    """Everything known about the founder before the interview."""

    profile: FounderProfile
    company: CompanyData
    documents: list[DocumentData] = Field(default_factory=list)
    previous_interviews: list[InterviewSummary] = Field(default_factory=list)


class MarketData(BaseModel):
    """Size and direction of the company's market."""

    size: str
    growth: str
    trends: list[str] = Field(default_factory=list)


class CompetitorData(BaseModel):
    """A competing company."""

    name: str
    funding: str = ""
    market_share: str = ""
    strengths: list[str] = Field(default_factory=list)


class PublicData(BaseModel):
    """Public market information for the company's sector."""

    market_data: MarketData
    competitors: list[CompetitorData] = Field(default_factory=list)
    industry_trends: list[str] = Field(default_factory=list)
    benchmarks: dict[str, Any] = Field(default_factory=dict)


class RetrievedData(BaseModel):
    """Result of a RAG retrieval."""

    founder_data: FounderData | None = None
    public_data: PublicData | None = None
    relevance_score: float = Field(default=0.5, ge=0, le=1)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ContextualQuestion(BaseModel):
    """A question after retrieved context was spliced into it."""

    original_question: str
    enhanced_question: str
    context_used: list[str] = Field(default_factory=list)
    relevance_score: float = Field(..., ge=0, le=1)
