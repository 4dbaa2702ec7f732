"""
Mock founder and market data.

Used by the RAG agent when no retrieval backend is configured. Values
supplied in the interview setup override the mock company and founder.
"""

from datetime import datetime, timezone

from liora.models.founder import (
    CompanyData,
    CompetitorData,
    DocumentData,
    FounderData,
    FounderProfile,
    InterviewSummary,
    MarketData,
    PublicData,
)


def build_mock_founder_data(
    founder_id: str,
    founder_name: str | None = None,
    company_name: str | None = None,
    sector: str | None = None,
    stage: str | None = None,
) -> FounderData:
    """Founder profile, company, documents and one earlier interview."""
    profile = FounderProfile(
        id=founder_id,
        name=founder_name or "Sarah Chen",
        email="sarah@techstartup.com",
        background=[
            "Former Product Manager at Google",
            "MBA from Stanford",
            "5 years in enterprise software",
        ],
        experience=[
            "Led product team of 15 engineers",
            "Launched 3 successful B2B products",
            "Experience with AI/ML product development",
        ],
        education=[
            "MBA, Stanford Graduate School of Business",
            "BS Computer Science, UC Berkeley",
        ],
        previous_companies=[
            "Google (Product Manager, 2019-2022)",
            "Salesforce (Associate PM, 2017-2019)",
            "Microsoft (Software Engineer, 2015-2017)",
        ],
    )

    company = CompanyData(
        id="company-001",
        name=company_name or "TechStartup AI",
        sector=sector or "B2B SaaS",
        stage=stage or "Series A",
        description="AI-powered customer service automation platform for enterprise clients",
        website="https://techstartup.ai",
        founded_date="2022-03-15",
        location="San Francisco, CA",
    )

    documents = [
        DocumentData(
            id="doc-001",
            name="Business Plan 2024",
            type="pdf",
            content="Comprehensive business plan outlining go-to-market strategy, financial projections, and competitive analysis...",
            uploaded_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
        ),
        DocumentData(
            id="doc-002",
            name="Financial Projections",
            type="xlsx",
            content="5-year financial model with revenue projections, cost structure, and funding requirements...",
            uploaded_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
        ),
    ]

    previous_interviews = [
        InterviewSummary(
            id="interview-001",
            date=datetime(2024, 1, 20, tzinfo=timezone.utc),
            duration=45 * 60,
            topics=["market opportunity", "competitive landscape", "team building"],
            key_insights=[
                "Strong technical background",
                "Clear market vision",
                "Needs help with sales strategy",
            ],
            caliber_score=78,
        )
    ]

    return FounderData(
        profile=profile,
        company=company,
        documents=documents,
        previous_interviews=previous_interviews,
    )


def build_mock_public_data(company_name: str, sector: str) -> PublicData:
    """Market size, competitors, trends and sector benchmarks."""
    market = MarketData(
        size="$50B",
        growth="15% YoY",
        trends=[
            "AI adoption accelerating in enterprise",
            "Remote work driving automation needs",
            "Focus on customer experience optimization",
            "Increased investment in conversational AI",
        ],
    )

    competitors = [
        CompetitorData(
            name="Zendesk",
            funding="$200M Series D",
            market_share="25%",
            strengths=["Established brand", "Large customer base", "Comprehensive platform"],
        ),
        CompetitorData(
            name="Intercom",
            funding="$125M Series C",
            market_share="18%",
            strengths=["Modern UI/UX", "Strong messaging platform", "Good developer tools"],
        ),
        CompetitorData(
            name="Freshworks",
            funding="$150M IPO",
            market_share="15%",
            strengths=["Affordable pricing", "Easy setup", "Good for SMBs"],
        ),
        CompetitorData(
            name="Ada",
            funding="$44M Series B",
            market_share="8%",
            strengths=["AI-first approach", "No-code platform", "Strong automation"],
        ),
    ]

    benchmarks = {
        "revenue_growth": "200% YoY for Series A companies",
        "customer_acquisition_cost": "$500-2000 for enterprise B2B",
        "churn_rate": "5-8% monthly for SaaS",
        "average_contract_value": "$25K-100K annually",
        "sales_cycle_length": "3-9 months for enterprise",
        "gross_margins": "70-85% for SaaS companies",
    }

    return PublicData(
        market_data=market,
        competitors=competitors,
        industry_trends=[
            "Shift towards conversational commerce",
            "Integration with existing business tools",
            "Focus on measurable ROI and efficiency gains",
            "Emphasis on data privacy and security",
        ],
        benchmarks=benchmarks,
    )
