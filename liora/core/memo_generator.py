"""
Memo Generator for Liora

Generates the investment memo at the end of an interview with:
- Company overview
- Market analysis and growth chart
- Founder summary
- Competitive landscape
- KPIs pulled from the founder's answers
- Risk assessment
- Recommendation and investment thesis
"""

import logging
import re
from datetime import datetime, timezone

from liora.agents.analyst import AnalystAgent
from liora.models.evaluation import InvestmentScore, RedFlagType, Severity
from liora.models.founder import CompetitorData, PublicData
from liora.models.interview import SharedContext
from liora.models.memo import (
    ChartPoint,
    CompanyOverview,
    CompetitivePosition,
    Competitor,
    CompetitorAnalysis,
    CustomerMetrics,
    FounderSummary,
    InvestmentMemo,
    KPIMetrics,
    MarketAnalysis,
    MarketSize,
    MemoRecommendation,
    RevenueMetrics,
    RiskAssessment,
    RiskCategories,
    RiskCategory,
    RiskLevel,
)

logger = logging.getLogger(__name__)


MULTIPLIERS = {
    "k": 1e3, "thousand": 1e3,
    "m": 1e6, "mm": 1e6, "million": 1e6,
    "b": 1e9, "bn": 1e9, "billion": 1e9,
    "t": 1e12, "trillion": 1e12,
}

MONEY = re.compile(r"\$\s?([\d,]+(?:\.\d+)?)\s*(thousand|million|billion|trillion|mm|bn|k|m|b|t)?\b", re.IGNORECASE)
PERCENT = re.compile(r"(\d+(?:\.\d+)?)\s*%")
CUSTOMER_COUNT = re.compile(r"(\d[\d,]*)\s+(?:paying\s+|enterprise\s+|active\s+)?(?:customers|clients)", re.IGNORECASE)
CHURN = re.compile(r"(\d+(?:\.\d+)?)\s*%\s*(?:monthly\s+|annual\s+)?churn|churn\D{0,20}?(\d+(?:\.\d+)?)\s*%", re.IGNORECASE)
ADVANTAGE = re.compile(r"unlike|differentiat|advantage|better than|faster than|cheaper than|only (?:company|platform)", re.IGNORECASE)

PROJECTION_YEARS = 5

# Caliber category -> risk category its concerns count towards
CONCERN_RISK_CATEGORY = {
    "market_knowledge": "market",
    "business_acumen": "financial",
    "strategic_thinking": "operational",
    "leadership": "team",
    "communication": "team",
    "resilience": "team",
}

FLAG_RISK_CATEGORY = {
    RedFlagType.MARKET: "market",
    RedFlagType.FINANCIAL: "financial",
    RedFlagType.PRODUCT: "operational",
    RedFlagType.LEGAL: "operational",
    RedFlagType.TEAM: "team",
}

MITIGATIONS = {
    "market": "Validate market sizing and differentiation with customer references before committing",
    "financial": "Require a detailed financial model and monthly reporting on revenue and burn",
    "operational": "Agree on product and execution milestones tied to the funding tranches",
    "team": "Support key senior hires and consider an experienced board member",
}


def parse_money(text: str | None) -> float | None:
    """'$50B' -> 50e9, '$200M Series D' -> 200e6."""
    if not text:
        return None
    match = MONEY.search(text)
    if not match:
        return None
    value = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    return value * MULTIPLIERS.get(suffix, 1)


def parse_percent(text: str | None) -> float | None:
    """'15% YoY' -> 15.0."""
    if not text:
        return None
    match = PERCENT.search(text)
    return float(match.group(1)) if match else None


class MemoGenerator:
    """
    Builds investment memos from a completed interview.

    Numbers come from the retrieved data and the founder's answers; the
    thesis is written by the AI reasoning layer when one is available.
    """

    def __init__(self, ai_reasoning=None, analyst: AnalystAgent | None = None):
        """
        Initialize memo generator.

        Args:
            ai_reasoning: AI reasoning layer for the investment thesis
            analyst: Analyst used to score investment potential
        """
        self.ai_reasoning = ai_reasoning
        self.analyst = analyst or AnalystAgent()

    async def generate(self, context: SharedContext, score: InvestmentScore | None = None) -> InvestmentMemo:
        """
        Generate the complete memo.

        Args:
            context: Shared context of the interview
            score: Investment score; calculated from the context if omitted

        Returns:
            Complete InvestmentMemo
        """
        score = score or self.analyst.calculate_investment_potential(context)
        public = context.rag_data.public_data if context.rag_data else None

        market_analysis = self._market_analysis(context, public)
        competition = self._competition(context, public, market_analysis.competitive_position)

        memo = InvestmentMemo(
            session_id=context.session.id,
            company_id=context.company_data.id if context.company_data else context.session.id,
            overview=self._overview(context),
            market_analysis=market_analysis,
            founders=self._founders(context),
            competition=competition,
            kpis=self._kpis(context),
            risk_assessment=self._risk_assessment(context),
            recommendation=await self._recommendation(context, score, public),
        )

        logger.info(
            f"Memo generated for session {context.session.id}: "
            f"score={score.overall}, recommendation={score.recommendation.value}"
        )
        return memo

    # =========================================================================
    # SECTIONS
    # =========================================================================

    def _overview(self, context: SharedContext) -> CompanyOverview:
        company = context.company_data
        setup = context.session.setup

        if company is None:
            return CompanyOverview(
                id=context.session.id,
                name=setup.company_name,
                sector=setup.sector,
                stage=setup.stage,
            )

        founded_year = None
        if company.founded_date and company.founded_date[:4].isdigit():
            founded_year = int(company.founded_date[:4])

        return CompanyOverview(
            id=company.id,
            name=company.name,
            description=company.description,
            sector=company.sector,
            stage=company.stage,
            founded_year=founded_year,
            location=company.location or "",
            website=company.website,
            funding_raised=self._funding_from_answers(context),
        )

    def _funding_from_answers(self, context: SharedContext) -> float | None:
        for entry in context.conversation_history:
            if re.search(r"raised|funding|seed|series", entry.response, re.IGNORECASE):
                amount = parse_money(entry.response)
                if amount is not None:
                    return amount
        return None

    def _market_analysis(self, context: SharedContext, public: PublicData | None) -> MarketAnalysis:
        year = datetime.now(timezone.utc).year
        current = parse_money(public.market_data.size) if public else None
        growth = parse_percent(public.market_data.growth) if public else None
        current = current or 0.0
        growth = growth or 0.0

        chart = [
            ChartPoint(year=year + offset, value=round(current * (1 + growth / 100) ** offset, 2))
            for offset in range(PROJECTION_YEARS + 1)
        ]

        return MarketAnalysis(
            market_size=MarketSize(current=current, projected=chart[-1].value, year=year + PROJECTION_YEARS),
            growth_rate=growth,
            trends=list(public.market_data.trends or public.industry_trends) if public else [],
            chart_data=chart,
            competitive_position=self._competitive_position(context),
        )

    def _competitive_position(self, context: SharedContext) -> CompetitivePosition:
        assessed = [e.caliber_metrics for e in context.conversation_history if e.caliber_metrics]
        if not assessed:
            return CompetitivePosition.CHALLENGER

        market_knowledge = sum(m.categories.market_knowledge.score for m in assessed) / len(assessed)
        if market_knowledge >= 80:
            return CompetitivePosition.LEADER
        if market_knowledge >= 65:
            return CompetitivePosition.CHALLENGER
        if market_knowledge >= 50:
            return CompetitivePosition.NICHE
        return CompetitivePosition.FOLLOWER

    def _founders(self, context: SharedContext) -> list[FounderSummary]:
        profile = context.founder_profile
        setup = context.session.setup

        achievements = [insight.insight for insight in context.founder_insights]
        achievements += [
            insight.description for insight in context.current_insights.strengths
            if insight.description not in achievements
        ]
        red_flags = list(dict.fromkeys(flag.description for flag in context.red_flags))

        if profile is None:
            return [FounderSummary(
                id=setup.founder_id,
                name=setup.founder_name or "Founder",
                achievements=achievements[:5],
                red_flags=red_flags,
            )]

        return [FounderSummary(
            id=profile.id,
            name=profile.name,
            bio="; ".join(profile.background),
            experience=list(profile.experience),
            education=list(profile.education),
            achievements=achievements[:5],
            red_flags=red_flags,
        )]

    def _competition(
        self,
        context: SharedContext,
        public: PublicData | None,
        position: CompetitivePosition,
    ) -> CompetitorAnalysis:
        competitors = [self._competitor(c) for c in public.competitors] if public else []

        advantages = []
        for entry in context.conversation_history:
            for sentence in re.split(r"(?<=[.!?])\s+", entry.response):
                if ADVANTAGE.search(sentence) and sentence.strip() not in advantages:
                    advantages.append(sentence.strip())

        sector = context.company_data.sector if context.company_data else context.session.setup.sector
        return CompetitorAnalysis(
            competitors=competitors,
            competitive_advantages=advantages[:5],
            market_position=f"{context.company_name} is positioned as a {position.value} in the {sector or 'target'} market",
        )

    def _competitor(self, data: CompetitorData) -> Competitor:
        return Competitor(
            name=data.name,
            description=data.funding,
            funding_raised=parse_money(data.funding),
            market_share=parse_percent(data.market_share),
            strengths=list(data.strengths),
        )

    def _kpis(self, context: SharedContext) -> KPIMetrics:
        revenue = RevenueMetrics()
        customers = CustomerMetrics()

        for entry in context.conversation_history:
            text = entry.response
            lowered = text.lower()

            if revenue.current is None and re.search(r"revenue|arr|mrr|sales", lowered):
                revenue.current = parse_money(text)
            if re.search(r"\barr\b|\bmrr\b|recurring|subscription", lowered):
                revenue.recurring = True
            if revenue.growth is None and re.search(r"grow|growth|increase", lowered):
                revenue.growth = parse_percent(text)

            if customers.total is None:
                match = CUSTOMER_COUNT.search(text)
                if match:
                    customers.total = int(match.group(1).replace(",", ""))
            if customers.churn is None:
                match = CHURN.search(text)
                if match:
                    customers.churn = float(match.group(1) or match.group(2))

        sector_specific = {}
        if context.rag_data and context.rag_data.public_data:
            sector_specific = dict(context.rag_data.public_data.benchmarks)

        return KPIMetrics(revenue=revenue, customers=customers, sector_specific=sector_specific)

    def _risk_assessment(self, context: SharedContext) -> RiskAssessment:
        factors: dict[str, list[str]] = {name: [] for name in MITIGATIONS}
        high: set[str] = set()

        for flag in context.red_flags:
            category = FLAG_RISK_CATEGORY[flag.type]
            factors[category].append(flag.description)
            if flag.severity == Severity.HIGH:
                high.add(category)

        for concern in context.current_insights.concerns:
            category = CONCERN_RISK_CATEGORY.get(concern.category)
            if category:
                factors[category].append(concern.description)

        categories = {}
        for name, items in factors.items():
            items = list(dict.fromkeys(items))
            if name in high:
                level = RiskLevel.HIGH
            elif items:
                level = RiskLevel.MEDIUM
            else:
                level = RiskLevel.LOW
            categories[name] = RiskCategory(level=level, factors=items)

        levels = [category.level for category in categories.values()]
        if RiskLevel.HIGH in levels:
            overall = RiskLevel.HIGH
        elif RiskLevel.MEDIUM in levels:
            overall = RiskLevel.MEDIUM
        else:
            overall = RiskLevel.LOW

        return RiskAssessment(
            risk_level=overall,
            categories=RiskCategories(**categories),
            red_flags=list(dict.fromkeys(flag.description for flag in context.red_flags)),
            mitigation_strategies=[
                MITIGATIONS[name] for name, category in categories.items()
                if category.level != RiskLevel.LOW
            ],
        )

    async def _recommendation(
        self,
        context: SharedContext,
        score: InvestmentScore,
        public: PublicData | None,
    ) -> MemoRecommendation:
        reasoning = list(score.reasoning)
        thesis = None

        if self.ai_reasoning is not None:
            drafted = await self.ai_reasoning.write_investment_thesis(context, score)
            if drafted is not None:
                thesis, extra = drafted
                reasoning += [point for point in extra if point not in reasoning]

        return MemoRecommendation(
            score=score.overall,
            recommendation=score.recommendation.display_name,
            reasoning=reasoning,
            investment_thesis=thesis or self._template_thesis(context, score, public),
        )

    def _template_thesis(self, context: SharedContext, score: InvestmentScore, public: PublicData | None) -> str:
        parts = []
        if public is not None:
            parts.append(
                f"{context.company_name} addresses a {public.market_data.size} market "
                f"growing at {public.market_data.growth}."
            )

        best = max(score.categories.model_dump().items(), key=lambda item: item[1])
        worst = min(score.categories.model_dump().items(), key=lambda item: item[1])
        parts.append(
            f"The interview points to {best[0]} as the strongest area ({best[1]:.0f}/100) "
            f"and {worst[0]} as the weakest ({worst[1]:.0f}/100)."
        )

        if context.red_flags:
            parts.append(f"{len(context.red_flags)} red flag(s) need diligence before a decision.")
        parts.append(f"Recommendation: {score.recommendation.display_name} at {score.overall:.0f}/100.")

        return " ".join(parts)
