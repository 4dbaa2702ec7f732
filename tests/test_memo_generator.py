"""
Tests for investment memo generation.
"""

from unittest.mock import AsyncMock, MagicMock

from liora.agents import AnalystAgent
from liora.core.memo_generator import MemoGenerator, parse_money, parse_percent
from liora.models.evaluation import Insight, InsightType, RedFlag, RedFlagType, Severity
from liora.models.interview import ConversationEntry
from liora.models.memo import CompetitivePosition, RiskLevel


FUNDING_ANSWER = "We raised $2M seed funding last year from two angels."
TRACTION_ANSWER = (
    "We have 120 paying customers and $1.2M ARR, growing 15% month over month with 2% monthly churn. "
    "Unlike Zendesk, we resolve tickets without agents."
)


def _interviewed_context(make_context):
    context = make_context("Acme", with_rag=True)
    analyst = AnalystAgent()
    for answer in (FUNDING_ANSWER, TRACTION_ANSWER):
        context.conversation_history.append(ConversationEntry(
            question="Tell me more.",
            response=answer,
            caliber_metrics=analyst.assess_caliber_metrics(answer),
        ))
    return context


def test_parse_money():
    assert parse_money("$50B") == 50e9
    assert parse_money("$200M Series D") == 200e6
    assert parse_money("$1.5 million") == 1.5e6
    assert parse_money("$1,500") == 1500
    assert parse_money("no money here") is None
    assert parse_money(None) is None


def test_parse_percent():
    assert parse_percent("15% YoY") == 15.0
    assert parse_percent("flat") is None


async def test_memo_sections_from_interview(make_context):
    context = _interviewed_context(make_context)

    memo = await MemoGenerator().generate(context)

    assert memo.session_id == context.session.id
    assert memo.overview.name == "Acme"
    assert memo.overview.founded_year == 2022
    assert memo.overview.funding_raised == 2e6

    assert memo.market_analysis.market_size.current == 50e9
    assert memo.market_analysis.growth_rate == 15.0
    assert len(memo.market_analysis.chart_data) == 6
    assert memo.market_analysis.chart_data[0].value == 50e9
    assert memo.market_analysis.market_size.projected == memo.market_analysis.chart_data[-1].value

    assert memo.kpis.revenue.current == 1.2e6
    assert memo.kpis.revenue.recurring is True
    assert memo.kpis.revenue.growth == 15.0
    assert memo.kpis.customers.total == 120
    assert memo.kpis.customers.churn == 2.0
    assert "revenue_growth" in memo.kpis.sector_specific

    assert [c.name for c in memo.competition.competitors][:2] == ["Zendesk", "Intercom"]
    assert memo.competition.competitors[0].funding_raised == 200e6
    assert memo.competition.competitive_advantages == ["Unlike Zendesk, we resolve tickets without agents."]

    assert memo.founders[0].name == "Sarah Chen"


async def test_competitive_position_without_answers(make_context):
    memo = await MemoGenerator().generate(make_context())

    assert memo.market_analysis.competitive_position == CompetitivePosition.CHALLENGER
    assert memo.overview.name == "Acme"
    assert memo.market_analysis.market_size.current == 0.0


async def test_clean_interview_has_low_risk(make_context):
    memo = await MemoGenerator().generate(_interviewed_context(make_context))

    assert memo.risk_assessment.risk_level == RiskLevel.LOW
    assert memo.risk_assessment.mitigation_strategies == []


async def test_red_flags_drive_risk_levels(make_context):
    context = _interviewed_context(make_context)
    context.red_flags.append(RedFlag(
        type=RedFlagType.FINANCIAL, severity=Severity.HIGH,
        description="No revenue generation mentioned", evidence="no revenue",
    ))
    context.current_insights.add(Insight(
        type=InsightType.CONCERN, category="market_knowledge", description="Needs improvement in market knowledge",
    ))

    risk = (await MemoGenerator().generate(context)).risk_assessment

    assert risk.risk_level == RiskLevel.HIGH
    assert risk.categories.financial.level == RiskLevel.HIGH
    assert risk.categories.market.level == RiskLevel.MEDIUM
    assert risk.categories.team.level == RiskLevel.LOW
    assert risk.red_flags == ["No revenue generation mentioned"]
    assert len(risk.mitigation_strategies) == 2


async def test_template_thesis_without_llm(make_context):
    context = _interviewed_context(make_context)

    recommendation = (await MemoGenerator().generate(context)).recommendation

    assert recommendation.investment_thesis.startswith("Acme addresses a $50B market growing at 15% YoY.")
    assert "Recommendation:" in recommendation.investment_thesis
    assert recommendation.reasoning[-1].startswith("Overall recommendation:")


async def test_llm_thesis_is_used_when_available(make_context):
    ai_reasoning = MagicMock()
    ai_reasoning.write_investment_thesis = AsyncMock(return_value=("Back the team.", ["Repeat founder"]))

    recommendation = (await MemoGenerator(ai_reasoning=ai_reasoning).generate(
        _interviewed_context(make_context)
    )).recommendation

    assert recommendation.investment_thesis == "Back the team."
    assert "Repeat founder" in recommendation.reasoning
