"""
Tests for the interviewer, analyst and memory manager agents.
"""

import random

import pytest

from liora.agents import AgentStatus, AnalystAgent, InterviewerAgent, MemoryManager
from liora.agents.analyst import INVESTMENT_WEIGHTS
from liora.models.evaluation import CALIBER_WEIGHTS, Insight, InsightType, RedFlagType, Recommendation, Severity
from liora.models.interview import ConversationEntry
from liora.models.question import InterviewQuestion


STRONG_ANSWER = (
    "We have 120 paying customers and $1.2M ARR, growing 15% month over month. "
    "Because our data shows enterprise teams churn from legacy tools, we decided to focus on "
    "integrations first. For example, our team shipped a Salesforce connector in 6 weeks."
)


# ============================================================================
# INTERVIEWER
# ============================================================================

def test_interviewer_rotation_follows_question_index(make_context):
    """The rotation wraps around after the last question."""
    interviewer = InterviewerAgent(rng=random.Random(1))
    context = make_context("Acme")

    first = interviewer.generate_question(context)
    context.session.progress.current_question_index = 5
    wrapped = interviewer.generate_question(context)

    assert first.id == "q1"
    assert "Acme" in first.text
    assert wrapped.id == "q1"
    assert interviewer.status == AgentStatus.IDLE


def test_interviewer_follows_up_on_covered_topic(make_context):
    interviewer = InterviewerAgent(rng=random.Random(1))
    context = make_context()
    context.conversation_history.append(ConversationEntry(
        question="Tell me about Acme.",
        response="Our market size is large and the customer pain is acute.",
    ))

    question = interviewer.generate_question(context)

    assert question.id == "q1-followup"
    assert question.type.value == "follow-up"


def test_interviewer_injects_public_data(make_context):
    interviewer = InterviewerAgent()
    context = make_context(with_rag=True)
    context.session.progress.current_question_index = 1

    question = interviewer.generate_question(context)

    assert "$50B market that's growing at 15% YoY" in question.text
    assert "Zendesk and Intercom" in question.text
    assert question.context_data["rag_data_used"] is True


def test_interviewer_leaves_go_to_market_alone(make_context):
    question = InterviewQuestion(id="gtm", text="Walk me through your go-to-market plan for this market.")

    injected = InterviewerAgent()._inject_public_context(question, make_context(with_rag=True))

    assert injected.text.startswith("Walk me through your go-to-market plan for this $50B market")


def test_evaluate_strong_response():
    evaluation = InterviewerAgent().evaluate_response(STRONG_ANSWER)

    assert evaluation.quality >= 70
    assert evaluation.credibility >= 60
    assert any("Mentioned specific metrics" in insight for insight in evaluation.insights)


def test_short_vague_answer_needs_follow_up():
    evaluation = InterviewerAgent().evaluate_response("It's going well.")

    assert evaluation.follow_up_needed is True
    assert "Can you give me a specific example of that?" in evaluation.suggested_follow_ups


def test_credibility_penalizes_hedging():
    interviewer = InterviewerAgent()

    assert interviewer.assess_credibility("I think everyone will probably love it") < 60


def test_transition_topic_jumps_to_risk_on_concern():
    interviewer = InterviewerAgent()
    concern = Insight(type=InsightType.CONCERN, category="communication", description="Weak")

    assert interviewer.transition_topic("market-analysis", []) == "competitive-landscape"
    assert interviewer.transition_topic("market-analysis", [concern]) == "risk-assessment"
    assert interviewer.transition_topic("risk-assessment", []) == "wrap-up"


# ============================================================================
# ANALYST
# ============================================================================

def test_caliber_scores_are_bounded():
    metrics = AnalystAgent().assess_caliber_metrics(STRONG_ANSWER)

    assert 0 <= metrics.overall <= 100
    for _, category in metrics.categories.items():
        assert 0 <= category.score <= 100
        assert 0 < category.confidence <= 1


def test_caliber_overall_is_weighted_category_sum():
    for answer in (STRONG_ANSWER, "Thanks.", "We have no revenue and I think maybe it could work."):
        metrics = AnalystAgent().assess_caliber_metrics(answer)

        expected = sum(
            getattr(metrics.categories, name).score * weight
            for name, weight in CALIBER_WEIGHTS.items()
        )
        assert metrics.overall == round(expected, 2)

    assert sum(CALIBER_WEIGHTS.values()) == pytest.approx(1.0)


def test_market_knowledge_baselines_and_bumps():
    analyst = AnalystAgent()

    plain = analyst.assess_caliber_metrics("Thanks.")
    informed = analyst.assess_caliber_metrics(
        "Our industry has three competitors, a $4B tam and a clear adoption trend."
    )

    assert plain.categories.market_knowledge.score == 62.5
    assert informed.categories.market_knowledge.score == 72.5


def test_response_red_flags():
    metrics = AnalystAgent().assess_caliber_metrics("We have no revenue yet and no competitors.")

    flags = {flag.type: flag.severity for flag in metrics.red_flags}
    assert flags[RedFlagType.FINANCIAL] == Severity.HIGH
    assert flags[RedFlagType.MARKET] == Severity.MEDIUM


def test_conversation_red_flags():
    history = [
        ConversationEntry(question="Team?", response="Our cofounder left last month."),
        ConversationEntry(question="Money?", response="We are running out of money."),
    ]

    flags = AnalystAgent().identify_red_flags(history)

    assert {flag.type for flag in flags} == {RedFlagType.TEAM, RedFlagType.FINANCIAL}


def test_generate_insights_collects_evidence():
    insights = AnalystAgent().generate_insights(
        ["I lead a team of 12.", "Our market is crowded with competitors.", "Hiring was difficult."],
        founder_id="f-1",
    )

    categories = [insight.category for insight in insights]
    assert categories == ["leadership", "market-knowledge", "resilience"]
    assert insights[0].founder_id == "f-1"
    assert insights[0].evidence == ["I lead a team of 12."]


def test_investment_potential_uses_baselines_without_answers(make_context):
    score = AnalystAgent().calculate_investment_potential(make_context())

    assert score.overall == 71.8
    assert score.recommendation == Recommendation.YES


def test_investment_potential_penalizes_financial_flags(make_context):
    analyst = AnalystAgent()
    context = make_context()
    answer = "We have no revenue and we are running out of money."
    metrics = analyst.assess_caliber_metrics(answer)
    context.conversation_history.append(ConversationEntry(question="Q", response=answer, caliber_metrics=metrics))

    clean = analyst.calculate_investment_potential(context)
    context.red_flags.extend(metrics.red_flags)
    flagged = analyst.calculate_investment_potential(context)

    assert flagged.categories.financials == max(0, round(clean.categories.financials - 15, 1))
    assert flagged.overall < clean.overall


def test_same_red_flag_is_penalized_once(make_context):
    """A per-answer flag and the conversation flag it overlaps cost one penalty."""
    analyst = AnalystAgent()
    context = make_context()
    answer = "We have no revenue yet."
    metrics = analyst.assess_caliber_metrics(answer)
    context.conversation_history.append(ConversationEntry(question="Q", response=answer, caliber_metrics=metrics))

    clean = analyst.calculate_investment_potential(context)
    context.red_flags.extend(metrics.red_flags)
    context.red_flags.extend(analyst.identify_red_flags(context.conversation_history))
    flagged = analyst.calculate_investment_potential(context)

    assert len(context.red_flags) == 2
    assert flagged.categories.financials == max(0, round(clean.categories.financials - 15, 1))
    expected = sum(getattr(flagged.categories, key) * weight for key, weight in INVESTMENT_WEIGHTS.items())
    assert flagged.overall == round(max(0, expected - 5), 1)


def test_recommendation_thresholds():
    assert Recommendation.from_score(85) == Recommendation.STRONG_YES
    assert Recommendation.from_score(70) == Recommendation.YES
    assert Recommendation.from_score(50) == Recommendation.MAYBE
    assert Recommendation.from_score(30) == Recommendation.NO
    assert Recommendation.from_score(29.9) == Recommendation.STRONG_NO


# ============================================================================
# MEMORY MANAGER
# ============================================================================

def _entry(index: int, response: str = "We grew 20% with 40 customers.") -> ConversationEntry:
    return ConversationEntry(question=f"Question {index} about the market?", response=response)


def test_store_adds_entry_insights():
    memory = MemoryManager(rng=random.Random(1))

    memory.store_conversation("s1", _entry(1, "We have $10,000 MRR from 40 customers, 5% churn."))

    stored = memory.get_memory("s1").entries[0]
    assert "Financial metrics mentioned" in stored.insights
    assert "Percentage metrics mentioned" in stored.insights
    assert "Customer-related discussion" in stored.insights


def test_memory_is_scoped_per_session():
    memory = MemoryManager()
    memory.store_conversation("s1", _entry(1))

    assert memory.retrieve_context("s2").total_entries == 0
    assert memory.retrieve_context("s1").total_entries == 1


def test_compression_keeps_recent_window():
    memory = MemoryManager(compression_threshold=10, context_window=2)

    for index in range(4):
        memory.store_conversation("s1", _entry(index, "We achieved 30% growth despite a difficult quarter."))

    stored = memory.get_memory("s1")
    assert len(stored.entries) == 2
    assert stored.compressed_summary.startswith("Previous conversation covered:")
    assert "Discussed challenges" in stored.key_insights
    assert "Mentioned achievements" in stored.key_insights


def test_retrieve_context_searches_by_keyword():
    memory = MemoryManager()
    memory.store_conversation("s1", ConversationEntry(question="Team?", response="We hired two engineers."))
    memory.store_conversation("s1", ConversationEntry(question="Revenue?", response="$20,000 MRR."))

    context = memory.retrieve_context("s1", "revenue")

    assert [entry.question for entry in context.entries] == ["Revenue?"]
    assert "Revenue?" in context.recent_exchanges


def test_continuity_bridge_uses_connection_points():
    memory = MemoryManager(rng=random.Random(1))
    memory.store_conversation("s1", ConversationEntry(
        question="Who are your customers?",
        response="Mid-market customer support teams.",
    ))

    bridge = memory.maintain_continuity("s1", "market opportunity")

    assert bridge.previous_topic == "market analysis"
    assert bridge.connection_points == ["customer insights from previous discussion"]
    assert "let's dive into market opportunity" in bridge.transition_phrase


def test_continuity_without_history():
    bridge = MemoryManager().maintain_continuity("empty", "team")

    assert bridge.previous_topic == "introduction"
    assert bridge.transition_phrase == "Now let's talk about team."


def test_optimize_caps_entries():
    memory = MemoryManager(max_entries=3, compression_threshold=10**6)
    for index in range(5):
        memory.store_conversation("s1", _entry(index))

    memory.optimize_memory("s1", session_duration_seconds=10)

    assert len(memory.get_memory("s1").entries) == 3
    assert memory.get_memory_stats("s1")["total_entries"] == 3


def test_clear_memory():
    memory = MemoryManager()
    memory.store_conversation("s1", _entry(1))

    memory.clear_memory("s1")

    assert memory.get_memory_stats("s1")["total_entries"] == 0
