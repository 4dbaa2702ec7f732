"""
Tests for the LangGraph interview workflow.
"""

from datetime import datetime, timedelta, timezone

from langchain_core.messages import AIMessage, HumanMessage

from liora.core.workflow import FALLBACK_QUESTION_ID, InterviewWorkflow
from liora.models.evaluation import Insight, InsightType
from liora.models.question import Priority


ANSWER = (
    "We have 120 paying customers and $1.2M ARR, growing 15% month over month. "
    "Because our data shows support teams want automation, we decided to focus on integrations."
)


async def test_start_asks_first_question(workflow, make_context):
    context = make_context("Acme")

    state = await workflow.start(context)

    question = state["current_question"]
    assert question.id == "company-overview"
    assert "Acme" in question.text
    assert question.context_data["rag_data_used"] is True
    assert context.session.progress.current_question_index == 1
    assert context.session.current_topic == "Company Overview"
    assert context.rag_data is not None and context.company_data.name == "Acme"
    assert set(state["agent_thinking"]) == {"memory_retriever", "context_enricher", "interviewer"}
    assert [type(m) for m in state["messages"]] == [AIMessage]


async def test_response_is_assessed_stored_and_followed_by_next_question(workflow, make_context):
    context = make_context("Acme")
    state = await workflow.start(context)

    state = await workflow.process_founder_response(ANSWER, state)

    assert state["caliber_metrics"] is not None
    assert state["response_evaluation"] is not None
    assert len(context.conversation_history) == 1
    entry = context.conversation_history[0]
    assert entry.question_id == "company-overview"
    assert any(insight.startswith("Communication:") for insight in entry.insights)
    assert entry.response_seconds is not None
    assert workflow.memory_manager.get_memory_stats(context.session.id)["total_entries"] == 1
    assert state["current_question"].id != "company-overview"
    assert state["founder_response"] is None
    assert [type(m) for m in state["messages"]] == [AIMessage, HumanMessage, AIMessage]
    assert workflow.get_workflow_state(state)["progress"] == 100.0


async def test_paused_time_is_not_counted_as_response_time(workflow, make_context):
    context = make_context("Acme")
    state = await workflow.start(context)
    asked_at = datetime.now(timezone.utc) - timedelta(seconds=100)
    context.metadata["question_asked_at"] = asked_at.isoformat()
    context.session.paused_seconds += 90

    await workflow.process_founder_response(ANSWER, state)

    assert 10 <= context.conversation_history[0].response_seconds < 20


async def test_rag_data_is_retrieved_once_per_session(workflow, make_context):
    context = make_context("Acme")
    state = await workflow.start(context)
    retrieved = context.rag_data

    await workflow.process_founder_response(ANSWER, state)

    assert context.rag_data is retrieved


async def test_completes_after_estimated_question_count(workflow, make_context):
    context = make_context(total_estimated_questions=1)
    state = await workflow.start(context)

    state = await workflow.process_founder_response(ANSWER, state)

    assert state["is_complete"] is True
    assert state["agent_thinking"]["coordinator"].reasoning == "Interview complete: max questions"
    assert context.session.progress.current_question_index == 1


async def test_completes_when_no_question_fits_remaining_time(workflow, make_context):
    context = make_context()
    state = await workflow.start(context)
    workflow.get_question_manager(context.session.id).start(
        datetime.now(timezone.utc) - timedelta(minutes=10)
    )

    state = await workflow.process_founder_response(ANSWER, state)

    assert state["is_complete"] is True
    assert state["current_question"] is None


async def test_exhausted_queue_falls_back_to_interviewer(workflow, make_context):
    context = make_context()
    state = await workflow.start(context)
    manager = workflow.get_question_manager(context.session.id)
    for item in manager.queue:
        manager.skip_question(item.id, "test")

    state = await workflow.execute_workflow({**state, "founder_response": None})

    assert state["current_question"].id.startswith("q")
    assert state["is_complete"] is False


async def test_generation_failure_uses_fallback_question(workflow, make_context, monkeypatch):
    def broken(context):
        raise RuntimeError("queue unavailable")

    monkeypatch.setattr(workflow, "_next_question", broken)

    state = await workflow.start(make_context())

    assert state["current_question"].id == FALLBACK_QUESTION_ID
    assert state["agent_thinking"]["interviewer"].confidence == 0.2


async def test_polish_is_applied_when_llm_enabled(make_context):
    class Polisher:
        enabled = True

        async def polish_question(self, question, context):
            return f"So, {question}"

    workflow = InterviewWorkflow(ai_reasoning=Polisher())

    state = await workflow.start(make_context())

    assert state["current_question"].text.startswith("So, ")


async def test_concerns_pull_risk_questions_forward(workflow, make_context):
    context = make_context()
    await workflow.start(context)
    manager = workflow.get_question_manager(context.session.id)
    concern = Insight(type=InsightType.CONCERN, category="communication", description="Vague answers")

    workflow._plan_next_topic(context, [concern], manager)

    assert context.metadata["conversation_topic"] == "risk-assessment"
    risks = next(item for item in manager.queue if item.id == "challenges-risks")
    assert risks.metadata.priority == Priority.HIGH


async def test_release_session_drops_session_data(workflow, make_context):
    context = make_context()
    state = await workflow.start(context)
    await workflow.process_founder_response(ANSWER, state)

    workflow.release_session(context.session.id)

    assert workflow.get_question_manager(context.session.id) is None
    assert workflow.memory_manager.get_memory_stats(context.session.id)["total_entries"] == 0
    assert workflow.rag_agent.export_knowledge_base(context.session.id) == {}


async def test_repeated_red_flags_are_recorded_once(workflow, make_context):
    context = make_context()
    state = await workflow.start(context)

    state = await workflow.process_founder_response("We have no revenue yet.", state)
    await workflow.process_founder_response("Honestly there is still no revenue.", state)

    descriptions = [flag.description for flag in context.red_flags]
    assert sorted(descriptions) == ["Financial concerns detected", "No revenue generation mentioned"]


async def test_question_cap_ends_interview_early(workflow, make_context):
    workflow.max_questions = 1
    context = make_context(total_estimated_questions=10)
    state = await workflow.start(context)

    state = await workflow.process_founder_response(ANSWER, state)

    assert state["is_complete"] is True
