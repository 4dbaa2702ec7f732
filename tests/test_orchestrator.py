"""
Tests for the interview orchestrator: lifecycle state machine, turn flow,
queue control and reporting.
"""

import asyncio

import pytest

from liora.core.errors import InvalidRequestError, SessionNotFoundError, StateTransitionError
from liora.core.interview_orchestrator import InterviewOrchestrator
from liora.core.workflow import InterviewWorkflow
from liora.models.interview import InterviewSetup, InterviewStatus
from liora.models.question import Priority


ANSWER = (
    "We have 120 paying customers and $1.2M ARR, growing 15% month over month. "
    "Because our data shows support teams want automation, we decided to focus on integrations."
)


async def _started(orchestrator, **setup):
    setup.setdefault("company_name", "Acme")
    setup.setdefault("sector", "B2B SaaS")
    session = await orchestrator.create_session(InterviewSetup(**setup))
    first = await orchestrator.start_interview(session.id)
    return session.id, first


async def test_create_session_starts_initializing(orchestrator):
    session = await orchestrator.create_session(InterviewSetup(company_name="Acme", time_limit_minutes=5))

    assert session.status == InterviewStatus.INITIALIZING
    assert session.progress.remaining_time == 300
    assert orchestrator.get_session(session.id) is session
    assert orchestrator.list_sessions() == [session]


async def test_start_delivers_first_question(orchestrator):
    session_id, first = await _started(orchestrator)

    assert first["action"] == "question"
    assert first["question_id"] == "company-overview"
    assert first["question_number"] == 1
    assert first["total_questions"] == 10
    assert orchestrator.get_session(session_id).status == InterviewStatus.ACTIVE
    assert orchestrator.get_session(session_id).start_time is not None


async def test_start_twice_is_rejected(orchestrator):
    session_id, _ = await _started(orchestrator)

    with pytest.raises(StateTransitionError):
        await orchestrator.start_interview(session_id)


async def test_unknown_session(orchestrator):
    assert orchestrator.get_session("missing") is None
    with pytest.raises(SessionNotFoundError):
        await orchestrator.start_interview("missing")


async def test_submit_response_returns_assessment_and_next_question(orchestrator):
    session_id, _ = await _started(orchestrator)

    result = await orchestrator.submit_response(session_id, ANSWER)

    assert result["action"] == "question"
    assert result["question_number"] == 2
    assert 0 <= result["assessment"]["caliber_overall"] <= 100
    assert set(result["assessment"]["categories"]) == {
        "communication", "leadership", "market_knowledge",
        "strategic_thinking", "resilience", "business_acumen",
    }


async def test_empty_response_is_rejected(orchestrator):
    session_id, _ = await _started(orchestrator)

    with pytest.raises(InvalidRequestError):
        await orchestrator.submit_response(session_id, "   ")


async def test_interview_completes_after_estimated_questions(orchestrator):
    session_id, _ = await _started(orchestrator, total_estimated_questions=2)

    await orchestrator.submit_response(session_id, ANSWER)
    result = await orchestrator.submit_response(session_id, ANSWER)

    assert result["action"] == "complete"
    assert result["assessment"] is not None
    session = orchestrator.get_session(session_id)
    assert session.status == InterviewStatus.COMPLETED
    assert session.end_time is not None


async def test_pause_blocks_answers_until_resumed(orchestrator):
    session_id, _ = await _started(orchestrator)

    paused = await orchestrator.pause_interview(session_id)
    assert paused.status == InterviewStatus.PAUSED
    assert orchestrator.workflow.get_question_manager(session_id)._paused_at is not None

    with pytest.raises(StateTransitionError):
        await orchestrator.submit_response(session_id, ANSWER)

    resumed = await orchestrator.resume_interview(session_id)
    assert resumed.status == InterviewStatus.ACTIVE
    assert resumed.paused_at is None
    assert (await orchestrator.submit_response(session_id, ANSWER))["action"] == "question"


async def test_invalid_transition(orchestrator):
    session = await orchestrator.create_session(InterviewSetup(company_name="Acme"))

    with pytest.raises(StateTransitionError):
        await orchestrator.transition_state(session.id, InterviewStatus.PAUSED)


async def test_complete_is_idempotent_and_terminal(orchestrator):
    session_id, _ = await _started(orchestrator)

    await orchestrator.complete_interview(session_id)
    again = await orchestrator.complete_interview(session_id)

    assert again.status == InterviewStatus.COMPLETED
    with pytest.raises(StateTransitionError):
        await orchestrator.resume_interview(session_id)


async def test_reset_returns_session_to_initializing(orchestrator):
    session_id, _ = await _started(orchestrator)
    await orchestrator.submit_response(session_id, ANSWER)

    session = await orchestrator.reset_interview(session_id)

    assert session.id == session_id
    assert session.status == InterviewStatus.INITIALIZING
    assert orchestrator.get_context(session_id).conversation_history == []
    assert orchestrator.workflow.get_question_manager(session_id) is None
    assert (await orchestrator.start_interview(session_id))["question_number"] == 1


async def test_skip_current_question(orchestrator):
    session_id, _ = await _started(orchestrator)

    result = await orchestrator.skip_current_question(session_id, "Founder asked to move on")

    assert result["question_id"] == "market-size"
    assert result["question_number"] == 2
    history = orchestrator.workflow.get_question_manager(session_id).history
    assert history[0].id == "company-overview"
    assert history[0].skip_reason == "Founder asked to move on"


async def test_custom_question_is_asked_next(orchestrator):
    session_id, _ = await _started(orchestrator)

    custom = orchestrator.add_custom_question(session_id, "How do you price?", Priority.HIGH)
    result = await orchestrator.submit_response(session_id, ANSWER)

    assert result["question_id"] == custom.id
    assert custom.id.startswith("custom-")


async def test_custom_question_requires_text(orchestrator):
    session_id, _ = await _started(orchestrator)

    with pytest.raises(InvalidRequestError):
        orchestrator.add_custom_question(session_id, " ")


async def test_callbacks_fire_and_errors_are_contained(orchestrator):
    events = []

    async def on_state(session_id, old, new):
        events.append((old, new))

    async def broken(session_id, question):
        raise RuntimeError("listener down")

    async def on_assessment(session_id, caliber):
        events.append(caliber.overall)

    orchestrator.on_state_change(on_state)
    orchestrator.on_question(broken)
    orchestrator.on_assessment(on_assessment)

    session_id, first = await _started(orchestrator)
    await orchestrator.submit_response(session_id, ANSWER)

    assert first["action"] == "question"
    assert events[0] == (InterviewStatus.INITIALIZING, InterviewStatus.ACTIVE)
    assert isinstance(events[1], float)
    assert len(events) == 2


async def test_workflow_status_and_stats(orchestrator):
    session = await orchestrator.create_session(InterviewSetup(company_name="Acme"))
    assert orchestrator.get_workflow_status(session.id)["current_step"] == "not_started"

    await orchestrator.start_interview(session.id)
    await orchestrator.submit_response(session.id, ANSWER)

    status = orchestrator.get_workflow_status(session.id)
    assert status["current_step"] == "await_response"
    assert "coordinator" in status["agent_thinking"]
    assert status["queue"]["completed"] == 1

    stats = orchestrator.get_interview_stats(session.id)
    assert stats["questions_asked"] == 1
    assert len(stats["caliber_trend"]) == 1
    assert len(stats["topics_covered"]) == 1

    progress = orchestrator.get_interview_progress(session.id)
    assert progress["question_number"] == 2
    assert progress["progress_percent"] == 20.0


async def test_memory_and_export(orchestrator):
    session_id, _ = await _started(orchestrator)
    await orchestrator.submit_response(session_id, ANSWER)

    memory = orchestrator.get_memory(session_id)
    exported = orchestrator.export_interview_data(session_id)

    assert memory["stats"]["total_entries"] == 1
    assert len(exported["conversation_history"]) == 1
    assert exported["session"]["status"] == "active"
    assert exported["question_queue_status"]["completed"] == 1


async def test_memo_requires_started_interview(orchestrator):
    session = await orchestrator.create_session(InterviewSetup(company_name="Acme"))

    with pytest.raises(StateTransitionError):
        await orchestrator.generate_memo(session.id)


async def test_memo_is_cached_once_complete(orchestrator):
    session_id, _ = await _started(orchestrator)
    await orchestrator.submit_response(session_id, ANSWER)
    await orchestrator.complete_interview(session_id)

    memo = await orchestrator.generate_memo(session_id)

    assert memo.overview.name == "Acme"
    assert await orchestrator.generate_memo(session_id) is memo


async def test_workflow_failure_moves_session_to_error(orchestrator, monkeypatch):
    session_id, _ = await _started(orchestrator)

    async def broken(response, state):
        raise RuntimeError("graph exploded")

    monkeypatch.setattr(orchestrator.workflow, "process_founder_response", broken)

    with pytest.raises(Exception, match="graph exploded"):
        await orchestrator.submit_response(session_id, ANSWER)

    session = orchestrator.get_session(session_id)
    assert session.status == InterviewStatus.ERROR
    assert session.error_message == "graph exploded"


async def test_answers_queued_behind_completion_are_rejected(orchestrator):
    session_id, _ = await _started(orchestrator, total_estimated_questions=2)

    results = await asyncio.gather(
        *(orchestrator.submit_response(session_id, ANSWER) for _ in range(3)),
        return_exceptions=True,
    )

    assert [r["action"] for r in results[:2]] == ["question", "complete"]
    assert isinstance(results[2], StateTransitionError)
    assert len(orchestrator.get_context(session_id).conversation_history) == 2
    assert orchestrator.get_session(session_id).status == InterviewStatus.COMPLETED


class GatedPolisher:
    """Polisher that holds a turn open until released."""

    enabled = True

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def polish_question(self, question, context):
        self.entered.set()
        await self.release.wait()
        return question


async def test_reset_waits_for_running_turn():
    polisher = GatedPolisher()
    orchestrator = InterviewOrchestrator(workflow=InterviewWorkflow(ai_reasoning=polisher))
    polisher.release.set()
    session_id, _ = await _started(orchestrator)
    polisher.release.clear()
    polisher.entered.clear()

    turn = asyncio.create_task(orchestrator.submit_response(session_id, ANSWER))
    await polisher.entered.wait()
    reset = asyncio.create_task(orchestrator.reset_interview(session_id))
    await asyncio.sleep(0)
    assert not reset.done()

    polisher.release.set()
    await turn
    session = await reset

    assert session.status == InterviewStatus.INITIALIZING
    assert orchestrator.get_session(session_id).status == InterviewStatus.INITIALIZING
    assert orchestrator.get_context(session_id).conversation_history == []
    assert orchestrator.workflow.get_question_manager(session_id) is None


async def test_turn_result_discarded_if_session_replaced(orchestrator, monkeypatch):
    session_id, _ = await _started(orchestrator)
    original = orchestrator.workflow.process_founder_response

    async def replaced_mid_turn(response, state):
        result = await original(response, state)
        orchestrator._contexts[session_id] = result["shared_context"].model_copy()
        return result

    monkeypatch.setattr(orchestrator.workflow, "process_founder_response", replaced_mid_turn)

    with pytest.raises(StateTransitionError):
        await orchestrator.submit_response(session_id, ANSWER)
