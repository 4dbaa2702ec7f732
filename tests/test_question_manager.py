"""
Tests for the question queue: ordering, skipping, rewording and the clock.
"""

from datetime import datetime, timedelta, timezone

from liora.core.question_manager import SKIP_REASON, QuestionManager, simplify_question
from liora.models.evaluation import ResponseEvaluation
from liora.models.interview import ConversationEntry
from liora.models.question import InterviewQuestion, Priority, QueueItemStatus


def _evaluation(**overrides) -> ResponseEvaluation:
    values = {"quality": 80, "completeness": 80, "credibility": 70}
    values.update(overrides)
    return ResponseEvaluation(**values)


def _manager(context, elapsed_seconds: float = 0) -> QuestionManager:
    manager = QuestionManager(time_limit_seconds=600)
    manager.start(datetime.now(timezone.utc) - timedelta(seconds=elapsed_seconds))
    manager.initialize_questions(context)
    return manager


def test_first_question_is_company_overview(make_context):
    """Highest-priority question with no dependencies goes first."""
    context = make_context("Acme")
    manager = _manager(context)

    question = manager.get_next_question(context)

    assert question.id == "company-overview"
    assert "Acme" in question.text
    assert manager.get_active_question().id == "company-overview"


def test_dependent_questions_wait_for_their_dependencies(make_context):
    context = make_context()
    manager = _manager(context)

    ids = [item.id for item in manager.queue]

    assert ids.index("competitive-landscape") > ids.index("product-roadmap")
    assert ids.index("revenue-metrics") > ids.index("challenges-risks")


def test_answered_question_moves_to_history(make_context):
    context = make_context()
    manager = _manager(context)
    manager.get_next_question(context)

    manager.process_answer("company-overview", "We automate support.", _evaluation())

    assert [item.id for item in manager.history] == ["company-overview"]
    assert manager.history[0].status == QueueItemStatus.COMPLETED
    assert manager.get_queue_status().completed == 1


def test_previous_answer_adds_context_to_original_wording(make_context):
    """Rewording starts from the original text, never from an earlier rewording."""
    context = make_context()
    manager = _manager(context)
    manager.get_next_question(context)
    manager.process_answer("company-overview", "We automate support.", _evaluation())
    context.conversation_history.append(ConversationEntry(
        question="Tell me about Acme and the problem you're solving.",
        response="We automate support.",
    ))

    first = manager.get_next_question(context)
    second = manager.get_next_question(context)

    assert first.text.startswith("Building on what you mentioned about what you shared,")
    assert second.text == first.text
    assert first.context_data["modification_applied"] == "add_context"


def test_revenue_question_skipped_when_revenue_already_given(make_context):
    context = make_context()
    manager = _manager(context)
    manager.get_next_question(context)
    manager.process_answer("company-overview", "We have $2M ARR.", _evaluation())
    context.conversation_history.append(ConversationEntry(
        question="Tell me about Acme.",
        response="We have $2M ARR.",
    ))
    for question_id in ("market-size", "funding-history", "customer-traction", "go-to-market"):
        assert manager.skip_question(question_id, "not today")

    question = manager.get_next_question(context)

    assert question.id == "product-roadmap"
    skipped = {item.id: item.skip_reason for item in manager.history}
    assert skipped["revenue-metrics"] == SKIP_REASON


def test_no_question_when_time_is_nearly_up(make_context):
    context = make_context()
    manager = _manager(context, elapsed_seconds=590)

    assert manager.get_next_question(context) is None


def test_questions_are_simplified_when_time_is_short(make_context):
    context = make_context("Acme")
    manager = _manager(context, elapsed_seconds=450)

    question = manager.get_next_question(context)

    assert question.text.startswith("Quickly, what is Acme")


def test_follow_ups_are_queued_behind_the_answered_question(make_context):
    context = make_context()
    manager = _manager(context)
    manager.get_next_question(context)

    manager.process_answer(
        "company-overview",
        "Short answer.",
        _evaluation(follow_up_needed=True, suggested_follow_ups=["Can you give me a specific example of that?"]),
    )

    follow_up = next(item for item in manager.queue if item.id == "company-overview-followup-0")
    assert follow_up.metadata.dependencies == ["company-overview"]
    assert follow_up.metadata.time_estimate == 45


def test_answer_keywords_boost_priority(make_context):
    context = make_context()
    manager = _manager(context)
    manager.get_next_question(context)

    manager.process_answer("company-overview", "We need to hire a VP of sales.", _evaluation())

    team = next(item for item in manager.queue if item.id == "team-composition")
    assert team.metadata.priority == Priority.HIGH


def test_boost_priority_reports_change(make_context):
    manager = _manager(make_context())

    assert manager.boost_priority("challenges-risks") is True
    assert manager.boost_priority("challenges-risks") is False
    assert manager.boost_priority("unknown") is False


def test_high_priority_custom_question_goes_first(make_context):
    context = make_context()
    manager = _manager(context)

    manager.add_custom_question(
        InterviewQuestion(id="custom-1", text="How do you price?"), Priority.HIGH
    )

    assert manager.get_next_question(context).id == "custom-1"


def test_skip_unknown_question_returns_false(make_context):
    manager = _manager(make_context())

    assert manager.skip_question("nope", "reason") is False


def test_pause_freezes_the_clock():
    manager = QuestionManager(time_limit_seconds=600)
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    manager.start(start)

    manager.pause(start + timedelta(seconds=100))
    assert manager.get_remaining_time(start + timedelta(seconds=400)) == 500

    manager.resume(start + timedelta(seconds=200))
    assert manager.get_remaining_time(start + timedelta(seconds=300)) == 400


def test_queue_status_counts(make_context):
    context = make_context()
    manager = _manager(context)
    manager.skip_question("challenges-risks", "no time")

    status = manager.get_queue_status()

    assert status.total == 10
    assert status.skipped == 1
    assert status.remaining == 9
    assert len(status.next_priorities) == 3


def test_simplify_question():
    assert simplify_question("Walk me through your go-to-market strategy.") == "explain your go-to-market strategy."
