"""
Tests for the AI reasoning layer against a mocked LLM gateway.
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from liora.config.settings import Settings
from liora.core.ai_reasoning import AIReasoningLayer
from liora.core.errors import AuthError, LLMError
from liora.models.evaluation import InvestmentCategories, InvestmentScore, Recommendation


def _settings(**overrides) -> Settings:
    values = {
        "databricks_host": "https://gateway.test",
        "databricks_token": "token",
        "agent_max_retries": 3,
        "langfuse_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def _completion(content) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def _layer(handler, **overrides) -> tuple[AIReasoningLayer, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(base_url="https://gateway.test", transport=httpx.MockTransport(recording))
    return AIReasoningLayer(settings=_settings(**overrides), client=client), requests


def _score() -> InvestmentScore:
    return InvestmentScore(
        overall=72,
        categories=InvestmentCategories(market=75, product=70, team=80, traction=65, financials=60),
        recommendation=Recommendation.YES,
    )


async def test_disabled_layer_returns_original_question(make_context):
    layer = AIReasoningLayer(settings=_settings(databricks_host="", databricks_token=""))

    assert layer.enabled is False
    assert await layer.polish_question("How big is the market?", make_context()) == "How big is the market?"
    assert await layer.write_investment_thesis(make_context(), _score()) is None


async def test_polish_question_uses_flash_endpoint(make_context):
    layer, requests = _layer(lambda request: _completion('Sure: {"question": "So, how big is this market?"}'))

    polished = await layer.polish_question("How big is the market?", make_context())

    assert polished == "So, how big is this market?"
    assert requests[0].url.path == layer.settings.gemini_flash_endpoint
    body = json.loads(requests[0].content)
    assert body["temperature"] == 0.8


async def test_unparseable_polish_keeps_original(make_context):
    layer, _ = _layer(lambda request: _completion("I would rather not."))

    assert await layer.polish_question("Original?", make_context()) == "Original?"


async def test_server_errors_are_retried():
    statuses = iter([503, 503, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        status = next(statuses)
        if status == 200:
            return _completion("Recovered")
        return httpx.Response(status)

    layer, requests = _layer(handler)

    assert await layer._call_gemini_pro("prompt") == "Recovered"
    assert len(requests) == 3


async def test_auth_errors_are_not_retried(make_context):
    layer, requests = _layer(lambda request: httpx.Response(401))

    with pytest.raises(AuthError):
        await layer._call_gemini_flash("prompt")
    assert len(requests) == 1

    assert await layer.polish_question("Original?", make_context()) == "Original?"


async def test_client_errors_are_not_retried():
    layer, requests = _layer(lambda request: httpx.Response(400))

    with pytest.raises(LLMError) as excinfo:
        await layer._call_gemini_pro("prompt")

    assert excinfo.value.retryable is False
    assert len(requests) == 1


async def test_empty_content_raises():
    layer, _ = _layer(lambda request: _completion("   "))

    with pytest.raises(LLMError):
        await layer._call_gemini_pro("prompt")


async def test_multi_part_content_is_joined():
    layer, _ = _layer(lambda request: _completion([{"type": "text", "text": "Hello"}, " there"]))

    assert await layer._call_gemini_flash("prompt") == "Hello there"


async def test_write_investment_thesis(make_context):
    content = json.dumps({"thesis": "Strong team in a large market.", "reasoning": ["Team", "Market"]})
    layer, requests = _layer(lambda request: _completion(content))

    result = await layer.write_investment_thesis(make_context(with_rag=True), _score())

    assert result == ("Strong team in a large market.", ["Team", "Market"])
    assert requests[0].url.path == layer.settings.gemini_pro_endpoint


async def test_closing_remarks_fall_back_on_failure(make_context):
    layer, requests = _layer(lambda request: httpx.Response(500))

    remarks = await layer.closing_remarks(make_context("Acme"))

    assert "Acme" in remarks
    assert len(requests) == 3


def test_interview_trace_lifecycle():
    layer = AIReasoningLayer(settings=_settings(databricks_host="", databricks_token=""))
    layer.langfuse = MagicMock()
    span = layer.langfuse.start_span.return_value

    layer.start_interview_trace("s-1", "Acme")
    layer.end_interview_trace("s-1", status="completed", caliber=74.5)

    layer.langfuse.start_span.assert_called_once()
    layer.langfuse.create_score.assert_called_once()
    assert layer.langfuse.create_score.call_args.kwargs["value"] == 74.5
    span.end.assert_called_once()


async def test_every_llm_call_gets_a_span(make_context):
    content = json.dumps({"question": "So, how big is this market?", "thesis": "Strong team.", "reasoning": []})
    layer, _ = _layer(lambda request: _completion(content))
    layer.langfuse = MagicMock()
    span = layer.langfuse.start_span.return_value
    context = make_context(with_rag=True)

    await layer.polish_question("How big is the market?", context)
    await layer.closing_remarks(context)
    await layer.write_investment_thesis(context, _score())

    names = [call.kwargs["name"] for call in layer.langfuse.start_span.call_args_list]
    assert names == ["question_polish_llm", "closing_remarks_llm", "investment_thesis", "investment_thesis_llm"]
    assert all(
        call.kwargs["metadata"]["session_id"] == context.session.id
        for call in layer.langfuse.start_span.call_args_list
    )
    assert span.end.call_count == 4


async def test_failed_llm_call_closes_its_span_with_the_error(make_context):
    layer, _ = _layer(lambda request: httpx.Response(500))
    layer.langfuse = MagicMock()
    span = layer.langfuse.start_span.return_value

    await layer.closing_remarks(make_context())

    span.update.assert_called_once()
    assert span.update.call_args.kwargs["output"]["error_code"] == "LLM_ERROR"
    span.end.assert_called_once()


def test_tracing_is_a_no_op_without_langfuse():
    layer = AIReasoningLayer(settings=_settings(databricks_host="", databricks_token=""))

    layer.start_interview_trace("s-1", "Acme")
    layer.end_interview_trace("s-1", status="completed", caliber=50)
    layer.score_caliber("s-1", 50)
