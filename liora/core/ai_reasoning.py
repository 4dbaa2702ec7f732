"""
AI Reasoning Layer for Liora

Handles the optional LLM-backed operations:
- Rewording queued questions in the investor's voice
- Drafting the investment thesis for the memo
- Closing remarks

Uses Gemini Pro for memo prose and Gemini Flash for conversational
rewording, both served through Databricks. Every operation has a
heuristic fallback so interviews run without an LLM configured.
Integrated with Langfuse for observability and tracing.
"""

import json
import logging
from typing import Any

import httpx
from langfuse import Langfuse

from liora.config.settings import Settings, get_settings
from liora.core.errors import AuthError, LioraError, LLMError, NetworkError, is_retryable_error
from liora.models.evaluation import InvestmentScore
from liora.models.interview import SharedContext
from liora.prompts.interviewer import InterviewerPrompts
from liora.prompts.memo import MemoPrompts

logger = logging.getLogger(__name__)


class AIReasoningLayer:
    """
    LLM reasoning via Databricks-served Gemini models.

    Model Selection:
    - Gemini Pro: investment thesis (deep reasoning)
    - Gemini Flash: question rewording, closing remarks (low latency)

    Observability:
    - One Langfuse span per interview, scores for caliber
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or get_settings()

        self.client = client
        if self.client is None and self.settings.llm_enabled:
            self.client = httpx.AsyncClient(
                base_url=self.settings.databricks_host.rstrip("/"),
                headers={
                    "Authorization": f"Bearer {self.settings.databricks_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.settings.llm_timeout_seconds,
            )

        # Prompt templates
        self.interviewer_prompts = InterviewerPrompts()
        self.memo_prompts = MemoPrompts()

        # Langfuse spans keyed by session id
        self._traces: dict[str, Any] = {}
        self.langfuse = None
        if self.settings.langfuse_enabled:
            if self.settings.langfuse_secret_key and self.settings.langfuse_public_key:
                try:
                    self.langfuse = Langfuse(
                        secret_key=self.settings.langfuse_secret_key,
                        public_key=self.settings.langfuse_public_key,
                        host=self.settings.langfuse_base_url,
                    )
                    logger.info("Langfuse initialized for LLM observability")
                except Exception as e:
                    logger.warning(f"Failed to initialize Langfuse: {e}")
            else:
                logger.info("Langfuse keys not configured, tracing disabled")

    @property
    def enabled(self) -> bool:
        """Whether LLM calls are made at all."""
        return self.client is not None

    async def close(self):
        """Close the HTTP client and flush Langfuse."""
        if self.client is not None:
            await self.client.aclose()
            self.client = None
        if self.langfuse:
            try:
                self.langfuse.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Langfuse: {e}")

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    def _extract_content(self, result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        content = result.get("choices", [{}])[0].get("message", {}).get("content", "")

        # Multi-part response
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content)

    def _parse_json(self, response: str) -> dict | None:
        """Pull the first JSON object out of a model response."""
        json_start = response.find("{")
        json_end = response.rfind("}") + 1
        if json_start < 0 or json_end <= json_start:
            return None
        try:
            data = json.loads(response[json_start:json_end])
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse LLM JSON: {e}")
            return None
        return data if isinstance(data, dict) else None

    async def _call_model(
        self,
        endpoint: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
        trace_name: str = "llm_call",
        session_id: str | None = None,
    ) -> str:
        """
        Send a single-turn chat request inside its own Langfuse span.

        Raises:
            LioraError: whatever the request raised, after the span is closed
        """
        span = self._start_span(trace_name, session_id, {
            "endpoint": endpoint,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        try:
            content = await self._send(endpoint, prompt, max_tokens, temperature)
        except LioraError as e:
            self._end_span(span, {"error": e.message, "error_code": e.code})
            raise

        self._end_span(span, {"response_length": len(content)})
        return content

    async def _send(self, endpoint: str, prompt: str, max_tokens: int, temperature: float) -> str:
        """
        Send a single-turn chat request, retrying transient failures.

        Raises:
            AuthError: when the gateway rejects the token
            NetworkError: when the gateway cannot be reached
            LLMError: on error statuses and empty responses
        """
        if self.client is None:
            raise LLMError("LLM gateway is not configured", retryable=False)

        payload = {
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        attempts = max(1, self.settings.agent_max_retries)
        for attempt in range(attempts):
            try:
                response = await self.client.post(endpoint, json=payload)
                response.raise_for_status()
                content = self._extract_content(response.json())
                if not content.strip():
                    raise LLMError("LLM returned an empty response", retryable=False)
                return content
            except httpx.HTTPStatusError as e:
                if e.response.status_code in (401, 403):
                    raise AuthError(f"LLM endpoint rejected credentials ({e.response.status_code})") from e
                error = LLMError(
                    f"LLM endpoint returned {e.response.status_code}",
                    retryable=e.response.status_code >= 500 or e.response.status_code == 429,
                )
            except httpx.TransportError as e:
                error = NetworkError(f"LLM endpoint unreachable: {e}")
            except httpx.HTTPError as e:
                error = LLMError(f"LLM request failed: {e}")
            except ValueError as e:
                raise LLMError(f"LLM returned invalid JSON: {e}", retryable=False) from e

            logger.warning(f"LLM call failed (attempt {attempt + 1}/{attempts}): {error}")
            if not is_retryable_error(error) or attempt == attempts - 1:
                raise error

        raise LLMError("LLM call failed")

    async def _call_gemini_pro(
        self,
        prompt: str,
        max_tokens: int = 1024,
        trace_name: str = "gemini_pro_call",
        session_id: str | None = None,
    ) -> str:
        """Call Gemini Pro for deep reasoning tasks."""
        return await self._call_model(
            self.settings.gemini_pro_endpoint, prompt, max_tokens, 0.7,
            trace_name=trace_name, session_id=session_id,
        )

    async def _call_gemini_flash(
        self,
        prompt: str,
        max_tokens: int = 256,
        trace_name: str = "gemini_flash_call",
        session_id: str | None = None,
    ) -> str:
        """Call Gemini Flash for fast, conversational responses."""
        return await self._call_model(
            self.settings.gemini_flash_endpoint, prompt, max_tokens, 0.8,
            trace_name=trace_name, session_id=session_id,
        )

    # =========================================================================
    # INTERVIEW OPERATIONS
    # =========================================================================

    async def polish_question(self, question: str, context: SharedContext) -> str:
        """
        Reword a question in the investor's voice.

        Returns the original text when polishing is disabled or fails.
        """
        if not self.enabled or not self.settings.polish_questions:
            return question

        prompt = self.interviewer_prompts.polish_question_prompt(question, context)
        try:
            response = await self._call_gemini_flash(
                prompt,
                trace_name="question_polish_llm",
                session_id=context.session.id,
            )
        except LioraError as e:
            logger.warning(f"Question polish failed, asking original wording: {e}")
            return question

        data = self._parse_json(response)
        polished = (data or {}).get("question") or ""
        if not isinstance(polished, str) or not polished.strip():
            return question
        return polished.strip()

    async def closing_remarks(self, context: SharedContext) -> str:
        fallback = (
            f"Thank you for walking me through {context.company_name}. "
            "We'll review our conversation and follow up with next steps."
        )
        if not self.enabled:
            return fallback

        try:
            response = await self._call_gemini_flash(
                self.interviewer_prompts.closing_remarks_prompt(context),
                trace_name="closing_remarks_llm",
                session_id=context.session.id,
            )
        except LioraError as e:
            logger.warning(f"Closing remarks failed: {e}")
            return fallback
        return response.strip() or fallback

    async def write_investment_thesis(
        self,
        context: SharedContext,
        score: InvestmentScore,
    ) -> tuple[str, list[str]] | None:
        """
        Draft the memo's investment thesis and supporting points.

        Returns None when the LLM is unavailable or answers unusably;
        the memo generator then uses its template.
        """
        if not self.enabled:
            return None

        session_id = context.session.id
        span = self._start_span("investment_thesis", session_id, {"score": score.overall})

        try:
            response = await self._call_gemini_pro(
                self.memo_prompts.investment_thesis_prompt(context, score),
                trace_name="investment_thesis_llm",
                session_id=session_id,
            )
        except LioraError as e:
            logger.warning(f"Investment thesis generation failed: {e}")
            self._end_span(span, {"fallback_used": True})
            return None

        data = self._parse_json(response)
        thesis = (data or {}).get("thesis")
        if not isinstance(thesis, str) or not thesis.strip():
            self._end_span(span, {"fallback_used": True})
            return None

        reasoning = [str(point) for point in (data.get("reasoning") or []) if point]
        self._end_span(span, {"thesis_length": len(thesis)})
        return thesis.strip(), reasoning

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================

    def start_interview_trace(self, session_id: str, company_name: str, metadata: dict | None = None) -> None:
        """Open the Langfuse span covering the whole interview."""
        span = self._start_span("interview", session_id, {"company": company_name, **(metadata or {})})
        if span is not None:
            self._traces[session_id] = span

    def end_interview_trace(self, session_id: str, status: str, caliber: float | None = None) -> None:
        span = self._traces.pop(session_id, None)
        if span is None:
            return

        if caliber is not None:
            self.score_caliber(session_id, caliber, comment=f"Final caliber ({status})")
        self._end_span(span, {"status": status, "caliber": caliber})

    def score_caliber(self, session_id: str, value: float, comment: str | None = None) -> None:
        if not self.langfuse:
            return
        try:
            span = self._traces.get(session_id)
            self.langfuse.create_score(
                name="founder_caliber",
                value=value,
                trace_id=span.trace_id if span is not None else None,
                comment=comment or f"Session: {session_id}",
            )
        except Exception as e:
            logger.warning(f"Langfuse score failed: {e}")

    def _start_span(self, name: str, session_id: str | None, metadata: dict) -> Any:
        if not self.langfuse:
            return None
        try:
            span = self.langfuse.start_span(name=name, metadata={"session_id": session_id, **metadata})
            if session_id:
                span.update_trace(session_id=session_id)
            return span
        except Exception as e:
            logger.warning(f"Langfuse span start failed: {e}")
            return None

    def _end_span(self, span: Any, output: dict) -> None:
        if span is None:
            return
        try:
            span.update(output=output)
            span.end()
        except Exception as e:
            logger.warning(f"Langfuse span end failed: {e}")
