"""Thin async wrapper around litellm.acompletion()."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import litellm
import structlog

from commitreport.services import UpstreamError

log = structlog.get_logger("commitreport.engine.summarizer")

DEFAULT_MODEL = "deepseek/deepseek-chat"


@dataclass
class LLMResponse:
    """Standardised response from a single LLM call."""

    content: str = ""
    stop_reason: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0


class Summarizer:
    """Single prompt in, text out. No retries at this layer.

    Usage::

        summarizer = Summarizer(model="deepseek/deepseek-chat", api_key="...")
        text = await summarizer.complete("Summarize these commits: ...")
    """

    def __init__(self, model: str = DEFAULT_MODEL, api_key: str | None = None) -> None:
        self._model = model
        self._api_key = api_key

    @property
    def model(self) -> str:
        return self._model

    async def create(self, prompt: str) -> LLMResponse:
        """Send a one-message chat completion and return a standardised response.

        Raises :class:`UpstreamError` on transport errors, non-2xx responses
        or a response without choices.
        """
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key

        t0 = time.monotonic()
        try:
            raw = await litellm.acompletion(**kwargs)
        except Exception as exc:
            status = getattr(exc, "status_code", None)
            log.error("summarizer.failed", model=self._model, status=status, error=str(exc))
            raise UpstreamError(f"summarization request failed: {exc}", status=status) from exc
        latency_ms = int((time.monotonic() - t0) * 1000)

        if not raw.choices:
            raise UpstreamError("summarization response contained no choices")
        choice = raw.choices[0]
        usage = getattr(raw, "usage", None)

        response = LLMResponse(
            content=choice.message.content or "",
            stop_reason=choice.finish_reason or "",
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            latency_ms=latency_ms,
        )
        log.info(
            "summarizer.completed",
            model=self._model,
            latency_ms=latency_ms,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )
        return response

    async def complete(self, prompt: str) -> str:
        return (await self.create(prompt)).content
