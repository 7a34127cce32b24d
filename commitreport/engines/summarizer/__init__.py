"""Summarizer engine — LLM text-in/text-out behind one interface."""

from commitreport.engines.summarizer.llm_client import LLMResponse, Summarizer
from commitreport.engines.summarizer.prompts import (
    build_executive_prompt,
    build_repository_prompt,
)

__all__ = [
    "LLMResponse",
    "Summarizer",
    "build_executive_prompt",
    "build_repository_prompt",
]
