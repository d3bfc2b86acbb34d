"""
LLM Provider Adapters
======================

All providers implement ``infer(model, body) -> response`` over the
Gemini request/response shape, so the pipelines can swap in another
provider (or a test double) without changes.
"""

from .base import BaseLLMProvider, extract_text, user_prompt_body
from .gemini import GeminiProvider

__all__ = ["BaseLLMProvider", "GeminiProvider", "extract_text", "user_prompt_body"]
