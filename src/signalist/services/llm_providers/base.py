"""
Base LLM Provider Interface
============================

Abstract base class for text-generation providers used by the email
pipelines.  Providers take a Gemini-style request body and return a
Gemini-style response mapping:

    request  = {"contents": [{"role": "user", "parts": [{"text": "..."}]}]}
    response = {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Sequence


def user_prompt_body(prompt: str) -> Dict[str, Any]:
    """Wrap a single user prompt in the request body shape."""
    return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}


def extract_text(response: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Return the first candidate's first text part, or None if absent."""
    if not isinstance(response, Mapping):
        return None
    candidates = response.get("candidates")
    if not isinstance(candidates, Sequence) or not candidates:
        return None
    candidate = candidates[0]
    if not isinstance(candidate, Mapping):
        return None
    content = candidate.get("content")
    if not isinstance(content, Mapping):
        return None
    parts = content.get("parts")
    if not isinstance(parts, Sequence) or not parts:
        return None
    part = parts[0]
    if not isinstance(part, Mapping):
        return None
    text = part.get("text")
    return text if isinstance(text, str) and text else None


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    def __init__(self, config: Optional[dict] = None):
        """
        Initialize provider.

        Args:
            config: Provider options (model, timeout, ...)
        """
        self.config = config or {}

    @abstractmethod
    async def infer(self, model: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Run one generation request.

        Args:
            model: Model name
            body: Request body with a ``contents`` list

        Returns:
            Response mapping with a ``candidates`` list

        Raises:
            Exception: On API errors
        """
