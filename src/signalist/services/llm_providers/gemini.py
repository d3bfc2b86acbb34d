"""
Google Gemini Provider
=======================

Adapter for the Google Gemini API used to write news summaries and welcome
intros.  Default model is ``gemini-2.5-flash-lite``.

API Documentation: https://ai.google.dev/gemini-api/docs
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional

from ...config import get_settings
from ...logging_utils import get_logger
from .base import BaseLLMProvider

log = get_logger("gemini_provider")


def _response_to_dict(response: Any) -> Dict[str, Any]:
    """Convert an SDK response object to the plain candidates mapping."""
    candidates: List[Dict[str, Any]] = []
    for cand in getattr(response, "candidates", None) or []:
        parts = []
        content = getattr(cand, "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            parts.append({"text": text} if isinstance(text, str) else {})
        candidates.append(
            {
                "content": {"role": getattr(content, "role", "model"), "parts": parts},
                "finish_reason": str(getattr(cand, "finish_reason", "")),
            }
        )
    out: Dict[str, Any] = {"candidates": candidates}
    usage = getattr(response, "usage_metadata", None)
    if usage is not None:
        out["usage_metadata"] = {
            "prompt_token_count": getattr(usage, "prompt_token_count", 0),
            "candidates_token_count": getattr(usage, "candidates_token_count", 0),
        }
    return out


class GeminiProvider(BaseLLMProvider):
    """Google Gemini API provider."""

    def __init__(self, config: Optional[dict] = None, api_key: Optional[str] = None):
        """Initialize Gemini provider."""
        super().__init__(config)
        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.default_model = self.config.get("model") or settings.gemini_model
        self.timeout = float(self.config.get("timeout", 30.0))
        self.temperature = self.config.get("temperature")

        if not self.api_key:
            log.warning("gemini_api_key_missing provider_disabled")

        log.info("gemini_provider_initialized has_key=%s", bool(self.api_key))

    async def infer(
        self, model: Optional[str], body: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """
        Execute a Gemini generate_content call.

        Uses the google-generativeai library; the blocking call runs in a
        worker thread so the event loop keeps serving other users.
        """
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY not set")

        model_name = model or self.default_model
        contents = list(body.get("contents") or [])

        try:
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)

            generation_config = {}
            if self.temperature is not None:
                generation_config["temperature"] = self.temperature
            model_instance = genai.GenerativeModel(
                model_name=model_name,
                generation_config=generation_config or None,
            )

            log.debug(
                "gemini_query_start model=%s contents=%d timeout=%.1fs",
                model_name,
                len(contents),
                self.timeout,
            )

            response = await asyncio.wait_for(
                asyncio.to_thread(model_instance.generate_content, contents),
                timeout=self.timeout,
            )

        except ImportError:
            log.error(
                "gemini_library_not_installed install_with: pip install google-generativeai"
            )
            raise ValueError("google-generativeai library not installed")

        except asyncio.TimeoutError:
            log.error("gemini_query_timeout model=%s timeout=%.1fs", model_name, self.timeout)
            raise TimeoutError(f"Gemini query timed out after {self.timeout}s")

        except Exception as e:
            log.error("gemini_query_failed model=%s err=%s", model_name, str(e), exc_info=True)
            raise

        result = _response_to_dict(response)
        usage = result.get("usage_metadata") or {}
        log.info(
            "gemini_query_success model=%s candidates=%d tokens_in=%s tokens_out=%s",
            model_name,
            len(result["candidates"]),
            usage.get("prompt_token_count", "?"),
            usage.get("candidates_token_count", "?"),
        )
        return result
