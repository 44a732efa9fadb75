# CUI // SP-CTI
"""Google Gemini generateContent provider.

The API key travels as the ``key`` query parameter rather than a header.
"""

import logging
from typing import Any, Dict, Optional

import requests

from idempiere_cli.llm.provider import AiResponse, HttpAiClient, API_KEY_MISSING
from idempiere_cli.llm.router import register_provider

logger = logging.getLogger("idempiere_cli.llm.gemini")

API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


@register_provider("google")
class GeminiClient(HttpAiClient):
    """Google provider (``ai.provider: google``)."""

    display_name = "Google AI"
    default_model = "gemini-2.5-flash"
    default_api_key_env = "GOOGLE_API_KEY"

    @property
    def provider_name(self) -> str:
        return "google"

    def build_request(self, prompt: str, api_key: str, model: str,
                      max_output_tokens: Optional[int] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if max_output_tokens is not None:
            body["generationConfig"] = {"maxOutputTokens": max_output_tokens}
        return {
            "url": API_URL.format(model=model),
            "params": {"key": api_key},
            "headers": {"Content-Type": "application/json"},
            "json": body,
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        candidates = data.get("candidates") or []
        if not candidates:
            return None
        parts = candidates[0]["content"].get("parts") or []
        if not parts:
            return None
        return parts[0].get("text")

    def validate(self) -> AiResponse:
        """Probe with a one-token completion and report the API's own error."""
        ai_config = self._ai_config()
        api_key = self._api_key(ai_config)
        if not api_key:
            return AiResponse.fail(API_KEY_MISSING)
        request = self.build_request("Reply with OK", api_key,
                                     self._model(ai_config), max_output_tokens=1)
        try:
            response = self.post(request)
        except requests.RequestException as exc:
            return AiResponse.fail(f"Network error: {exc}")

        if response.status_code == 200:
            return AiResponse.ok("OK")
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = response.text
        logger.warning("Google AI validation failed: HTTP %d", response.status_code)
        return AiResponse.fail(f"{self.display_name} API error {response.status_code}: {message}")
