# CUI // SP-CTI
"""Direct Anthropic Messages API provider."""

import logging
from typing import Any, Dict, Optional

from idempiere_cli.llm.provider import MAX_TOKENS, HttpAiClient
from idempiere_cli.llm.router import register_provider

logger = logging.getLogger("idempiere_cli.llm.anthropic")

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"


@register_provider("anthropic")
class AnthropicClient(HttpAiClient):
    """Anthropic provider (``ai.provider: anthropic``).

    Credentials go in the ``x-api-key`` header; the completion is the first
    content block when it is a text block.
    """

    display_name = "Anthropic"
    default_model = "claude-sonnet-4-20250514"
    default_api_key_env = "ANTHROPIC_API_KEY"

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def build_request(self, prompt: str, api_key: str, model: str) -> Dict[str, Any]:
        return {
            "url": API_URL,
            "headers": {
                "x-api-key": api_key,
                "anthropic-version": API_VERSION,
                "content-type": "application/json",
            },
            "json": {
                "model": model,
                "max_tokens": MAX_TOKENS,
                "messages": [{"role": "user", "content": prompt}],
            },
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        content = data.get("content") or []
        if not content:
            return None
        first = content[0]
        if first.get("type") != "text":
            logger.debug("First content block is %r, not text", first.get("type"))
            return None
        return first.get("text")
