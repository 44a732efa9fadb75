# CUI // SP-CTI
"""OpenAI Chat Completions provider."""

from typing import Any, Dict, Optional

from idempiere_cli.llm.provider import HttpAiClient
from idempiere_cli.llm.router import register_provider

API_URL = "https://api.openai.com/v1/chat/completions"


@register_provider("openai")
class OpenAIClient(HttpAiClient):
    """OpenAI provider (``ai.provider: openai``), Bearer token auth."""

    display_name = "OpenAI"
    default_model = "gpt-4o"
    default_api_key_env = "OPENAI_API_KEY"

    @property
    def provider_name(self) -> str:
        return "openai"

    def build_request(self, prompt: str, api_key: str, model: str) -> Dict[str, Any]:
        return {
            "url": API_URL,
            "headers": {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            "json": {
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
            },
        }

    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        choices = data.get("choices") or []
        if not choices:
            return None
        return choices[0]["message"].get("content")
