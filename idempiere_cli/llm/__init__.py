# CUI // SP-CTI
"""idempiere-cli AI Provider Abstraction Layer.

Uniform interface over HTTP text-generation providers (Anthropic, OpenAI,
Google) with config-driven selection.

Usage::

    from idempiere_cli.llm import get_client

    client = get_client()
    if client is not None:
        response = client.generate("Generate a callout ...")
        if response.success:
            print(response.content)
"""

from idempiere_cli.llm.provider import (
    AiClient,
    AiResponse,
    HttpAiClient,
)
from idempiere_cli.llm.router import get_client, register_provider

__all__ = [
    "AiClient",
    "AiResponse",
    "HttpAiClient",
    "get_client",
    "register_provider",
]
