# CUI // SP-CTI
"""Vendor-agnostic AI client base classes and data types.

Every provider reports its outcome through an ``AiResponse``. Expected
failures (missing key, HTTP errors, network faults, unexpected envelopes)
never raise past ``generate()``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from idempiere_cli.config import AiConfig, CliConfig, load_config
from idempiere_cli.resilience.retry import send_with_retry

logger = logging.getLogger("idempiere_cli.llm.provider")

CONNECT_TIMEOUT = 10     # seconds
READ_TIMEOUT = 60        # seconds
TIMEOUT = (CONNECT_TIMEOUT, READ_TIMEOUT)
MAX_TOKENS = 4096
VALIDATION_PROMPT = "Reply with OK"
API_KEY_MISSING = (
    "API key not configured. Set the environment variable specified in ai.api_key_env."
)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AiResponse:
    """Outcome of one provider call: content on success, error otherwise."""
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, content: str) -> "AiResponse":
        return cls(success=True, content=content)

    @classmethod
    def fail(cls, error: str) -> "AiResponse":
        return cls(success=False, error=error)


# ---------------------------------------------------------------------------
# Abstract base: AI client
# ---------------------------------------------------------------------------
class AiClient(ABC):
    """Abstract base class for AI text-generation providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider identifier used in ``ai.provider``."""

    @abstractmethod
    def is_configured(self) -> bool:
        """True when credentials for this provider are available."""

    @abstractmethod
    def generate(self, prompt: str) -> AiResponse:
        """Send a single-turn prompt and return the completion text."""

    def validate(self) -> AiResponse:
        """Minimal round-trip probe used by ``idempiere-cli-ai-check``."""
        return self.generate(VALIDATION_PROMPT)


# ---------------------------------------------------------------------------
# Shared HTTP implementation
# ---------------------------------------------------------------------------
class HttpAiClient(AiClient):
    """Base for providers that expose a single JSON POST endpoint.

    Subclasses declare their defaults and implement request construction
    and envelope extraction. Configuration is loaded through
    ``config_loader`` on every call, so edits to ``.idempiere-cli.yaml`` or
    the key environment variable take effect without restarting.
    """

    display_name = ""
    default_model = ""
    default_api_key_env = ""

    def __init__(self, config_loader: Optional[Callable[[], CliConfig]] = None):
        self._config_loader = config_loader or load_config

    def _ai_config(self) -> AiConfig:
        return self._config_loader().ai

    def _api_key(self, ai_config: AiConfig) -> Optional[str]:
        return ai_config.resolve_api_key(self.default_api_key_env)

    def _model(self, ai_config: AiConfig) -> str:
        return ai_config.resolve_model(self.default_model)

    def is_configured(self) -> bool:
        return self._api_key(self._ai_config()) is not None

    # -- subclass hooks -----------------------------------------------------

    @abstractmethod
    def build_request(self, prompt: str, api_key: str, model: str) -> Dict[str, Any]:
        """Return keyword arguments (url, headers, json, params) for requests.post."""

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        """Pull the completion text out of the decoded response envelope."""

    # -- call ---------------------------------------------------------------

    def post(self, request: Dict[str, Any]) -> requests.Response:
        """Issue one logical POST through the shared retry helper."""
        return send_with_retry(
            lambda: requests.post(timeout=TIMEOUT, **request)
        )

    def generate(self, prompt: str) -> AiResponse:
        ai_config = self._ai_config()
        api_key = self._api_key(ai_config)
        if not api_key:
            return AiResponse.fail(API_KEY_MISSING)
        model = self._model(ai_config)

        logger.debug("%s request: model=%s, prompt=%d chars",
                     self.provider_name, model, len(prompt))
        try:
            response = self.post(self.build_request(prompt, api_key, model))
        except requests.RequestException as exc:
            logger.warning("%s network error: %s", self.provider_name, exc)
            return AiResponse.fail(f"Network error: {exc}")

        return self.handle_response(response)

    def handle_response(self, response: requests.Response) -> AiResponse:
        if response.status_code != 200:
            logger.warning("%s returned HTTP %d", self.provider_name, response.status_code)
            return AiResponse.fail(
                f"{self.display_name} API error {response.status_code}: {response.text}"
            )
        try:
            text = self.extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            logger.warning("%s envelope not understood: %s", self.provider_name, exc)
            text = None
        if not isinstance(text, str):
            return AiResponse.fail(f"Failed to parse {self.display_name} response")
        return AiResponse.ok(text)
