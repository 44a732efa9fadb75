# CUI // SP-CTI
"""Tests for the HTTP AI providers (Anthropic, OpenAI, Google)."""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from unittest.mock import MagicMock, patch

import pytest
import requests

from idempiere_cli.config import AiConfig, CliConfig
from idempiere_cli.llm.anthropic_provider import AnthropicClient
from idempiere_cli.llm.gemini_provider import GeminiClient
from idempiere_cli.llm.openai_provider import OpenAIClient
from idempiere_cli.llm.provider import API_KEY_MISSING, MAX_TOKENS, TIMEOUT


def _client(cls, provider, **ai):
    config = CliConfig(ai=AiConfig(enabled=True, provider=provider, **ai))
    return cls(config_loader=lambda: config)


def _http(status, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = {}
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
class TestApiKeyResolution:
    """Keys come from ai.api_key_env or the provider's default variable."""

    @pytest.mark.parametrize("cls,provider", [
        (AnthropicClient, "anthropic"),
        (OpenAIClient, "openai"),
        (GeminiClient, "google"),
    ])
    @patch("idempiere_cli.llm.provider.requests.post")
    def test_missing_key_fails_without_network(self, mock_post, cls, provider):
        client = _client(cls, provider)
        assert client.is_configured() is False
        response = client.generate("hello")
        assert response.success is False
        assert response.error == API_KEY_MISSING
        mock_post.assert_not_called()

    def test_custom_env_var(self, monkeypatch):
        monkeypatch.setenv("MY_AI_KEY", "sk-custom")
        client = _client(AnthropicClient, "anthropic", api_key_env="MY_AI_KEY")
        assert client.is_configured() is True

    def test_blank_key_is_missing(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "   ")
        assert _client(OpenAIClient, "openai").is_configured() is False

    def test_key_read_on_every_call(self, monkeypatch):
        client = _client(AnthropicClient, "anthropic")
        assert client.is_configured() is False
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-late")
        assert client.is_configured() is True


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------
class TestAnthropicClient:

    @pytest.fixture(autouse=True)
    def _key(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_success(self, mock_post):
        mock_post.return_value = _http(200, {"content": [{"type": "text", "text": "hello"}]})
        response = _client(AnthropicClient, "anthropic").generate("Say hello")

        assert response.success is True
        assert response.content == "hello"
        kwargs = mock_post.call_args.kwargs
        assert kwargs["url"] == "https://api.anthropic.com/v1/messages"
        assert kwargs["headers"]["x-api-key"] == "sk-ant"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        assert kwargs["json"]["model"] == "claude-sonnet-4-20250514"
        assert kwargs["json"]["max_tokens"] == MAX_TOKENS
        assert kwargs["json"]["messages"] == [{"role": "user", "content": "Say hello"}]
        assert kwargs["timeout"] == TIMEOUT

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_configured_model(self, mock_post):
        mock_post.return_value = _http(200, {"content": [{"type": "text", "text": "x"}]})
        _client(AnthropicClient, "anthropic", model="claude-opus-4").generate("p")
        assert mock_post.call_args.kwargs["json"]["model"] == "claude-opus-4"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_non_text_block_is_parse_failure(self, mock_post):
        mock_post.return_value = _http(200, {"content": [{"type": "tool_use", "id": "x"}]})
        response = _client(AnthropicClient, "anthropic").generate("p")
        assert response.success is False
        assert response.error == "Failed to parse Anthropic response"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_non_string_text_is_parse_failure(self, mock_post):
        mock_post.return_value = _http(200, {"content": [{"type": "text", "text": 42}]})
        response = _client(AnthropicClient, "anthropic").generate("p")
        assert response.success is False
        assert response.error == "Failed to parse Anthropic response"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_invalid_json_body(self, mock_post):
        mock_post.return_value = _http(200, ValueError("not json"))
        response = _client(AnthropicClient, "anthropic").generate("p")
        assert response.error == "Failed to parse Anthropic response"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_client_error_status(self, mock_post):
        mock_post.return_value = _http(401, text='{"error":"invalid x-api-key"}')
        response = _client(AnthropicClient, "anthropic").generate("p")
        assert response.success is False
        assert response.error == 'Anthropic API error 401: {"error":"invalid x-api-key"}'
        assert mock_post.call_count == 1

    @patch("idempiere_cli.resilience.retry.time.sleep")
    @patch("idempiere_cli.llm.provider.requests.post")
    def test_overload_retried_then_reported(self, mock_post, mock_sleep):
        mock_post.return_value = _http(503, text="overloaded")
        response = _client(AnthropicClient, "anthropic").generate("p")
        assert mock_post.call_count == 3
        assert response.error == "Anthropic API error 503: overloaded"

    @patch("idempiere_cli.resilience.retry.time.sleep")
    @patch("idempiere_cli.llm.provider.requests.post")
    def test_rate_limit_then_success(self, mock_post, mock_sleep):
        mock_post.side_effect = [
            _http(429, text="slow down"),
            _http(200, {"content": [{"type": "text", "text": "done"}]}),
        ]
        response = _client(AnthropicClient, "anthropic").generate("p")
        assert response.success is True
        assert response.content == "done"
        mock_sleep.assert_called_once_with(1.0)

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_network_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("connection refused")
        response = _client(AnthropicClient, "anthropic").generate("p")
        assert response.success is False
        assert response.error.startswith("Network error:")
        assert mock_post.call_count == 1


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------
class TestOpenAIClient:

    @pytest.fixture(autouse=True)
    def _key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-oai")

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_success(self, mock_post):
        mock_post.return_value = _http(200, {"choices": [{"message": {"content": "hi"}}]})
        response = _client(OpenAIClient, "openai").generate("p")

        assert response.content == "hi"
        kwargs = mock_post.call_args.kwargs
        assert kwargs["url"] == "https://api.openai.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-oai"
        assert kwargs["json"]["model"] == "gpt-4o"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_empty_choices(self, mock_post):
        mock_post.return_value = _http(200, {"choices": []})
        response = _client(OpenAIClient, "openai").generate("p")
        assert response.error == "Failed to parse OpenAI response"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_null_content_is_parse_failure(self, mock_post):
        mock_post.return_value = _http(200, {"choices": [{"message": {"content": None}}]})
        response = _client(OpenAIClient, "openai").generate("p")
        assert response.error == "Failed to parse OpenAI response"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_error_status(self, mock_post):
        mock_post.return_value = _http(400, text="bad request")
        response = _client(OpenAIClient, "openai").generate("p")
        assert response.error == "OpenAI API error 400: bad request"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_validate_uses_probe_prompt(self, mock_post):
        mock_post.return_value = _http(200, {"choices": [{"message": {"content": "OK"}}]})
        response = _client(OpenAIClient, "openai").validate()
        assert response.success is True
        messages = mock_post.call_args.kwargs["json"]["messages"]
        assert messages == [{"role": "user", "content": "Reply with OK"}]


# ---------------------------------------------------------------------------
# Google
# ---------------------------------------------------------------------------
class TestGeminiClient:

    @pytest.fixture(autouse=True)
    def _key(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "g-key")

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_success(self, mock_post):
        mock_post.return_value = _http(200, {
            "candidates": [{"content": {"parts": [{"text": "bonjour"}]}}],
        })
        response = _client(GeminiClient, "google").generate("p")

        assert response.content == "bonjour"
        kwargs = mock_post.call_args.kwargs
        assert kwargs["url"].endswith("/v1beta/models/gemini-2.5-flash:generateContent")
        assert kwargs["params"] == {"key": "g-key"}
        assert "generationConfig" not in kwargs["json"]
        assert kwargs["json"]["contents"] == [{"parts": [{"text": "p"}]}]

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_no_candidates(self, mock_post):
        mock_post.return_value = _http(200, {"candidates": []})
        response = _client(GeminiClient, "google").generate("p")
        assert response.error == "Failed to parse Google AI response"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_validate_requests_single_token(self, mock_post):
        mock_post.return_value = _http(200, {"candidates": []})
        response = _client(GeminiClient, "google").validate()
        assert response.success is True
        body = mock_post.call_args.kwargs["json"]
        assert body["generationConfig"] == {"maxOutputTokens": 1}

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_validate_reports_api_message(self, mock_post):
        mock_post.return_value = _http(
            400, {"error": {"message": "API key not valid"}}, text="{...}")
        response = _client(GeminiClient, "google").validate()
        assert response.success is False
        assert response.error == "Google AI API error 400: API key not valid"

    @patch("idempiere_cli.llm.provider.requests.post")
    def test_validate_without_key(self, mock_post, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY")
        response = _client(GeminiClient, "google").validate()
        assert response.error == API_KEY_MISSING
        mock_post.assert_not_called()
