"""
Unit tests for the Anthropic, OpenAI and Ollama provider variants.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from inboxtriage.core.models import Tier
from inboxtriage.providers.anthropic_provider import AnthropicProvider
from inboxtriage.providers.base import (
    MalformedResponse,
    ProviderCallFailed,
    ProviderResponse,
    ProviderUnavailable,
)
from inboxtriage.providers.ollama_provider import OllamaProvider
from inboxtriage.providers.openai_provider import OpenAIProvider

VALID_ANSWER = '{"priority": "HIGH", "confidence": 88, "reasoning": "Client deadline today"}'


def json_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestOpenAIProvider:
    def setup_method(self):
        self.config = {"model": "gpt-4o-mini", "api_key": "test-key", "timeout": 5}

    def test_init_with_explicit_key(self, isolated_environment):
        provider = OpenAIProvider(self.config)

        assert provider.api_key == "test-key"
        isolated_environment.get_password.assert_not_called()

    def test_init_with_env_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        assert OpenAIProvider({}).api_key == "env-key"

    def test_init_with_keyring(self, isolated_environment):
        isolated_environment.get_password.return_value = "keyring-key"
        assert OpenAIProvider({}).api_key == "keyring-key"

    def test_missing_key_is_unavailable(self):
        with pytest.raises(ProviderUnavailable):
            OpenAIProvider({})

    def test_defaults(self):
        provider = OpenAIProvider({"api_key": "k"})

        assert provider.temperature == 0.1
        assert provider.max_tokens == 200
        assert provider.timeout == 10
        assert provider.get_name() == "openai"
        assert provider.is_local is False

    @patch("inboxtriage.providers.openai_provider.requests")
    def test_classify_success(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response(
            {"choices": [{"message": {"content": VALID_ANSWER}}]}
        )
        provider = OpenAIProvider(self.config)

        result = provider.classify(make_message(subject="Signature needed"))

        assert isinstance(result, ProviderResponse)
        assert result.tier == Tier.HIGH
        assert result.confidence == 88
        assert result.model == "openai:gpt-4o-mini"

        kwargs = mock_requests.post.call_args.kwargs
        assert kwargs["timeout"] == 5
        assert kwargs["json"]["temperature"] == 0.1
        assert kwargs["json"]["max_tokens"] == 200
        assert kwargs["json"]["response_format"] == {"type": "json_object"}
        assert "Signature needed" in kwargs["json"]["messages"][1]["content"]

    @patch("inboxtriage.providers.openai_provider.requests")
    def test_http_error(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response({}, status_code=500)
        provider = OpenAIProvider(self.config)

        with pytest.raises(ProviderCallFailed, match="500"):
            provider.classify(make_message())

    @patch("inboxtriage.providers.openai_provider.requests")
    def test_rate_limited(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response({}, status_code=429)

        with pytest.raises(ProviderCallFailed, match="rate limit"):
            OpenAIProvider(self.config).classify(make_message())

    @patch("inboxtriage.providers.openai_provider.requests")
    def test_timeout(self, mock_requests, make_message):
        mock_requests.post.side_effect = requests.exceptions.Timeout()

        with pytest.raises(ProviderCallFailed, match="timed out"):
            OpenAIProvider(self.config).classify(make_message())

    @patch("inboxtriage.providers.openai_provider.requests")
    def test_invalid_json_answer(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response(
            {"choices": [{"message": {"content": "Not valid JSON"}}]}
        )

        with pytest.raises(MalformedResponse):
            OpenAIProvider(self.config).classify(make_message())

    @patch("inboxtriage.providers.openai_provider.requests")
    def test_unexpected_envelope(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response({"error": "?"})

        with pytest.raises(MalformedResponse):
            OpenAIProvider(self.config).classify(make_message())


class TestAnthropicProvider:
    def setup_method(self):
        self.config = {"api_key": "test-anthropic-key"}

    def test_defaults(self):
        provider = AnthropicProvider(self.config)

        assert provider.model == "claude-3-haiku-20240307"
        assert provider.get_name() == "anthropic"

    def test_missing_key_is_unavailable(self):
        with pytest.raises(ProviderUnavailable):
            AnthropicProvider({})

    @patch("inboxtriage.providers.anthropic_provider.requests")
    def test_classify_success(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response(
            {"content": [{"type": "text", "text": VALID_ANSWER}]}
        )
        provider = AnthropicProvider(self.config)

        result = provider.classify(make_message())

        assert result.tier == Tier.HIGH
        assert result.reasoning == "Client deadline today"
        headers = mock_requests.post.call_args.kwargs["headers"]
        assert headers["x-api-key"] == "test-anthropic-key"

    @patch("inboxtriage.providers.anthropic_provider.requests")
    def test_answer_wrapped_in_prose(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response(
            {"content": [{"type": "text", "text": f"Here you go:\n{VALID_ANSWER}\nThanks"}]}
        )

        result = AnthropicProvider(self.config).classify(make_message())
        assert result.confidence == 88

    @patch("inboxtriage.providers.anthropic_provider.requests")
    def test_empty_content(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response({"content": []})

        with pytest.raises(MalformedResponse):
            AnthropicProvider(self.config).classify(make_message())

    @patch("inboxtriage.providers.anthropic_provider.requests")
    def test_connection_error(self, mock_requests, make_message):
        mock_requests.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ProviderCallFailed):
            AnthropicProvider(self.config).classify(make_message())

    @patch("inboxtriage.providers.base.requests")
    def test_health_check_invalid_key(self, mock_requests):
        mock_requests.get.return_value = json_response({}, status_code=401)
        assert AnthropicProvider(self.config).health_check() is False

    @patch("inboxtriage.providers.base.requests")
    def test_health_check_rate_limited_is_reachable(self, mock_requests):
        mock_requests.get.return_value = json_response({}, status_code=429)
        provider = AnthropicProvider(self.config)

        assert provider.health_check() is True
        url = mock_requests.get.call_args.args[0]
        assert url == "https://api.anthropic.com/v1/models"
        assert mock_requests.get.call_args.kwargs["headers"]["anthropic-version"] == "2023-06-01"


class TestOllamaProvider:
    def test_needs_no_key(self):
        provider = OllamaProvider({})

        assert provider.is_local is True
        assert provider.api_endpoint == "http://localhost:11434/api/generate"

    @patch("inboxtriage.providers.ollama_provider.requests")
    def test_classify_success(self, mock_requests, make_message):
        mock_requests.post.return_value = json_response({"response": VALID_ANSWER})

        result = OllamaProvider({"model": "mistral"}).classify(make_message())

        assert result.tier == Tier.HIGH
        assert result.model == "ollama:mistral"
        assert mock_requests.post.call_args.kwargs["json"]["format"] == "json"

    @patch("inboxtriage.providers.ollama_provider.requests")
    def test_health_check_running(self, mock_requests):
        mock_requests.get.return_value = json_response({"models": [{"name": "llama3:latest"}]})
        assert OllamaProvider({}).health_check() is True
