"""Tests for LLM provider selection and the generic HTTP provider."""

import pytest
import requests

from vibecode_cli.config import OPENAI_ENDPOINT
from vibecode_cli.llm import (
    AnthropicProvider,
    GenericProvider,
    LLMClient,
    MockProvider,
    OpenAIProvider,
)
from vibecode_cli.suggestions import parse_suggestions


class _FakeResponse:
    def __init__(self, body, status=200):
        self._body = body
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._body


class TestProviderSelection:
    """Tests for LLMClient provider creation."""

    def test_mock(self):
        """Test the mock provider is selected by name."""
        assert isinstance(LLMClient(provider="mock").provider, MockProvider)

    def test_openai_uses_env_key(self, monkeypatch):
        """Test the OpenAI key falls back to the environment."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        client = LLMClient(provider="OpenAI", model="gpt-4o")

        assert isinstance(client.provider, OpenAIProvider)
        assert client.provider.api_key == "sk-test"
        assert client.provider.model == "gpt-4o"

    def test_openai_ignores_generic_endpoint(self):
        """Test the generic endpoint setting never redirects OpenAI requests."""
        client = LLMClient(provider="openai", api_key="k", endpoint="http://generic.local/api")
        assert client.provider.endpoint == OPENAI_ENDPOINT

    def test_openai_endpoint_override(self):
        """Test an OpenAI-compatible URL is configured separately."""
        client = LLMClient(provider="openai", api_key="k", openai_endpoint="http://proxy.local/v1/chat/completions")
        assert client.provider.endpoint == "http://proxy.local/v1/chat/completions"

    def test_anthropic_default_model(self):
        """Test the anthropic provider swaps the OpenAI default model."""
        client = LLMClient(provider="anthropic", model="gpt-4", api_key="k")
        assert isinstance(client.provider, AnthropicProvider)
        assert client.provider.model.startswith("claude")

    def test_unknown_falls_back_to_generic(self):
        """Test unknown provider names use the generic endpoint provider."""
        client = LLMClient(provider="custom", endpoint="http://localhost:9/api")
        assert isinstance(client.provider, GenericProvider)
        assert client.provider.endpoint == "http://localhost:9/api"


def test_missing_api_key_returns_none():
    """Test cloud providers without keys do not call out."""
    assert OpenAIProvider("gpt-4", "").generate("hi") is None
    assert AnthropicProvider("claude", "").generate("hi") is None


def test_mock_response_parses():
    """Test the canned mock response is a valid suggestion set."""
    suggestions = parse_suggestions(LLMClient(provider="mock").generate("anything"))
    assert [f.path for f in suggestions.files] == ["src/index.js"]
    assert suggestions.num_changes == 1


class TestGenericProvider:
    """Tests for the requests-based generic provider."""

    def test_no_endpoint(self):
        """Test a missing endpoint yields no response."""
        assert GenericProvider("").generate("hi") is None

    def test_response_field(self, monkeypatch):
        """Test the configured response field is extracted."""
        calls = {}

        def fake_post(url, headers=None, json=None, timeout=None):
            calls.update(url=url, json=json)
            return _FakeResponse({"output": "hello"})

        monkeypatch.setattr("vibecode_cli.llm.requests.post", fake_post)
        provider = GenericProvider("http://llm.local/generate", response_field="output")

        assert provider.generate("prompt text") == "hello"
        assert calls["json"]["prompt"] == "prompt text"

    def test_whole_body_without_field(self, monkeypatch):
        """Test the whole JSON body is returned as text when no field is set."""
        monkeypatch.setattr(
            "vibecode_cli.llm.requests.post",
            lambda *a, **kw: _FakeResponse({"files": [], "summary": "s"}),
        )
        text = GenericProvider("http://llm.local/generate").generate("p")
        assert parse_suggestions(text).summary == "s"

    @pytest.mark.parametrize("response", [
        _FakeResponse({}, status=500),
        _FakeResponse({"other": "x"}),
    ])
    def test_failures_return_none(self, monkeypatch, response):
        """Test HTTP errors and missing fields yield no response."""
        monkeypatch.setattr("vibecode_cli.llm.requests.post", lambda *a, **kw: response)
        assert GenericProvider("http://llm.local", response_field="output").generate("p") is None

    def test_connection_error(self, monkeypatch):
        """Test network failures are logged, not raised."""
        def boom(*args, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr("vibecode_cli.llm.requests.post", boom)
        assert GenericProvider("http://llm.local").generate("p") is None
