"""Multi-provider LLM adapter supporting OpenAI, Anthropic, a generic endpoint and a mock."""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from typing import Any, Dict, Optional

import requests

from .config import LLM_ENDPOINT, LLM_MODEL, LLM_PROVIDER, LLM_RESPONSE_FIELD, OPENAI_ENDPOINT

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful AI assistant for code review and improvements."
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 4096


class LLMProvider:
    """Base class for LLM providers."""

    def generate(self, prompt: str) -> Optional[str]:
        """Generate a response from the LLM."""
        raise NotImplementedError


class OpenAIProvider(LLMProvider):
    """OpenAI API provider (also works with other OpenAI-compatible APIs)."""

    def __init__(self, model: str, api_key: str, endpoint: str = OPENAI_ENDPOINT):
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint

    def generate(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            logger.error("OpenAI API key not provided")
            return None

        payload = json.dumps({
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": DEFAULT_TEMPERATURE,
            "max_tokens": DEFAULT_MAX_TOKENS,
        }).encode("utf-8")

        req = urllib.request.Request(
            self.endpoint,
            data=payload,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=120) as resp:
                parsed = json.loads(resp.read().decode("utf-8"))
                return parsed["choices"][0]["message"]["content"]
        except (urllib.error.URLError, TimeoutError, json.JSONDecodeError, KeyError, IndexError) as exc:
            logger.error("OpenAI request failed: %s", exc)
            return None


class AnthropicProvider(LLMProvider):
    """Anthropic Claude API provider."""

    def __init__(self, model: str, api_key: str):
        self.model = model
        self.api_key = api_key
        self.endpoint = "https://api.anthropic.com/v1/messages"

    def generate(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            logger.error("Anthropic API key not provided")
            return None

        payload = json.dumps({
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": DEFAULT_MAX_TOKENS,
            "temperature": DEFAULT_TEMPERATURE,
        }).encode("utf-8")

        req = urllib.request.Request(
            self.endpoint,
            data=payload,
            headers={
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=120) as resp:
                parsed = json.loads(resp.read().decode("utf-8"))
                return parsed["content"][0]["text"]
        except (urllib.error.URLError, TimeoutError, json.JSONDecodeError, KeyError, IndexError) as exc:
            logger.error("Anthropic request failed: %s", exc)
            return None


class GenericProvider(LLMProvider):
    """POSTs ``{"prompt": ...}`` to a configured endpoint.

    The reply is read from *response_field* when set; otherwise the whole
    JSON body is handed on as text.
    """

    def __init__(
        self,
        endpoint: str,
        response_field: str = "",
        headers: Optional[Dict[str, str]] = None,
        request_params: Optional[Dict[str, Any]] = None,
    ):
        self.endpoint = endpoint
        self.response_field = response_field
        self.headers = headers or {}
        self.request_params = request_params or {}

    def generate(self, prompt: str) -> Optional[str]:
        if not self.endpoint:
            logger.error("LLM API endpoint not provided")
            return None

        try:
            response = requests.post(
                self.endpoint,
                headers={"Content-Type": "application/json", **self.headers},
                json={"prompt": prompt, **self.request_params},
                timeout=120,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("LLM request error: %s", exc)
            return None

        value = body.get(self.response_field) if self.response_field and isinstance(body, dict) else body
        if value is None:
            return None
        return value if isinstance(value, str) else json.dumps(value)


class MockProvider(LLMProvider):
    """Canned response for offline runs and tests."""

    RESPONSE = """Here are my suggestions.

```json
{
  "files": [
    {
      "path": "src/index.js",
      "changes": [
        {
          "type": "insert",
          "lineStart": 1,
          "lineEnd": 1,
          "original": "",
          "suggested": "'use strict';",
          "reason": "Enable strict mode for the entry module"
        }
      ]
    }
  ],
  "summary": "Enable strict mode in the entry module."
}
```
"""

    def generate(self, prompt: str) -> Optional[str]:
        logger.warning("Using mock LLM response")
        return self.RESPONSE


class LLMClient:
    """Selects a provider from configuration and generates raw text."""

    def __init__(
        self,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        response_field: Optional[str] = None,
        openai_endpoint: Optional[str] = None,
    ):
        """Initialize LLM with provider selection.

        Args:
            model: Model name (defaults to config)
            provider: "openai", "anthropic", "generic" or "mock" (defaults to config)
            api_key: API key for cloud providers (defaults to the provider's env var)
            endpoint: Endpoint for the generic provider
            response_field: JSON field holding the reply for the generic provider
            openai_endpoint: Chat completions URL for the openai provider
        """
        self.provider_name = (provider or LLM_PROVIDER).lower()
        self.model = model or LLM_MODEL
        self.api_key = api_key
        self.endpoint = endpoint or LLM_ENDPOINT
        self.response_field = response_field if response_field is not None else LLM_RESPONSE_FIELD
        self.openai_endpoint = openai_endpoint or OPENAI_ENDPOINT

        self.provider = self._create_provider()

    def _create_provider(self) -> LLMProvider:
        """Create the appropriate provider based on configuration."""
        if self.provider_name == "openai":
            api_key = self.api_key or os.environ.get("OPENAI_API_KEY", "")
            return OpenAIProvider(self.model, api_key, self.openai_endpoint)

        if self.provider_name == "anthropic":
            model = self.model if self.model != "gpt-4" else "claude-3-opus-20240229"
            return AnthropicProvider(model, self.api_key or os.environ.get("ANTHROPIC_API_KEY", ""))

        if self.provider_name == "mock":
            return MockProvider()

        return GenericProvider(self.endpoint, self.response_field)

    def generate(self, prompt: str) -> Optional[str]:
        logger.info("Sending prompt to %s@%s", self.provider_name, self.model)
        return self.provider.generate(prompt)
