"""OpenRouter gateway: one key, vendor-prefixed model ids, OpenAI wire format."""

from openai import AsyncOpenAI

from arena.providers.openai_provider import OpenAIProvider

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(OpenAIProvider):
    """Routes ids like 'openai/gpt-4o' or 'anthropic/claude-3.5-sonnet' through OpenRouter."""

    vendor = "OpenRouter"

    def _make_client(self, api_key: str) -> AsyncOpenAI:
        if "/" not in self._config.model:
            raise self._fail(f"OpenRouter model ids are vendor-prefixed, got '{self._config.model}'")
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self._config.base_url or OPENROUTER_BASE_URL,
            default_headers={"X-Title": "Debate Arena"},
        )
