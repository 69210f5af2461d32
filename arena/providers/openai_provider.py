"""OpenAI chat completions; also the base for OpenAI-compatible gateways."""

from openai import AsyncOpenAI

from arena.providers.base import SDKProvider


class OpenAIProvider(SDKProvider):
    """Honors base_url so any OpenAI-compatible endpoint works."""

    vendor = "OpenAI"

    def _make_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key, base_url=self._config.base_url)

    async def _complete(self, prompt: str, system_prompt: str | None) -> tuple[str, int | None]:
        messages = [{"role": "system", "content": system_prompt}] if system_prompt else []
        messages.append({"role": "user", "content": prompt})

        response = await self._client.chat.completions.create(
            model=self._config.model,
            messages=messages,
            max_tokens=self._config.max_tokens,
        )

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise self._fail("Empty response content")
        return choice.message.content, response.usage.total_tokens if response.usage else None
