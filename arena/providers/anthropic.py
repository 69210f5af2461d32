"""Anthropic messages API. The role prompt goes in the top-level `system` field."""

import anthropic as anthropic_sdk

from arena.providers.base import SDKProvider


class AnthropicProvider(SDKProvider):
    vendor = "Anthropic"

    def _make_client(self, api_key: str) -> anthropic_sdk.AsyncAnthropic:
        return anthropic_sdk.AsyncAnthropic(api_key=api_key)

    async def _complete(self, prompt: str, system_prompt: str | None) -> tuple[str, int | None]:
        extra = {"system": system_prompt} if system_prompt else {}
        response = await self._client.messages.create(
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            messages=[{"role": "user", "content": prompt}],
            **extra,
        )

        text = [block.text for block in response.content or [] if block.type == "text"]
        if not text:
            raise self._fail("No text blocks in response")

        usage = response.usage
        return "\n".join(text), usage.input_tokens + usage.output_tokens if usage else None
