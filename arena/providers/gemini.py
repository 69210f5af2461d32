"""Google Gemini through google-genai's async client."""

from google import genai
from google.genai import types as genai_types

from arena.providers.base import SDKProvider


class GeminiProvider(SDKProvider):
    """Role prompt is passed as system_instruction, not prepended to the user turn."""

    vendor = "Gemini"

    def _make_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    async def _complete(self, prompt: str, system_prompt: str | None) -> tuple[str, int | None]:
        response = await self._client.aio.models.generate_content(
            model=self._config.model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system_prompt,
                max_output_tokens=self._config.max_tokens,
            ),
        )
        if not response.text:
            raise self._fail("Empty response text")
        usage = response.usage_metadata
        return response.text, usage.total_token_count if usage else None
