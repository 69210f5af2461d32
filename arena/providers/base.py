"""Provider interface plus the shared call path for SDK-backed providers."""

import asyncio
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Any

from config.config_loader import ModelConfig
from arena.models import ModelResponse

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Anything that can turn a prompt into a ModelResponse."""

    @abstractmethod
    def name(self) -> str:
        """Return the config name the provider was built for (e.g. 'judge')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: str | None = None) -> ModelResponse:
        """Generate a response for the given prompt.

        Args:
            prompt: The user prompt, context included.
            system_prompt: Role instructions, sent as the system message.

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or invalid response.
        """
        ...


class SDKProvider(AIProvider):
    """Vendor SDK provider: key lookup, timeout and error mapping live here.

    Subclasses build the client and perform one completion, returning
    (text, token_count). Any ProviderError they raise passes through as is;
    every other exception is wrapped.
    """

    vendor = "SDK"

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = self._make_client(api_key)

    @abstractmethod
    def _make_client(self, api_key: str) -> Any:
        ...

    @abstractmethod
    async def _complete(self, prompt: str, system_prompt: str | None) -> tuple[str, int | None]:
        ...

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def _fail(self, message: str) -> ProviderError:
        return ProviderError(self._config.name, message)

    async def generate(self, prompt: str, system_prompt: str | None = None) -> ModelResponse:
        start = time.monotonic()
        try:
            content, token_count = await asyncio.wait_for(
                self._complete(prompt, system_prompt), timeout=self._config.timeout_sec
            )
        except ProviderError:
            raise
        except TimeoutError as exc:
            raise self._fail(f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise self._fail(f"API call failed: {exc}") from exc

        latency = time.monotonic() - start
        logger.info("%s %s: %.2fs, %s tokens", self.vendor, self._config.name, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            content=content,
            latency_sec=latency,
            token_count=token_count,
        )
