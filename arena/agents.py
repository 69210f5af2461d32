"""Agent execution: role -> provider + system prompt. Never raises on model failure."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping

from config.config_loader import AppConfig, ModelConfig
from arena.models import AgentResult, Role
from arena.providers.anthropic import AnthropicProvider
from arena.providers.base import AIProvider, ProviderError
from arena.providers.gemini import GeminiProvider
from arena.providers.openai_provider import OpenAIProvider
from arena.providers.openrouter import OpenRouterProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openrouter": OpenRouterProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


class AgentExecutor(ABC):
    """Black-box agent invocation consumed by the round controller."""

    @abstractmethod
    async def invoke(self, role: Role, prompt: str, context: str | None = None) -> AgentResult:
        """Run one agent step. Failures come back as AgentResult(success=False)."""
        ...


def build_prompt(prompt: str, context: str | None) -> str:
    if context:
        return f"Context from debate so far:\n{context}\n\n{prompt}"
    return prompt


def build_provider(config: ModelConfig) -> AIProvider:
    """Instantiate the provider class for a model config's sdk.

    Raises:
        ProviderError: Unknown sdk or missing API key.
    """
    provider_cls = PROVIDER_CLASSES.get(config.sdk)
    if provider_cls is None:
        raise ProviderError(config.name, f"Unknown sdk '{config.sdk}'")
    return provider_cls(config)


def build_role_providers(config: AppConfig) -> dict[Role, AIProvider]:
    """Build a provider per role that has an API key. Returns dict keyed by role."""
    providers: dict[Role, AIProvider] = {}
    for role in config.available_roles:
        try:
            providers[role] = build_provider(config.models[role])
        except ProviderError as exc:
            logger.warning("Failed to instantiate provider for '%s': %s", role.value, exc)
    return providers


class ProviderAgentExecutor(AgentExecutor):
    """Dispatches each role to its configured provider with the role's system prompt."""

    def __init__(self, providers: Mapping[Role, AIProvider], system_prompts: Mapping[Role, str]) -> None:
        self._providers = providers
        self._system_prompts = system_prompts

    async def invoke(self, role: Role, prompt: str, context: str | None = None) -> AgentResult:
        provider = self._providers.get(role)
        if provider is None:
            logger.warning("No provider available for %s", role.value)
            return AgentResult(content="", success=False, error=f"No provider available for {role.value}")

        try:
            response = await provider.generate(
                build_prompt(prompt, context),
                system_prompt=self._system_prompts.get(role),
            )
        except ProviderError as exc:
            logger.warning("Agent %s failed: %s", role.value, exc)
            return AgentResult(content="", success=False, error=str(exc))
        except Exception as exc:
            logger.warning("Agent %s unexpected failure: %s", role.value, exc)
            return AgentResult(content="", success=False, error=f"Unexpected error: {exc}")

        return AgentResult(content=response.content, success=True)
