"""Shared pytest fixtures."""

from collections.abc import Callable
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from unittest.mock import AsyncMock

import pytest

from config.config_loader import (
    AgentConfig,
    AppConfig,
    DefaultsConfig,
    InboxConfig,
    ModelConfig,
    PriceConfig,
    PricingConfig,
    PromptsConfig,
)
from arena.agents import AgentExecutor
from arena.debate import DebateEngine
from arena.models import AgentResult, ModelResponse, Role
from arena.pricing import CostEstimator
from arena.providers.base import AIProvider
from arena.scoring import TerminationPolicy

JUDGE_JSON = '{"proScore": 7, "conScore": 6, "reasoning": "Pro cited more evidence.", "needsMoreRounds": true}'
FACT_CHECK_JSON = (
    '{"claims": [{"claim": "GDP grew 3%", "source": "debater_pro", "verdict": "accurate",'
    ' "explanation": "Matches official data."}], "overallAssessment": "Mostly accurate."}'
)

_AGENT_NAMES = {
    Role.MODERATOR: "Moderator",
    Role.DEBATER_PRO: "Debater A",
    Role.DEBATER_CON: "Debater B",
    Role.FACT_CHECKER: "Fact Checker",
    Role.JUDGE: "Judge",
    Role.SUMMARIZER: "Summarizer",
}


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="judge",
        sdk="openrouter",
        model="openai/gpt-4o",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=800,
        base_url=None,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        system=MappingProxyType({role: f"You are the {role.value}." for role in Role}),
        steps=MappingProxyType({
            "moderator_intro": 'Introduce this debate topic: "{topic}"',
            "pro_opening": 'Opening FOR: "{topic}"',
            "pro_rebuttal": 'Round {round}: rebut FOR: "{topic}"',
            "con_opening": 'Opening AGAINST: "{topic}"',
            "con_rebuttal": 'Round {round}: rebut AGAINST: "{topic}"',
            "fact_check": "Fact-check round {round}.",
            "judge_score": "Score round {round}.",
            "judge_verdict": "Final verdict. Pro: {pro_total}, Con: {con_total}.",
            "summary": 'Summarize the debate on "{topic}".',
        }),
    )


@pytest.fixture
def sample_agents() -> MappingProxyType:
    return MappingProxyType({
        role: AgentConfig(role=role, name=name, address=f"0x{i:040x}")
        for i, (role, name) in enumerate(_AGENT_NAMES.items(), start=1)
    })


@pytest.fixture
def sample_pricing() -> PricingConfig:
    prices = {
        "moderator": PriceConfig(Decimal("0.01"), "Setup fee"),
        "debater_pro": PriceConfig(Decimal("0.02"), "Per round"),
        "debater_con": PriceConfig(Decimal("0.02"), "Per round"),
        "fact_checker": PriceConfig(Decimal("0.015"), "Per check"),
        "judge": PriceConfig(Decimal("0.015"), "Per scoring"),
        "judge_verdict": PriceConfig(Decimal("0.02"), "Final verdict"),
        "summarizer": PriceConfig(Decimal("0.02"), "Summary"),
    }
    return PricingConfig(
        prices=MappingProxyType(prices),
        platform_fee_percentage=Decimal("5"),
        platform_address="0xplatform",
        payer="user",
        asset="USDC",
    )


@pytest.fixture
def estimator(sample_pricing, sample_agents) -> CostEstimator:
    return CostEstimator(sample_pricing, {role: a.name for role, a in sample_agents.items()})


@pytest.fixture
def sample_app_config(tmp_path: Path, sample_prompts_config, sample_agents, sample_pricing) -> AppConfig:
    models = {
        role: ModelConfig(
            name=role.value,
            sdk="openrouter",
            model="openai/gpt-4o",
            api_key_env="TEST_API_KEY",
            timeout_sec=30,
            max_tokens=800,
        )
        for role in Role
    }
    return AppConfig(
        defaults=DefaultsConfig(max_rounds=3, output_dir=tmp_path / "output", min_rounds=2),
        models=MappingProxyType(models),
        agents=sample_agents,
        prompts=sample_prompts_config,
        pricing=sample_pricing,
        inbox=InboxConfig(dir=tmp_path / "inbox", archive_dir=tmp_path / "inbox" / "archive"),
        available_roles=frozenset(Role),
    )


Reply = str | AgentResult | Exception | Callable[[str, str | None], AgentResult]


class ScriptedExecutor(AgentExecutor):
    """Test double executor: canned replies per role, records every call."""

    def __init__(self, replies: dict[Role, Reply | list[Reply]] | None = None) -> None:
        self._replies: dict[Role, Reply | list[Reply]] = {
            Role.MODERATOR: "Welcome to the debate.",
            Role.DEBATER_PRO: "Pro argument.",
            Role.DEBATER_CON: "Con argument.",
            Role.FACT_CHECKER: FACT_CHECK_JSON,
            Role.JUDGE: JUDGE_JSON,
            Role.SUMMARIZER: "Both sides argued well.",
        }
        self._replies.update(replies or {})
        self.calls: list[tuple[Role, str, str | None]] = []

    async def invoke(self, role: Role, prompt: str, context: str | None = None) -> AgentResult:
        self.calls.append((role, prompt, context))
        reply = self._replies[role]
        if isinstance(reply, list):
            reply = reply.pop(0) if len(reply) > 1 else reply[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt, context)
        if isinstance(reply, AgentResult):
            return reply
        return AgentResult(content=reply, success=True)

    def calls_for(self, role: Role) -> list[tuple[Role, str, str | None]]:
        return [c for c in self.calls if c[0] is role]


def failed(error: str = "API call failed") -> AgentResult:
    return AgentResult(content="", success=False, error=error)


@pytest.fixture
def make_engine(sample_agents, sample_prompts_config, estimator) -> Callable[..., DebateEngine]:
    def _make(
        executor: AgentExecutor | None = None,
        max_rounds: int = 3,
        min_rounds: int = 1,
        early_stop: bool = False,
    ) -> DebateEngine:
        return DebateEngine(
            executor=executor or ScriptedExecutor(),
            agents=sample_agents,
            prompts=sample_prompts_config,
            estimator=estimator,
            policy=TerminationPolicy(max_rounds=max_rounds, min_rounds=min_rounds, early_stop=early_stop),
            clock=lambda: 1_700_000_000.0,
        )

    return _make


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=ModelResponse(
                provider=provider_name,
                model="mock-model",
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, prompt: str, system_prompt: str | None = None) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return ModelResponse(
            provider=self._name,
            model="mock-model",
            content=self._response_content,
            latency_sec=0.1,
            token_count=10,
        )


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()
