"""Fixed-price cost estimation and the pre-run balance gate."""

import logging
from collections.abc import Mapping
from decimal import Decimal

from config.config_loader import PricingConfig
from arena.models import AgentCost, DebateCostBreakdown, Role, STEP_PRICING_KEYS, Step

logger = logging.getLogger(__name__)

_QUANTUM = Decimal("0.0001")

# Billed once per debate, in breakdown order.
FIXED_STEPS = (Step.MODERATOR_INTRO, Step.JUDGE_VERDICT, Step.SUMMARY)
# Billed once per round.
ROUND_STEPS = (Step.DEBATER_PRO, Step.DEBATER_CON, Step.FACT_CHECK, Step.JUDGE_SCORE)

_DEFAULT_NAMES = {
    "moderator": "Moderator",
    "debater_pro": "Debater A",
    "debater_con": "Debater B",
    "fact_checker": "Fact Checker",
    "judge": "Judge",
    "judge_verdict": "Judge (Verdict)",
    "summarizer": "Summarizer",
}


def agent_names_by_key(names: Mapping[Role, str]) -> dict[str, str]:
    """Display names keyed by pricing key; the verdict gets its own label."""
    by_key = dict(_DEFAULT_NAMES)
    for role, name in names.items():
        by_key[role.value] = name
    if Role.JUDGE in names:
        by_key["judge_verdict"] = f"{names[Role.JUDGE]} (Verdict)"
    return by_key


class CostEstimator:
    """Prices debates from an injected, read-only pricing table."""

    def __init__(self, pricing: PricingConfig, agent_names: Mapping[Role, str] | None = None) -> None:
        self._pricing = pricing
        self._names = agent_names_by_key(agent_names or {})

    @property
    def pricing(self) -> PricingConfig:
        return self._pricing

    def price_for(self, step: Step) -> Decimal:
        return self._pricing.prices[STEP_PRICING_KEYS[step]].price

    def estimate(self, round_count: int) -> DebateCostBreakdown:
        """Cost of 1 moderator + N x (pro, con, fact-check, score) + verdict + summary, plus fee."""
        if round_count < 0:
            raise ValueError(f"round_count must be >= 0, got {round_count}")

        agent_costs: list[AgentCost] = []
        for step in FIXED_STEPS:
            key = STEP_PRICING_KEYS[step]
            entry = self._pricing.prices[key]
            agent_costs.append(AgentCost(key, self._names[key], entry.price, entry.label))

        for step in ROUND_STEPS:
            key = STEP_PRICING_KEYS[step]
            entry = self._pricing.prices[key]
            agent_costs.append(
                AgentCost(key, self._names[key], entry.price * round_count, f"{entry.label} × {round_count}")
            )

        total_agent_cost = sum((c.amount for c in agent_costs), Decimal(0))
        platform_fee = total_agent_cost * self._pricing.platform_fee_percentage / 100
        total_cost = total_agent_cost + platform_fee

        return DebateCostBreakdown(
            agent_costs=tuple(agent_costs),
            platform_fee=platform_fee.quantize(_QUANTUM),
            platform_fee_percentage=self._pricing.platform_fee_percentage,
            total_agent_cost=total_agent_cost.quantize(_QUANTUM),
            total_cost=total_cost.quantize(_QUANTUM),
            round_count=round_count,
        )

    def validate_balance(self, balance: Decimal | float | str, round_count: int) -> bool:
        required = self.estimate(round_count).total_cost
        ok = Decimal(str(balance)) >= required
        if not ok:
            logger.warning("Balance %s below estimated cost %s for %d rounds", balance, required, round_count)
        return ok
