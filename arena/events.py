"""Ordered payment/activity stream mirroring the round controller's steps."""

import itertools
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from config.config_loader import AgentConfig, PricingConfig
from arena.models import (
    ActivityEvent,
    EventType,
    PaymentRecord,
    Role,
    STEP_PRICING_KEYS,
    STEP_ROLES,
    Step,
)
from arena.pricing import agent_names_by_key

PLATFORM_KEY = "platform"
PLATFORM_NAME = "Platform"


def _now_ms() -> int:
    return int(time.time() * 1000)


class EventStreamBuilder:
    """Append-only projection of controller steps into payments and events.

    Holds nothing but the emitted lists and an id counter. Every billable step
    yields exactly one PaymentRecord and one payment-type event, in order.
    """

    def __init__(
        self,
        pricing: PricingConfig,
        agents: Mapping[Role, AgentConfig],
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._pricing = pricing
        self._agents = agents
        self._names = agent_names_by_key({role: a.name for role, a in agents.items()})
        self._clock = clock
        self._counter = itertools.count()
        self.payments: list[PaymentRecord] = []
        self.events: list[ActivityEvent] = []

    def _next_id(self) -> str:
        return f"debate-{self._clock()}-{next(self._counter)}"

    def _emit(self, event_type: EventType, data: dict[str, Any]) -> ActivityEvent:
        event = ActivityEvent(id=self._next_id(), type=event_type, timestamp=self._clock(), data=data)
        self.events.append(event)
        return event

    def _agent_name(self, step: Step) -> str:
        return self._agents[STEP_ROLES[step]].name

    def step_started(self, step: Step, round_number: int) -> ActivityEvent:
        name = self._agent_name(step)
        return self._emit("step_start", {
            "stepId": f"{step.value}-r{round_number}",
            "step": step.value,
            "round": round_number,
            "agentName": name,
            "description": f"{name}: {step.value}",
        })

    def step_completed(
        self, step: Step, round_number: int, success: bool, error: str | None = None
    ) -> ActivityEvent:
        data: dict[str, Any] = {
            "stepId": f"{step.value}-r{round_number}",
            "step": step.value,
            "round": round_number,
            "agentName": self._agent_name(step),
            "success": success,
        }
        if error:
            data["error"] = error
        return self._emit("step_complete", data)

    def round_marker(self, round_number: int, max_rounds: int) -> ActivityEvent:
        return self._emit("round_marker", {"round": round_number, "maxRounds": max_rounds})

    def _pay(self, key: str, recipient: str, amount: Decimal) -> PaymentRecord:
        record = PaymentRecord(
            id=self._next_id(),
            sender=self._pricing.payer,
            recipient=recipient,
            amount=amount,
            timestamp=self._clock(),
            step=key,
        )
        self.payments.append(record)
        return record

    def bill_step(self, step: Step, round_number: int, success: bool) -> PaymentRecord:
        """Charge the fixed price for a finished step, failed or not."""
        key = STEP_PRICING_KEYS[step]
        amount = self._pricing.prices[key].price
        agent = self._agents[STEP_ROLES[step]]
        record = self._pay(key, agent.address, amount)
        self._emit("payment", {
            "paymentId": record.id,
            "from": self._pricing.payer,
            "to": self._names[key],
            "amount": str(amount),
            "asset": self._pricing.asset,
            "step": step.value,
            "round": round_number,
            "success": success,
        })
        return record

    def bill_platform_fee(self, amount: Decimal) -> PaymentRecord:
        record = self._pay(PLATFORM_KEY, self._pricing.platform_address, amount)
        self._emit("platform_fee", {
            "paymentId": record.id,
            "from": self._pricing.payer,
            "to": PLATFORM_NAME,
            "amount": str(amount),
            "asset": self._pricing.asset,
            "feePercentage": str(self._pricing.platform_fee_percentage),
            "success": True,
        })
        return record
