"""Load settings.yaml into frozen dataclasses. Validates API keys and prices at startup."""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from arena.models import Role, STEP_PRICING_KEYS

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

_STEP_TEMPLATES = (
    "moderator_intro",
    "pro_opening",
    "pro_rebuttal",
    "con_opening",
    "con_rebuttal",
    "fact_check",
    "judge_score",
    "judge_verdict",
    "summary",
)

_TEMPLATE_SAMPLE = {"topic": "topic", "round": 1, "pro_total": 0, "con_total": 0}


@dataclass(frozen=True)
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass(frozen=True)
class AgentConfig:
    role: Role
    name: str
    description: str = ""
    address: str = ""


@dataclass(frozen=True)
class PromptsConfig:
    system: Mapping[Role, str]
    steps: Mapping[str, str]


@dataclass(frozen=True)
class PriceConfig:
    price: Decimal
    label: str


@dataclass(frozen=True)
class PricingConfig:
    prices: Mapping[str, PriceConfig]
    platform_fee_percentage: Decimal
    platform_address: str
    payer: str = "user"
    asset: str = "USDC"


@dataclass(frozen=True)
class DefaultsConfig:
    max_rounds: int
    output_dir: Path
    min_rounds: int = 1
    early_stop: bool = False
    balance: Decimal | None = None


@dataclass(frozen=True)
class InboxConfig:
    dir: Path
    archive_dir: Path


@dataclass(frozen=True)
class AppConfig:
    defaults: DefaultsConfig
    models: Mapping[Role, ModelConfig]
    agents: Mapping[Role, AgentConfig]
    prompts: PromptsConfig
    pricing: PricingConfig
    inbox: InboxConfig
    available_roles: frozenset[Role] = field(default_factory=frozenset)


def _decimal(value: object, what: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{what} is not a number: {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"{what} must be a non-negative number, got {value!r}")
    return amount


def _check_template(step_name: str, template: str) -> None:
    """Render with every allowed placeholder; literal braces must be doubled."""
    try:
        template.format(**_TEMPLATE_SAMPLE)
    except (KeyError, IndexError, AttributeError, ValueError) as exc:
        allowed = ", ".join(_TEMPLATE_SAMPLE)
        raise ValueError(
            f"prompts.steps.{step_name} has an invalid placeholder ({exc!r}); "
            f"allowed: {allowed}; write literal braces doubled"
        ) from exc


def _per_role(raw: dict, section: str) -> dict[Role, dict]:
    missing = [r.value for r in Role if r.value not in raw]
    if missing:
        raise ValueError(f"Section '{section}' is missing roles: {', '.join(missing)}")
    return {role: raw[role.value] for role in Role}


def load_pricing(raw: dict) -> PricingConfig:
    """Build the pricing table. Every billable pricing key must have a price."""
    prices_raw = raw["prices"]
    missing = sorted(set(STEP_PRICING_KEYS.values()) - set(prices_raw))
    if missing:
        raise ValueError(f"Pricing table is missing keys: {', '.join(missing)}")
    prices = {
        key: PriceConfig(
            price=_decimal(entry["price"], f"pricing.prices.{key}"),
            label=str(entry.get("label", key)),
        )
        for key, entry in prices_raw.items()
    }
    return PricingConfig(
        prices=MappingProxyType(prices),
        platform_fee_percentage=_decimal(raw["platform_fee_percentage"], "pricing.platform_fee_percentage"),
        platform_address=str(raw["platform_address"]),
        payer=str(raw.get("payer", "user")),
        asset=str(raw.get("asset", "USDC")),
    )


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError on a
    malformed pricing table, missing role entries, or a step template
    that cannot be rendered.
    Logs missing API keys but does not raise — callers check
    available_roles.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    balance_raw = defaults_raw.get("balance")
    defaults = DefaultsConfig(
        max_rounds=int(defaults_raw["max_rounds"]),
        output_dir=Path(defaults_raw["output_dir"]),
        min_rounds=int(defaults_raw.get("min_rounds", 1)),
        early_stop=bool(defaults_raw.get("early_stop", False)),
        balance=_decimal(balance_raw, "defaults.balance") if balance_raw is not None else None,
    )
    if defaults.max_rounds < 1:
        raise ValueError(f"defaults.max_rounds must be >= 1, got {defaults.max_rounds}")

    inbox_raw = raw.get("inbox", {})
    inbox = InboxConfig(
        dir=Path(inbox_raw.get("dir", "./inbox")),
        archive_dir=Path(inbox_raw.get("archive_dir", "./inbox/archive")),
    )

    prompts_raw = raw["prompts"]
    missing_steps = [s for s in _STEP_TEMPLATES if s not in prompts_raw["steps"]]
    if missing_steps:
        raise ValueError(f"prompts.steps is missing templates: {', '.join(missing_steps)}")
    for step_name in _STEP_TEMPLATES:
        _check_template(step_name, str(prompts_raw["steps"][step_name]))
    prompts = PromptsConfig(
        system=MappingProxyType(
            {role: str(text).strip() for role, text in _per_role(prompts_raw["system"], "prompts.system").items()}
        ),
        steps=MappingProxyType({k: str(v).strip() for k, v in prompts_raw["steps"].items()}),
    )

    agents = {
        role: AgentConfig(
            role=role,
            name=str(agent_raw["name"]),
            description=str(agent_raw.get("description", "")),
            address=str(agent_raw.get("address", "")),
        )
        for role, agent_raw in _per_role(raw["agents"], "agents").items()
    }

    models: dict[Role, ModelConfig] = {}
    available_roles: set[Role] = set()

    for role, model_raw in _per_role(raw["models"], "models").items():
        models[role] = ModelConfig(
            name=role.value,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
        )

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_roles.add(role)
            logger.info("Agent available: %s (%s)", role.value, model_raw["model"])
        else:
            logger.info(
                "Agent has no API key: %s — set %s in .env",
                role.value,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        models=MappingProxyType(models),
        agents=MappingProxyType(agents),
        prompts=prompts,
        pricing=load_pricing(raw["pricing"]),
        inbox=inbox,
        available_roles=frozenset(available_roles),
    )
