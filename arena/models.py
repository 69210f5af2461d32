"""Pure dataclasses and enums for the debate arena. No logic, no deps."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Literal


class Role(str, Enum):
    MODERATOR = "moderator"
    DEBATER_PRO = "debater_pro"
    DEBATER_CON = "debater_con"
    FACT_CHECKER = "fact_checker"
    JUDGE = "judge"
    SUMMARIZER = "summarizer"


class Step(str, Enum):
    MODERATOR_INTRO = "moderator_intro"
    DEBATER_PRO = "debater_pro"
    DEBATER_CON = "debater_con"
    FACT_CHECK = "fact_check"
    JUDGE_SCORE = "judge_score"
    JUDGE_VERDICT = "judge_verdict"
    SUMMARY = "summary"


# Which agent runs each step.
STEP_ROLES: dict[Step, Role] = {
    Step.MODERATOR_INTRO: Role.MODERATOR,
    Step.DEBATER_PRO: Role.DEBATER_PRO,
    Step.DEBATER_CON: Role.DEBATER_CON,
    Step.FACT_CHECK: Role.FACT_CHECKER,
    Step.JUDGE_SCORE: Role.JUDGE,
    Step.JUDGE_VERDICT: Role.JUDGE,
    Step.SUMMARY: Role.SUMMARIZER,
}

# Key into the pricing table. The verdict is priced apart from round scoring.
STEP_PRICING_KEYS: dict[Step, str] = {
    Step.MODERATOR_INTRO: "moderator",
    Step.DEBATER_PRO: "debater_pro",
    Step.DEBATER_CON: "debater_con",
    Step.FACT_CHECK: "fact_checker",
    Step.JUDGE_SCORE: "judge",
    Step.JUDGE_VERDICT: "judge_verdict",
    Step.SUMMARY: "summarizer",
}

ClaimSource = Literal["debater_pro", "debater_con"]
ClaimVerdict = Literal["accurate", "misleading", "false", "unverifiable"]
Winner = Literal["pro", "con", "tie"]
EventType = Literal["step_start", "step_complete", "round_marker", "payment", "platform_fee"]


@dataclass
class ModelResponse:
    provider: str          # config name of the role the provider serves
    model: str             # actual model string used
    content: str
    latency_sec: float
    token_count: int | None


@dataclass
class AgentResult:
    content: str
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class RoundScore:
    pro_score: int
    con_score: int
    reasoning: str
    needs_more_rounds: bool


@dataclass(frozen=True)
class ClaimVerification:
    claim: str
    source: ClaimSource
    verdict: ClaimVerdict
    explanation: str


@dataclass(frozen=True)
class FactCheckResult:
    claims: tuple[ClaimVerification, ...]
    overall_assessment: str


@dataclass(frozen=True)
class Contribution:
    role: Role
    agent_name: str
    content: str
    round: int                 # 0 for introduction, verdict and summary
    timestamp: float
    success: bool = True
    error: str | None = None
    score: RoundScore | None = None
    fact_check: FactCheckResult | None = None


@dataclass
class DebateState:
    topic: str
    max_rounds: int
    current_round: int = 0
    contributions: list[Contribution] = field(default_factory=list)
    scores: list[RoundScore] = field(default_factory=list)
    is_complete: bool = False


@dataclass
class DebateRound:
    number: int
    pro_argument: str
    con_argument: str
    fact_check: FactCheckResult
    score: RoundScore


@dataclass
class DebateTranscript:
    topic: str
    rounds: list[DebateRound]
    verdict: str
    summary: str
    winner: Winner
    total_rounds: int


@dataclass(frozen=True)
class AgentCost:
    pricing_key: str
    agent_name: str
    amount: Decimal
    label: str


@dataclass(frozen=True)
class DebateCostBreakdown:
    agent_costs: tuple[AgentCost, ...]
    platform_fee: Decimal
    platform_fee_percentage: Decimal
    total_agent_cost: Decimal
    total_cost: Decimal
    round_count: int


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    sender: str
    recipient: str
    amount: Decimal
    timestamp: int             # epoch milliseconds
    step: str                  # pricing key, or "platform" for the fee


@dataclass(frozen=True)
class ActivityEvent:
    id: str
    type: EventType
    timestamp: int
    data: dict[str, Any]


@dataclass(frozen=True)
class DebateStepEvent:
    step: Step
    round: int
    agent_name: str
    status: Literal["started", "completed"]
    success: bool = True


@dataclass
class DebateRunResult:
    debate: DebateTranscript
    payments: list[PaymentRecord]
    events: list[ActivityEvent]
    cost_breakdown: DebateCostBreakdown
    state: DebateState
