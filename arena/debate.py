"""Debate orchestration: the round controller.

Introduction -> (pro -> con -> fact-check -> judge score)* -> verdict -> summary.
Steps run strictly one at a time; every step after the introduction sees the
full transcript so far. Agent failures are recorded and the run moves on, so
a debate that passed its preconditions always reaches completion.
"""

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from config.config_loader import AgentConfig, AppConfig, PromptsConfig
from arena.agents import AgentExecutor
from arena.context import build_context
from arena.errors import InsufficientBalanceError, InvalidTopicError
from arena.events import EventStreamBuilder
from arena.models import (
    AgentResult,
    Contribution,
    DebateRound,
    DebateRunResult,
    DebateState,
    DebateStepEvent,
    DebateTranscript,
    Role,
    STEP_ROLES,
    Step,
)
from arena.parsing import default_fact_check, failed_round_score, parse_fact_check, parse_round_score
from arena.pricing import CostEstimator
from arena.scoring import TerminationPolicy, cumulative_scores, determine_winner

logger = logging.getLogger(__name__)

StepCallback = Callable[[DebateStepEvent], None]


def validate_topic(topic: object) -> bool:
    return isinstance(topic, str) and bool(topic.strip())


def _as_balance(balance: object) -> Decimal:
    """Unparseable balances come back as NaN, which the gate rejects."""
    try:
        return Decimal(str(balance))
    except InvalidOperation:
        return Decimal("NaN")


class DebateEngine:
    """Drives one debate per run() call. Holds only immutable configuration."""

    def __init__(
        self,
        executor: AgentExecutor,
        agents: Mapping[Role, AgentConfig],
        prompts: PromptsConfig,
        estimator: CostEstimator,
        policy: TerminationPolicy,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._executor = executor
        self._agents = agents
        self._prompts = prompts
        self._estimator = estimator
        self._policy = policy
        self._clock = clock

    @property
    def max_rounds(self) -> int:
        return self._policy.max_rounds

    def check_preconditions(self, topic: object, balance: Decimal | None = None) -> str:
        """Validate topic and, when given, the balance at max_rounds. Returns the stripped topic.

        Raises:
            InvalidTopicError: Topic is empty or not a string.
            InsufficientBalanceError: Balance below the pessimistic estimate, or not a finite number.
        """
        if not validate_topic(topic):
            raise InvalidTopicError(topic)
        if balance is not None:
            amount = _as_balance(balance)
            if not amount.is_finite() or not self._estimator.validate_balance(amount, self.max_rounds):
                raise InsufficientBalanceError(
                    balance=amount,
                    required=self._estimator.estimate(self.max_rounds).total_cost,
                    asset=self._estimator.pricing.asset,
                )
        return topic.strip()

    async def run(
        self,
        topic: str,
        on_step: StepCallback | None = None,
        balance: Decimal | None = None,
    ) -> DebateRunResult:
        """Run a full debate on the given topic.

        Args:
            topic: The debate topic; must be non-empty.
            on_step: Optional callback invoked when each step starts and completes.
            balance: When given, rejected up front if it cannot cover max_rounds.

        Returns:
            DebateRunResult with transcript, payments, events, the cost
            breakdown at the realized round count, and the final state.

        Raises:
            PreconditionError: Before any agent is invoked; never afterwards.
        """
        topic = self.check_preconditions(topic, balance)
        state = DebateState(topic=topic, max_rounds=self.max_rounds)
        stream = EventStreamBuilder(self._estimator.pricing, self._agents)
        run = _Run(state, stream, on_step)

        logger.info("Debate started: %r (up to %d rounds)", topic, self.max_rounds)

        await self._step(
            run, Step.MODERATOR_INTRO, 0, self._prompt("moderator_intro", topic=topic), with_context=False
        )

        rounds: list[DebateRound] = []
        while True:
            round_number = state.current_round + 1
            state.current_round = round_number
            stream.round_marker(round_number, self.max_rounds)
            logger.info("Starting round %d/%d", round_number, self.max_rounds)

            rounds.append(await self._run_round(run, round_number))
            score = state.scores[-1]
            logger.info(
                "Round %d complete: pro %d, con %d (needs more rounds: %s)",
                round_number, score.pro_score, score.con_score, score.needs_more_rounds,
            )
            if not self._policy.should_continue(round_number, score):
                break

        total_rounds = state.current_round
        state.current_round = 0

        pro_total, con_total = cumulative_scores(state.scores)
        verdict = await self._step(
            run, Step.JUDGE_VERDICT, 0, self._prompt("judge_verdict", pro_total=pro_total, con_total=con_total)
        )
        summary = await self._step(run, Step.SUMMARY, 0, self._prompt("summary", topic=topic))

        cost_breakdown = self._estimator.estimate(total_rounds)
        stream.bill_platform_fee(cost_breakdown.platform_fee)

        state.is_complete = True
        winner = determine_winner(state.scores)
        failed = sum(1 for c in state.contributions if not c.success)
        logger.info(
            "Debate complete: %d rounds, winner %s, total cost %s %s, %d failed steps",
            total_rounds, winner, cost_breakdown.total_cost, self._estimator.pricing.asset, failed,
        )

        transcript = DebateTranscript(
            topic=topic,
            rounds=rounds,
            verdict=verdict.content,
            summary=summary.content,
            winner=winner,
            total_rounds=total_rounds,
        )
        return DebateRunResult(
            debate=transcript,
            payments=stream.payments,
            events=stream.events,
            cost_breakdown=cost_breakdown,
            state=state,
        )

    async def _run_round(self, run: "_Run", round_number: int) -> DebateRound:
        topic = run.state.topic
        opening = round_number == 1

        pro = await self._step(
            run,
            Step.DEBATER_PRO,
            round_number,
            self._prompt("pro_opening" if opening else "pro_rebuttal", topic=topic, round=round_number),
        )
        con = await self._step(
            run,
            Step.DEBATER_CON,
            round_number,
            self._prompt("con_opening" if opening else "con_rebuttal", topic=topic, round=round_number),
        )
        fact_check = await self._step(
            run,
            Step.FACT_CHECK,
            round_number,
            self._prompt("fact_check", round=round_number),
            parse=_fact_check_fields,
        )
        judged = await self._step(
            run,
            Step.JUDGE_SCORE,
            round_number,
            self._prompt("judge_score", round=round_number),
            parse=_score_fields,
        )
        run.state.scores.append(judged.score)

        return DebateRound(
            number=round_number,
            pro_argument=pro.content,
            con_argument=con.content,
            fact_check=fact_check.fact_check,
            score=judged.score,
        )

    def _prompt(self, template: str, **values: object) -> str:
        return self._prompts.steps[template].format(**values)

    def _notify(self, run: "_Run", step: Step, round_number: int, status: str, success: bool = True) -> None:
        if run.on_step:
            agent_name = self._agents[STEP_ROLES[step]].name
            run.on_step(DebateStepEvent(step, round_number, agent_name, status, success))

    async def _invoke(self, role: Role, prompt: str, context: str | None) -> AgentResult:
        """Call the executor. Never raises — an escaped exception becomes a failed result."""
        try:
            return await self._executor.invoke(role, prompt, context)
        except Exception as exc:
            logger.warning("Agent %s raised instead of reporting failure: %s", role.value, exc)
            return AgentResult(content="", success=False, error=f"Unexpected error: {exc}")

    async def _step(
        self,
        run: "_Run",
        step: Step,
        round_number: int,
        prompt: str,
        with_context: bool = True,
        parse: Callable[[AgentResult], dict] | None = None,
    ) -> Contribution:
        """Start event -> invoke -> record contribution -> complete event -> bill."""
        role = STEP_ROLES[step]
        run.stream.step_started(step, round_number)
        self._notify(run, step, round_number, "started")

        context = build_context(run.state) if with_context else None
        result = await self._invoke(role, prompt, context)
        if not result.success:
            logger.warning("Step %s (round %d) failed: %s", step.value, round_number, result.error)

        contribution = Contribution(
            role=role,
            agent_name=self._agents[role].name,
            content=result.content,
            round=round_number,
            timestamp=self._clock(),
            success=result.success,
            error=result.error,
            **(parse(result) if parse else {}),
        )
        run.state.contributions.append(contribution)

        run.stream.step_completed(step, round_number, result.success, result.error)
        self._notify(run, step, round_number, "completed", result.success)
        run.stream.bill_step(step, round_number, result.success)
        return contribution


def _fact_check_fields(result: AgentResult) -> dict:
    if result.success:
        return {"fact_check": parse_fact_check(result.content)}
    return {"fact_check": default_fact_check(result.content)}


def _score_fields(result: AgentResult) -> dict:
    if result.success:
        return {"score": parse_round_score(result.content)}
    return {"score": failed_round_score()}


@dataclass
class _Run:
    """Per-run mutable pieces: one state, one event stream, one callback."""

    state: DebateState
    stream: EventStreamBuilder
    on_step: StepCallback | None = None


def build_estimator(config: AppConfig) -> CostEstimator:
    return CostEstimator(config.pricing, {role: a.name for role, a in config.agents.items()})


def build_engine(
    config: AppConfig,
    executor: AgentExecutor,
    max_rounds: int | None = None,
    early_stop: bool | None = None,
) -> DebateEngine:
    """Wire a DebateEngine from loaded settings. Explicit arguments override defaults."""
    defaults = config.defaults
    effective_max = max_rounds if max_rounds is not None else defaults.max_rounds
    policy = TerminationPolicy(
        max_rounds=effective_max,
        min_rounds=min(defaults.min_rounds, effective_max),
        early_stop=defaults.early_stop if early_stop is None else early_stop,
    )
    return DebateEngine(
        executor=executor,
        agents=config.agents,
        prompts=config.prompts,
        estimator=build_estimator(config),
        policy=policy,
    )


async def run_debate(
    topic: str,
    executor: AgentExecutor,
    config: AppConfig,
    max_rounds: int | None = None,
    on_step: StepCallback | None = None,
    balance: Decimal | None = None,
    early_stop: bool | None = None,
) -> DebateRunResult:
    """Build an engine from config and run one debate."""
    engine = build_engine(config, executor, max_rounds=max_rounds, early_stop=early_stop)
    return await engine.run(topic, on_step=on_step, balance=balance)
