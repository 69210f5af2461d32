"""Cumulative round scores, winner determination and the round termination rule."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from arena.models import RoundScore, Winner

logger = logging.getLogger(__name__)


def cumulative_scores(scores: Sequence[RoundScore]) -> tuple[int, int]:
    """Plain running sum of (pro, con) over every completed round."""
    return sum(s.pro_score for s in scores), sum(s.con_score for s in scores)


def determine_winner(scores: Sequence[RoundScore]) -> Winner:
    pro_total, con_total = cumulative_scores(scores)
    if pro_total > con_total:
        return "pro"
    if con_total > pro_total:
        return "con"
    return "tie"


@dataclass(frozen=True)
class TerminationPolicy:
    """Decides whether another round runs after a judge score.

    The max_rounds ceiling is authoritative. The judge's needs_more_rounds
    flag only ends the debate early when early_stop is on, and never before
    min_rounds rounds have completed.
    """

    max_rounds: int
    min_rounds: int = 1
    early_stop: bool = False

    def __post_init__(self) -> None:
        if self.max_rounds < 1:
            raise ValueError(f"max_rounds must be >= 1, got {self.max_rounds}")
        if self.min_rounds < 1:
            raise ValueError(f"min_rounds must be >= 1, got {self.min_rounds}")

    def should_continue(self, completed_rounds: int, latest: RoundScore) -> bool:
        if completed_rounds >= self.max_rounds:
            return False
        if self.early_stop and completed_rounds >= self.min_rounds and not latest.needs_more_rounds:
            logger.info(
                "Judge signalled no further rounds needed after round %d, stopping early",
                completed_rounds,
            )
            return False
        return True
