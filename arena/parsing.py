"""Coerce freeform agent text into RoundScore / FactCheckResult.

Two stages: pull the outermost brace-delimited substring and validate its
shape, otherwise fall back to a deterministic default built from the raw text.
Nothing here raises on bad model output.
"""

import json
import logging
from typing import Any

from arena.models import ClaimVerification, FactCheckResult, RoundScore

logger = logging.getLogger(__name__)

_SCORE_RANGE = range(1, 11)
_VERDICTS = {"accurate", "misleading", "false", "unverifiable"}
_SOURCE_ALIASES = {
    "debater_pro": "debater_pro",
    "debater_con": "debater_con",
    "debater_a": "debater_pro",
    "debater_b": "debater_con",
    "pro": "debater_pro",
    "con": "debater_con",
}

JUDGE_FAILED_REASONING = "Judge failed to respond"


class _ShapeError(ValueError):
    pass


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the object between the first `{` and the last `}`, or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        parsed = json.loads(text[start:end + 1])
    # JSONDecodeError is a ValueError; oversized ints and deep nesting raise the others
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _score(raw: dict[str, Any], key: str) -> int:
    value = raw.get(key)
    # bool is an int subclass; true/false are not scores
    if isinstance(value, bool) or not isinstance(value, int) or value not in _SCORE_RANGE:
        raise _ShapeError(f"{key} must be an integer in [1, 10], got {value!r}")
    return value


def _string(raw: dict[str, Any], key: str, default: str | None = None) -> str:
    value = raw.get(key, default)
    if not isinstance(value, str):
        raise _ShapeError(f"{key} must be a string, got {value!r}")
    return value


def default_round_score(content: str) -> RoundScore:
    return RoundScore(pro_score=5, con_score=5, reasoning=content, needs_more_rounds=False)


def failed_round_score() -> RoundScore:
    return default_round_score(JUDGE_FAILED_REASONING)


def default_fact_check(content: str) -> FactCheckResult:
    return FactCheckResult(claims=(), overall_assessment=content)


def _round_score_from(raw: dict[str, Any]) -> RoundScore:
    needs_more = raw.get("needsMoreRounds", False)
    if not isinstance(needs_more, bool):
        raise _ShapeError(f"needsMoreRounds must be a boolean, got {needs_more!r}")
    return RoundScore(
        pro_score=_score(raw, "proScore"),
        con_score=_score(raw, "conScore"),
        reasoning=_string(raw, "reasoning", ""),
        needs_more_rounds=needs_more,
    )


def _claim_from(raw: Any) -> ClaimVerification:
    if not isinstance(raw, dict):
        raise _ShapeError(f"claim entry must be an object, got {raw!r}")
    source = _SOURCE_ALIASES.get(str(raw.get("source", "")).lower())
    if source is None:
        raise _ShapeError(f"unknown claim source {raw.get('source')!r}")
    verdict = str(raw.get("verdict", "")).lower()
    if verdict not in _VERDICTS:
        raise _ShapeError(f"unknown claim verdict {raw.get('verdict')!r}")
    return ClaimVerification(
        claim=_string(raw, "claim"),
        source=source,
        verdict=verdict,
        explanation=_string(raw, "explanation", ""),
    )


def _fact_check_from(raw: dict[str, Any]) -> FactCheckResult:
    claims = raw.get("claims", [])
    if not isinstance(claims, list):
        raise _ShapeError(f"claims must be a list, got {claims!r}")
    return FactCheckResult(
        claims=tuple(_claim_from(c) for c in claims),
        overall_assessment=_string(raw, "overallAssessment", ""),
    )


def parse_round_score(content: str) -> RoundScore:
    """Parse a judge response. Falls back to 5/5 with the raw text as reasoning."""
    raw = extract_json_object(content)
    if raw is not None:
        try:
            return _round_score_from(raw)
        except _ShapeError as exc:
            logger.debug("Judge output rejected: %s", exc)
    else:
        logger.debug("Judge output has no JSON object, using default score")
    return default_round_score(content)


def parse_fact_check(content: str) -> FactCheckResult:
    """Parse a fact-checker response. Falls back to no claims with the raw text as assessment."""
    raw = extract_json_object(content)
    if raw is not None:
        try:
            return _fact_check_from(raw)
        except _ShapeError as exc:
            logger.debug("Fact-check output rejected: %s", exc)
    else:
        logger.debug("Fact-check output has no JSON object, using default result")
    return default_fact_check(content)
