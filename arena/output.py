"""Rich console output plus markdown/JSON reports for finished debates."""

import dataclasses
import json
import logging
import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from arena.models import DebateCostBreakdown, DebateRound, DebateRunResult, Role

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_WINNER_LABELS = {"pro": "Pro wins", "con": "Con wins", "tie": "Tie"}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _preview(content: str, words: int = 50) -> str:
    """Return first N words of an argument."""
    all_words = content.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview or "[dim](no response)[/dim]"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(_jsonable(k)): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def result_to_dict(result: DebateRunResult) -> dict[str, Any]:
    """The reporting bundle as plain JSON-compatible data."""
    return {
        "debate": _jsonable(dataclasses.asdict(result.debate)),
        "payments": [_jsonable(dataclasses.asdict(p)) for p in result.payments],
        "events": [_jsonable(dataclasses.asdict(e)) for e in result.events],
        "costBreakdown": _jsonable(dataclasses.asdict(result.cost_breakdown)),
        "contributions": [_jsonable(dataclasses.asdict(c)) for c in result.state.contributions],
    }


def print_cost_breakdown(breakdown: DebateCostBreakdown, asset: str = "USDC") -> None:
    table = Table(title=f"Cost estimate ({breakdown.round_count} rounds)", show_edge=False)
    table.add_column("Agent")
    table.add_column("Item", style="dim")
    table.add_column(f"Amount ({asset})", justify="right")
    for cost in breakdown.agent_costs:
        table.add_row(cost.agent_name, cost.label, str(cost.amount))
    table.add_row("Platform", f"{breakdown.platform_fee_percentage}% fee", str(breakdown.platform_fee))
    table.add_row("[bold]Total[/bold]", "", f"[bold]{breakdown.total_cost}[/bold]")
    console.print(table)


def print_round_summary(rnd: DebateRound) -> None:
    """Print both arguments, the fact-check and the score for one round."""
    console.print(Rule(f"[bold cyan]Round {rnd.number}[/bold cyan]"))
    console.print(Panel(_preview(rnd.pro_argument), title="[bold blue]Pro[/bold blue]", border_style="dim"))
    console.print(Panel(_preview(rnd.con_argument), title="[bold red]Con[/bold red]", border_style="dim"))
    claims = len(rnd.fact_check.claims)
    console.print(Text(f"Fact-check: {claims} claim(s) — {_preview(rnd.fact_check.overall_assessment, 30)}", style="dim"))
    console.print(
        Text(
            f"Score: pro {rnd.score.pro_score} / con {rnd.score.con_score}"
            + (" (judge asked for more rounds)" if rnd.score.needs_more_rounds else ""),
            style="bold",
        )
    )


def print_result(result: DebateRunResult, asset: str = "USDC") -> None:
    """Print the whole debate to the console using Rich."""
    debate = result.debate
    for rnd in debate.rounds:
        print_round_summary(rnd)

    console.print(Rule("[bold green]Verdict[/bold green]"))
    console.print(Text(f"{_WINNER_LABELS[debate.winner]} after {debate.total_rounds} round(s)", style="bold"))
    console.print(Markdown(debate.verdict or "_No verdict delivered._"))

    console.print(Rule("[bold green]Summary[/bold green]"))
    console.print(Markdown(debate.summary or "_No summary produced._"))

    failed = [c for c in result.state.contributions if not c.success]
    console.print(
        Text(
            f"Payments: {len(result.payments)} | Total: {result.cost_breakdown.total_cost} {asset}"
            + (f" | Failed steps: {len(failed)}" if failed else ""),
            style="dim",
        )
    )


def save_to_file(result: DebateRunResult, output_dir: Path, slug_override: str | None = None) -> Path:
    """Save the full debate transcript as a markdown file.

    Args:
        result: The completed DebateRunResult.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the topic. Useful for inbox mode.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    debate = result.debate
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(debate.topic)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    intro = next((c for c in result.state.contributions if c.role is Role.MODERATOR), None)
    breakdown = result.cost_breakdown

    lines: list[str] = [
        f"# Debate: {debate.topic[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Rounds:** {debate.total_rounds}",
        f"**Winner:** {_WINNER_LABELS[debate.winner]}",
        f"**Total cost:** {breakdown.total_cost} (platform fee {breakdown.platform_fee})",
        "",
        "---",
        "",
    ]

    if intro is not None:
        lines += ["## Introduction", "", intro.content, ""]

    for rnd in debate.rounds:
        lines += [
            f"## Round {rnd.number}",
            "",
            "### Pro",
            "",
            rnd.pro_argument,
            "",
            "### Con",
            "",
            rnd.con_argument,
            "",
            "### Fact-check",
            "",
        ]
        for claim in rnd.fact_check.claims:
            lines.append(f"- **{claim.verdict}** ({claim.source}): {claim.claim} — {claim.explanation}")
        lines += [
            "",
            rnd.fact_check.overall_assessment,
            "",
            f"**Score:** pro {rnd.score.pro_score} / con {rnd.score.con_score}",
            "",
            rnd.score.reasoning,
            "",
        ]

    lines += ["## Verdict", "", debate.verdict, "", "## Summary", "", debate.summary, ""]

    failed = [c for c in result.state.contributions if not c.success]
    if failed:
        lines += ["## Failed steps", ""]
        lines += [f"- {c.agent_name} (round {c.round}): {c.error}" for c in failed]
        lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Debate saved to: %s", filepath)
    return filepath


def save_report(result: DebateRunResult, output_dir: Path, slug_override: str | None = None) -> Path:
    """Write the machine-readable bundle (transcript, payments, events, costs) as JSON."""
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(result.debate.topic)
    filepath = output_dir / f"{timestamp}_{slug}.json"
    filepath.write_text(json.dumps(result_to_dict(result), indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Report saved to: %s", filepath)
    return filepath
