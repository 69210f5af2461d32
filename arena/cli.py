"""Click CLI — orchestrates config loading, budget gate, debate run, and output."""

import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, load_config
from arena.agents import ProviderAgentExecutor, build_role_providers
from arena.debate import build_engine, build_estimator
from arena.errors import PreconditionError
from arena.healthcheck import failed_roles, run_health_checks
from arena.inbox import archive_file, ensure_dirs, load_topic, scan_inbox
from arena.models import DebateStepEvent, Role
from arena.output import print_cost_breakdown, print_result, save_report, save_to_file
from arena.providers.base import AIProvider

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _parse_balance(value: object) -> Decimal | None:
    """Parse a balance from CLI or frontmatter. None stays None."""
    if value is None:
        return None
    try:
        balance = Decimal(str(value))
    except InvalidOperation as exc:
        raise click.BadParameter(f"Balance is not a number: {value!r}") from exc
    if not balance.is_finite() or balance < 0:
        raise click.BadParameter(f"Balance must be a non-negative number, got {value!r}")
    return balance


def _check_and_filter_providers(providers: dict[Role, AIProvider]) -> dict[Role, AIProvider]:
    """Run health checks, print results, and ask user what to do on failures.

    Roles that fail are dropped; their steps will be recorded as failed
    contributions. Exits if the user declines to continue.
    """
    console.print("\n[bold]Checking agents...[/bold]")
    results = asyncio.run(run_health_checks(providers))

    for result in results:
        if result.ok:
            console.print(f"  [green]OK  [/green] {result.role.value} [dim]({result.latency_sec:.1f}s)[/dim]")
        else:
            console.print(f"  [red]FAIL[/red] {result.role.value}: {result.short_error}")

    failed = failed_roles(results)
    if not failed:
        console.print()
        return providers

    console.print(
        f"\n[yellow]{len(failed)} agent(s) failed:[/yellow] {', '.join(r.value for r in failed)}"
    )
    console.print("Their steps will be recorded as failures and still billed.")

    if not click.confirm("Continue anyway?", default=False):
        sys.exit(0)

    console.print()
    return {r: p for r, p in providers.items() if r not in failed}


async def _run_single(
    topic: str,
    source: str,
    config: AppConfig,
    executor: ProviderAgentExecutor,
    max_rounds: int,
    balance: Decimal | None,
    early_stop: bool,
    output_dir: Path,
    json_report: bool,
    slug_override: str | None = None,
) -> Path:
    """Run a single debate and return the saved transcript path.

    Raises:
        PreconditionError: Empty topic or balance below the max-rounds estimate.
    """
    engine = build_engine(config, executor, max_rounds=max_rounds, early_stop=early_stop)
    topic = engine.check_preconditions(topic, balance)
    asset = config.pricing.asset

    console.print(f"\n[bold cyan]Debate Arena[/bold cyan] — up to {max_rounds} rounds")
    console.print(f"Topic: [italic]{topic[:80]}{'...' if len(topic) > 80 else ''}[/italic]")
    console.print(f"Source: {source}")
    if balance is not None:
        console.print(f"Balance: {balance} {asset}\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Starting debate...", total=None)

        def on_step(event: DebateStepEvent) -> None:
            label = f"{event.agent_name}: {event.step.value}" + (f" (round {event.round})" if event.round else "")
            if event.status == "started":
                progress.update(task, description=label)
            elif event.success:
                progress.print(f"[green]OK[/green]   {label}")
            else:
                progress.print(f"[red]FAIL[/red] {label}")

        result = await engine.run(topic, on_step=on_step)

    print_result(result, asset=asset)

    saved_path = save_to_file(result, output_dir, slug_override=slug_override)
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    if json_report:
        report_path = save_report(result, output_dir, slug_override=slug_override)
        console.print(f"[dim]Report: {report_path}[/dim]")
    return saved_path


async def _run_inbox(
    config: AppConfig,
    executor: ProviderAgentExecutor,
    inbox_dir: Path,
    archive_dir: Path,
    max_rounds_cli: int | None,
    balance_cli: Decimal | None,
    early_stop_cli: bool,
    output_dir: Path,
    json_report: bool,
) -> None:
    """Process all .md topic files in the inbox folder.

    Precedence for per-file settings: CLI flag > frontmatter > config default.
    Files that fail validation or preconditions are archived with a FAILED_ prefix.
    """
    ensure_dirs(inbox_dir, archive_dir)
    files = scan_inbox(inbox_dir)

    if not files:
        click.echo("No files in inbox.")
        return

    for file_path in files:
        try:
            item = load_topic(file_path)
            balance = _parse_balance(item.balance) if balance_cli is None else balance_cli
        except (ValueError, click.BadParameter) as e:
            logger.error("Malformed frontmatter: %s -- %s", file_path.name, e)
            archive_file(file_path, archive_dir, failed=True)
            continue

        try:
            saved = await _run_single(
                topic=item.topic,
                source=str(file_path),
                config=config,
                executor=executor,
                max_rounds=max_rounds_cli or item.max_rounds or config.defaults.max_rounds,
                balance=balance if balance is not None else config.defaults.balance,
                early_stop=early_stop_cli or (
                    item.early_stop if item.early_stop is not None else config.defaults.early_stop
                ),
                output_dir=output_dir,
                json_report=json_report,
                slug_override=file_path.stem,
            )
        except PreconditionError as e:
            logger.error("Rejected: %s -- %s", file_path.name, e)
            archive_file(file_path, archive_dir, failed=True)
            continue

        archived = archive_file(file_path, archive_dir)
        click.echo(f"Processed: {file_path.name} -> {saved} (archived: {archived.name})")


@click.command()
@click.argument("topic", required=False)
@click.option("--file", "topic_file", type=click.Path(exists=True), help="Read topic from .md file")
@click.option("--max-rounds", default=None, type=click.IntRange(min=1),
              help="Round ceiling (default: from config)")
@click.option("--balance", default=None, help="Available budget; rejected if below the max-rounds estimate")
@click.option("--early-stop", is_flag=True, default=False,
              help="End after min_rounds once the judge says no more rounds are needed")
@click.option("--estimate", "estimate_only", is_flag=True, default=False,
              help="Print the worst-case cost breakdown and exit")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--json", "json_report", is_flag=True, default=False,
              help="Also write payments, events and costs as a JSON report")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--inbox", "use_inbox", is_flag=True, default=False,
              help="Process all .md topic files in inbox folder")
@click.option("--inbox-dir", "inbox_dir_override", default=None,
              help="Override inbox folder path (default: from config)")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    topic: str | None,
    topic_file: str | None,
    max_rounds: int | None,
    balance: str | None,
    early_stop: bool,
    estimate_only: bool,
    output_path: str | None,
    json_report: bool,
    verbose: bool,
    use_inbox: bool,
    inbox_dir_override: str | None,
    skip_health_check: bool,
) -> None:
    """Debate Arena -- scripted multi-agent debate with per-step billing.

    \b
    Examples:
      debate-arena "AI regulation" --max-rounds 1
      debate-arena "Remote work beats office work" --balance 0.5 --json
      debate-arena --estimate --max-rounds 3
      debate-arena --file topic.md --early-stop
      debate-arena --inbox
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except (FileNotFoundError, ValueError, KeyError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    effective_rounds = max_rounds if max_rounds is not None else config.defaults.max_rounds
    effective_output = Path(output_path) if output_path else config.defaults.output_dir
    effective_balance = _parse_balance(balance) if balance is not None else config.defaults.balance
    effective_early_stop = early_stop or config.defaults.early_stop

    if estimate_only:
        print_cost_breakdown(build_estimator(config).estimate(effective_rounds), config.pricing.asset)
        return

    providers = build_role_providers(config)

    if not providers:
        console.print("[bold red]Error:[/bold red] No agents available. Check API keys in .env.")
        sys.exit(1)

    missing = [r.value for r in Role if r not in providers]
    if missing:
        console.print(f"[yellow]No provider for:[/yellow] {', '.join(missing)} — those steps will fail.")

    if not skip_health_check:
        providers = _check_and_filter_providers(providers)

    executor = ProviderAgentExecutor(providers, config.prompts.system)

    if use_inbox:
        inbox_dir = Path(inbox_dir_override) if inbox_dir_override else config.inbox.dir
        asyncio.run(
            _run_inbox(
                config=config,
                executor=executor,
                inbox_dir=inbox_dir,
                archive_dir=config.inbox.archive_dir,
                max_rounds_cli=max_rounds,        # raw CLI value (None if not specified)
                balance_cli=_parse_balance(balance),
                early_stop_cli=early_stop,
                output_dir=effective_output,
                json_report=json_report,
            )
        )
        return

    if topic_file:
        try:
            topic_text = load_topic(Path(topic_file)).topic
        except ValueError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            sys.exit(1)
        topic_source = topic_file
    elif topic:
        topic_text = topic
        topic_source = "cli"
    else:
        console.print("[bold red]Error:[/bold red] Provide a TOPIC argument, --file, or --inbox.")
        sys.exit(1)

    try:
        asyncio.run(
            _run_single(
                topic=topic_text,
                source=topic_source,
                config=config,
                executor=executor,
                max_rounds=effective_rounds,
                balance=effective_balance,
                early_stop=effective_early_stop,
                output_dir=effective_output,
                json_report=json_report,
            )
        )
    except PreconditionError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
