"""Click CLI: orchestrates config loading, provider selection, the consensus query, and output."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from config.config_loader import AppConfig, load_config
from alliance.debate import Council
from alliance.errors import AllianceError
from alliance.healthcheck import healthy_only, run_health_checks
from alliance.inbox import QueryFile, archive_file, ensure_dirs, parse_query_file, scan_inbox
from alliance.models import CollaborationMode, ConsensusResult, DebateRound, Query
from alliance.output import print_result, save_to_file
from alliance.providers.anthropic import AnthropicProvider
from alliance.providers.base import AIProvider
from alliance.providers.gemini import GeminiProvider
from alliance.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

# Keyed by the `sdk` field of each model in settings.yaml
PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "anthropic": AnthropicProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build all available providers. Returns dict keyed by name."""
    providers: dict[str, AIProvider] = {}
    for name in sorted(config.available_providers):
        model_cfg = config.models[name]
        provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_cls is None:
            logger.warning("Provider '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
            continue
        try:
            providers[name] = provider_cls(model_cfg, system_prompt=config.prompts.system)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _determine_panel(config: AppConfig, models_arg: str | None) -> list[str]:
    """Returns panel provider names. --models overrides the configured default panel."""
    if models_arg:
        return [m.strip() for m in models_arg.split(",") if m.strip()]
    return list(config.defaults.default_panel)


def _select_panel(
    all_providers: dict[str, AIProvider],
    panel_names: list[str],
) -> dict[str, AIProvider]:
    """Keep the panel members that are actually available, preserving panel order.

    An empty panel list means "everything available".
    """
    if not panel_names:
        return dict(all_providers)
    missing = [n for n in panel_names if n not in all_providers]
    if missing:
        logger.warning("Panel members unavailable, skipping: %s", ", ".join(missing))
    return {n: all_providers[n] for n in panel_names if n in all_providers}


def _check_and_filter_providers(all_providers: dict[str, AIProvider]) -> dict[str, AIProvider]:
    """Probe providers, show a status table, and confirm before dropping failures.

    Exits if nothing passes or the user declines to continue.
    """
    console.print("\n[bold]Checking providers...[/bold]")
    statuses = asyncio.run(run_health_checks(all_providers))

    table = Table(show_header=False, box=None, pad_edge=False)
    for name in sorted(statuses):
        status = statuses[name]
        if status.ok:
            table.add_row("[green]OK[/green]", name, f"[dim]{status.latency_ms:.0f}ms[/dim]")
        else:
            short_err = status.error.splitlines()[0][:120] if status.error else "unknown error"
            table.add_row("[red]FAIL[/red]", name, short_err)
    console.print(table)

    working = healthy_only(all_providers, statuses)
    if len(working) == len(all_providers):
        console.print()
        return working

    if not working:
        console.print("\n[bold red]Error:[/bold red] No providers passed the health check.")
        sys.exit(1)

    failed = sorted(set(all_providers) - set(working))
    console.print(f"\n[yellow]{len(failed)} provider(s) failed:[/yellow] {', '.join(failed)}")
    console.print(f"Working providers: {', '.join(sorted(working))}")

    if not click.confirm("Continue with working providers only?", default=True):
        sys.exit(0)

    console.print()
    return working


async def _run_single(
    query: Query,
    config: AppConfig,
    all_providers: dict[str, AIProvider],
    models_arg: str | None,
    mode: str,
    output_dir: Path | None,
    slug_override: str | None = None,
) -> ConsensusResult:
    """Run one consensus query, print it, and optionally save it."""
    panel = _select_panel(all_providers, _determine_panel(config, models_arg))
    if not panel:
        raise click.ClickException("No providers available for the requested panel. Check API keys in .env.")

    council = Council(
        panel,
        collaboration_mode=mode,
        voting_threshold=config.defaults.voting_threshold,
        max_debate_rounds=config.defaults.max_debate_rounds,
        timeout_ms=config.defaults.timeout_ms,
        prompts=config.prompts,
    )

    console.print(
        f"\n[bold cyan]Council[/bold cyan] {len(panel)} models, mode {council.collaboration_mode.value}, "
        f"consensus {'on' if query.require_consensus else 'off'}"
    )
    console.print(f"Panel: {', '.join(panel)}")
    console.print(f"Question: [italic]{query.prompt[:80]}{'...' if len(query.prompt) > 80 else ''}[/italic]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Collecting initial responses...", total=None)

        def on_round_complete(rnd: DebateRound) -> None:
            progress.print(
                f"[green]OK[/green] Debate round {rnd.number} complete "
                f"({len(rnd.responses)} responses, agreement {rnd.agreement:.2f})"
            )
            progress.update(task, description=f"Debate round {rnd.number + 1}...")

        result = await council.query(query, on_round_complete=on_round_complete)

    print_result(result)

    if output_dir is not None:
        saved_path = save_to_file(query, result, output_dir, slug_override=slug_override)
        console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return result


async def _run_inbox(
    config: AppConfig,
    all_providers: dict[str, AIProvider],
    inbox_dir: Path,
    archive_dir: Path,
    models_cli: str | None,
    mode_cli: str | None,
    require_consensus: bool,
    show_debate: bool,
    output_dir: Path | None,
) -> None:
    """Process all .md files in the inbox folder.

    Precedence for per-file settings: CLI flag > frontmatter > config default.
    """
    ensure_dirs(inbox_dir, archive_dir)
    files = scan_inbox(inbox_dir)

    if not files:
        click.echo("No files in inbox.")
        return

    for file_path in files:
        try:
            qf: QueryFile = parse_query_file(
                file_path,
                require_consensus=require_consensus,
                show_debate=show_debate,
            )
            await _run_single(
                query=qf.query,
                config=config,
                all_providers=all_providers,
                models_arg=models_cli if models_cli is not None else qf.models,
                mode=mode_cli or qf.mode or config.defaults.collaboration_mode,
                output_dir=output_dir,
                slug_override=file_path.stem,
            )
            archived = archive_file(file_path, archive_dir)
            click.echo(f"Processed: {file_path.name} (archived: {archived.name})")
        except (AllianceError, ValueError, click.ClickException) as exc:
            logger.error("Failed: %s -- %s", file_path.name, exc)
            archive_file(file_path, archive_dir, failed=True)


@click.command()
@click.argument("question", required=False)
@click.option("--file", "question_file", type=click.Path(exists=True, dir_okay=False),
              help="Read the query from a .md file (frontmatter may override settings)")
@click.option("--context", default=None, help="Extra context sent with the question")
@click.option("--rounds", default=None, type=click.IntRange(min=0), help="Max debate rounds (default: from config)")
@click.option("--threshold", default=None, type=click.FloatRange(0.0, 1.0),
              help="Agreement needed to stop debating (default: from config)")
@click.option("--mode", default=None, type=click.Choice([m.value for m in CollaborationMode]),
              help="Collaboration mode used for synthesis (default: from config)")
@click.option("--consensus/--no-consensus", "require_consensus", default=True,
              help="Debate toward consensus, or just take the most confident answer")
@click.option("--show-debate", is_flag=True, help="Include the per-round debate trace")
@click.option("--timeout-ms", default=None, type=click.IntRange(min=0), help="Per-call provider deadline")
@click.option("--models", default=None, help="Comma-separated provider list, overrides the default panel")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--no-save", is_flag=True, help="Do not write a markdown transcript")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--inbox", "use_inbox", is_flag=True, default=False, help="Process all .md files in inbox folder")
@click.option("--inbox-dir", "inbox_dir_override", default=None,
              help="Override inbox folder path (default: from config)")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    question: str | None,
    question_file: str | None,
    context: str | None,
    rounds: int | None,
    threshold: float | None,
    mode: str | None,
    require_consensus: bool,
    show_debate: bool,
    timeout_ms: int | None,
    models: str | None,
    output_path: str | None,
    no_save: bool,
    verbose: bool,
    use_inbox: bool,
    inbox_dir_override: str | None,
    skip_health_check: bool,
) -> None:
    """LLM Alliance -- multi-provider consensus through debate.

    \b
    Examples:
      alliance "Should we use REST or GraphQL?"
      alliance "Monorepo vs polyrepo?" --rounds 2 --threshold 0.8 --show-debate
      alliance "SQL or NoSQL?" --models openai,claude --mode debate_synthesis
      alliance "Quick fact check" --no-consensus
      alliance --file question.md
      alliance --inbox --inbox-dir ./my_queue
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except (FileNotFoundError, AllianceError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    effective_output = None if no_save else (Path(output_path) if output_path else config.defaults.output_dir)

    all_providers = _build_all_providers(config)
    if not all_providers:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)

    if not skip_health_check:
        all_providers = _check_and_filter_providers(all_providers)

    if use_inbox:
        inbox_dir = Path(inbox_dir_override) if inbox_dir_override else config.inbox.dir
        asyncio.run(
            _run_inbox(
                config=config,
                all_providers=all_providers,
                inbox_dir=inbox_dir,
                archive_dir=config.inbox.archive_dir,
                models_cli=models,
                mode_cli=mode,
                require_consensus=require_consensus,
                show_debate=show_debate,
                output_dir=effective_output,
            )
        )
        return

    file_models: str | None = None
    file_mode: str | None = None
    slug_override: str | None = None
    try:
        if question_file:
            qf = parse_query_file(
                Path(question_file),
                require_consensus=require_consensus,
                show_debate=show_debate,
            )
            base_query, file_models, file_mode = qf.query, qf.models, qf.mode
            slug_override = Path(question_file).stem
        elif question:
            base_query = Query(
                prompt=question,
                require_consensus=require_consensus,
                show_debate=show_debate,
                metadata={"source": "cli"},
            )
        else:
            console.print("[bold red]Error:[/bold red] Provide a QUESTION argument, --file, or --inbox.")
            sys.exit(1)

        # CLI flags win over frontmatter, which wins over config defaults.
        query = Query(
            prompt=base_query.prompt,
            context=context if context is not None else base_query.context,
            require_consensus=base_query.require_consensus,
            show_debate=base_query.show_debate,
            max_debate_rounds=rounds if rounds is not None else base_query.max_debate_rounds,
            voting_threshold=threshold if threshold is not None else base_query.voting_threshold,
            timeout_ms=timeout_ms if timeout_ms is not None else base_query.timeout_ms,
            metadata=base_query.metadata,
        )
    except ValueError as exc:
        console.print(f"[bold red]Invalid query:[/bold red] {exc}")
        sys.exit(1)

    try:
        asyncio.run(
            _run_single(
                query=query,
                config=config,
                all_providers=all_providers,
                models_arg=models if models is not None else file_models,
                mode=mode or file_mode or config.defaults.collaboration_mode,
                output_dir=effective_output,
                slug_override=slug_override,
            )
        )
    except AllianceError as exc:
        console.print(f"[bold red]Query failed:[/bold red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
