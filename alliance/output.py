"""Rich console output and markdown file save for consensus results."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from alliance.models import ConsensusResult, DebateRound, ModelResponse, Query

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _response_preview(response: ModelResponse, words: int = 50) -> str:
    """Return first N words of a response."""
    all_words = response.content.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def print_round_summary(rnd: DebateRound) -> None:
    """Print a brief summary of one debate round to the console."""
    console.print(Rule(f"[bold cyan]Debate Round {rnd.number}[/bold cyan] (agreement {rnd.agreement:.2f})"))
    for resp in rnd.responses:
        console.print(
            Panel(
                _response_preview(resp),
                title=f"[bold]{resp.provider}[/bold] ({resp.model})",
                subtitle=f"confidence {resp.confidence:.2f} | {resp.latency_ms:.0f}ms",
                border_style="dim",
            )
        )
    console.print(Text(rnd.synthesis, style="dim italic"))


def print_result(result: ConsensusResult) -> None:
    """Print the final decision and its metadata."""
    if result.debate:
        for rnd in result.debate:
            print_round_summary(rnd)

    console.print(Rule("[bold green]Council Decision[/bold green]"))

    meta = result.metadata
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_row("Methodology", result.methodology)
    table.add_row("Confidence", f"{result.confidence:.2f}")
    table.add_row("Agreement", f"{result.agreement:.2f}")
    table.add_row("Debate rounds", str(meta.rounds) + (" (cancelled)" if meta.cancelled else ""))
    table.add_row("Participants", ", ".join(result.participants))
    table.add_row("Tokens", f"{meta.total_tokens} (all rounds: {meta.cumulative_tokens})")
    table.add_row("Cost", f"${meta.total_cost:.4f} (all rounds: ${meta.cumulative_cost:.4f})")
    table.add_row("Time", f"{meta.processing_time_ms / 1000:.1f}s")
    console.print(table)

    console.print(Markdown(result.decision))
    console.print(Text(result.reasoning, style="dim"))

    if result.dissenting:
        names = ", ".join(f"{r.provider} ({r.confidence:.2f})" for r in result.dissenting)
        console.print(f"[yellow]Dissenting:[/yellow] {names}")


def save_to_file(
    query: Query,
    result: ConsensusResult,
    output_dir: Path,
    slug_override: str | None = None,
) -> Path:
    """Save the result and debate trace as a markdown file.

    Args:
        query: The query that produced the result.
        result: The completed ConsensusResult.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the prompt text. Useful for inbox mode.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(query.prompt)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    meta = result.metadata
    lines: list[str] = [
        f"# Council Decision: {query.prompt[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Participants:** {', '.join(result.participants)}",
        f"**Methodology:** {result.methodology}",
        f"**Confidence:** {result.confidence:.2f}",
        f"**Agreement:** {result.agreement:.2f}",
        f"**Debate rounds:** {meta.rounds}" + (" (cancelled)" if meta.cancelled else ""),
        f"**Tokens:** {meta.total_tokens} (all rounds: {meta.cumulative_tokens})",
        f"**Cost:** ${meta.total_cost:.4f} (all rounds: ${meta.cumulative_cost:.4f})",
        f"**Duration:** {meta.processing_time_ms / 1000:.1f}s",
        f"**Source:** {query.metadata.get('source', 'cli')}",
        "",
        "---",
        "",
    ]

    if query.context:
        lines += ["## Context", "", query.context, ""]

    for rnd in result.debate or []:
        lines.append(f"## Debate Round {rnd.number} (agreement {rnd.agreement:.2f})")
        lines.append("")
        for resp in rnd.responses:
            lines.append(f"### {resp.provider.title()} ({resp.model})")
            lines.append("")
            lines.append(resp.content)
            lines.append("")
            lines.append(
                f"*Confidence: {resp.confidence:.2f} | Latency: {resp.latency_ms:.0f}ms"
                + (f" | Tokens: {resp.tokens.total}" if resp.tokens.total else "")
                + "*"
            )
            lines.append("")
        lines.append(f"*{rnd.synthesis}*")
        lines.append("")

    lines += [
        "## Decision",
        "",
        result.decision,
        "",
        "## Reasoning",
        "",
        result.reasoning,
        "",
    ]

    if result.dissenting:
        lines += ["## Dissenting", ""]
        for resp in result.dissenting:
            lines.append(f"- **{resp.provider}** ({resp.confidence:.2f}): {resp.reasoning}")
        lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Result saved to: %s", filepath)
    return filepath
