"""Command-line interface for Appraiser."""

import json
import sys
from datetime import date, datetime, timezone
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from appraiser.analysis.analyzer import Analyzer
from appraiser.benchmarks.aggregator import BenchmarkAggregator, week_start_for
from appraiser.category.detector import detect_category
from appraiser.database.db import get_db
from appraiser.database.repositories import BenchmarkRepository, WeeklyScorecardRepository
from appraiser.utils.helpers import format_percentage, format_price
from appraiser.utils.logger import setup_logger

console = Console()


def _week(week_start: Optional[str]) -> date:
    if week_start:
        return week_start_for(date.fromisoformat(week_start))
    return week_start_for(datetime.now(timezone.utc).date())


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """Appraiser - resale value consensus from multiple AI models and market data."""
    # stdout is reserved for command output
    setup_logger(log_level="DEBUG" if verbose else "WARNING", stream=sys.stderr)
    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")


@cli.command("init-db")
def init_db():
    """Create the database tables."""
    try:
        db = get_db()
        db.initialize_schema()
        console.print(f"[green]✓[/green] Database ready at {db.db_path}")
    except Exception as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)


@cli.command("detect-category")
@click.argument("name")
@click.option("--hint", default=None, help="Category hint")
def detect_category_cmd(name: str, hint: Optional[str]):
    """Detect the category of an item name.

    Args:
        name: Item name
    """
    try:
        detection = detect_category(name, category_hint=hint)

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Category", detection.category)
        table.add_row("Confidence", f"{detection.confidence:.2f}")
        table.add_row("Source", detection.source)
        table.add_row("Matched", ", ".join(detection.keywords) or "-")
        console.print(table)

    except Exception as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)


@cli.command("analyze")
@click.argument("name")
@click.option("--hint", default=None, help="Category hint")
@click.option("--context", "additional_context", default=None, help="Additional context")
@click.option("--image-description", default=None, help="Text description of the item photo")
@click.option("--timeout", type=float, default=None, help="Per-stage timeout in seconds")
@click.option("--json", "as_json", is_flag=True, help="Print the full outcome as JSON")
def analyze(
    name: str,
    hint: Optional[str],
    additional_context: Optional[str],
    image_description: Optional[str],
    timeout: Optional[float],
    as_json: bool,
):
    """Appraise an item.

    Args:
        name: Item name or description
    """
    try:
        if not as_json:
            console.print(f"[bold]Analyzing {name}...[/bold]")

        analyzer = Analyzer()
        outcome = analyzer.analyze_sync(
            name,
            image_description=image_description,
            category_hint=hint,
            additional_context=additional_context,
            timeout=timeout,
        )

        if as_json:
            click.echo(json.dumps(outcome.model_dump(mode="json"), indent=2))
            return

        consensus = outcome.consensus
        console.print("\n[bold cyan]Consensus[/bold cyan]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Item", consensus.item_name)
        table.add_row("Category", f"{outcome.category.category} ({outcome.category.source})")
        table.add_row("Estimated Value", format_price(consensus.estimated_value))
        decision_style = "green" if consensus.decision == "BUY" else "red"
        table.add_row("Decision", f"[{decision_style}]{consensus.decision}[/{decision_style}]")
        table.add_row("Confidence", f"{consensus.confidence}/100")
        table.add_row("Quality", consensus.quality.value)
        table.add_row("Market Confidence", format_percentage(outcome.evidence.market_confidence))
        table.add_row("Tiebreaker", "yes" if outcome.tiebreaker_used else "no")
        console.print(table)

        if outcome.votes:
            console.print("\n[bold cyan]Votes[/bold cyan]")
            votes_table = Table(show_header=True, header_style="bold magenta")
            votes_table.add_column("Provider", style="cyan")
            votes_table.add_column("Role", style="dim")
            votes_table.add_column("Value", style="white")
            votes_table.add_column("Decision", style="yellow")
            votes_table.add_column("Confidence", style="white")
            votes_table.add_column("Weight", style="white")
            for vote in outcome.votes:
                votes_table.add_row(
                    vote.provider_id,
                    vote.role.value,
                    format_price(vote.estimated_value),
                    vote.decision,
                    f"{vote.confidence:.2f}",
                    f"{vote.weight:.3f}",
                )
            console.print(votes_table)

        console.print(f"\n[bold]Evidence[/bold]\n{outcome.evidence.formatted}")
        console.print(f"\n[bold]Reasoning[/bold]\n{consensus.reasoning}")

        if not outcome.persisted:
            console.print("\n[yellow]⚠[/yellow] Analysis was not saved")

    except ValueError as e:
        console.print(f"[red]✗ Invalid input: {str(e)}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)


@cli.command("scorecard")
@click.option("--week-start", default=None, help="Any date in the week (YYYY-MM-DD)")
def scorecard(week_start: Optional[str]):
    """Build and save weekly provider scorecards."""
    try:
        week = _week(week_start)
        aggregator = BenchmarkAggregator(BenchmarkRepository().get_between)
        scorecards, _ = aggregator.rankings(week)

        if not scorecards:
            console.print(f"[yellow]No benchmark data for week of {week}[/yellow]")
            return

        weekly_repo = WeeklyScorecardRepository()
        for card in scorecards:
            weekly_repo.upsert(card)

        console.print(f"\n[bold cyan]Provider Scorecards - week of {week}[/bold cyan]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Rank", style="white")
        table.add_column("Provider", style="cyan")
        table.add_column("Votes", style="white")
        table.add_column("MAPE", style="white")
        table.add_column("Within 10%", style="white")
        table.add_column("Decisions", style="white")
        table.add_column("p50 / p95 ms", style="white")
        table.add_column("Score", style="green")

        for card in sorted(scorecards, key=lambda c: c.overall_rank or 0):
            table.add_row(
                str(card.overall_rank),
                card.provider_display_name,
                f"{card.successful_votes}/{card.total_votes}",
                f"{card.mean_absolute_percent_error:.1f}%",
                format_percentage(card.accuracy_rate_10),
                format_percentage(card.decision_accuracy),
                f"{card.p50_response_ms} / {card.p95_response_ms}",
                f"{card.composite_score:.1f}",
            )

        console.print(table)
        console.print(f"\n[green]✓[/green] Saved {len(scorecards)} scorecards")

    except Exception as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)


@cli.command("rankings")
@click.option("--week-start", default=None, help="Any date in the week (YYYY-MM-DD)")
def rankings(week_start: Optional[str]):
    """Show competitive provider rankings for a week."""
    try:
        week = _week(week_start)
        aggregator = BenchmarkAggregator(BenchmarkRepository().get_between)
        scorecards, ranking = aggregator.rankings(week)

        if not scorecards:
            console.print(f"[yellow]No benchmark data for week of {week}[/yellow]")
            return

        for title, entries, unit in (
            ("Overall", ranking.overall, ""),
            ("Price Accuracy (MAPE)", ranking.price_accuracy, "%"),
            ("Speed (avg ms)", ranking.speed, " ms"),
            ("Decision Accuracy", ranking.decision_accuracy, ""),
        ):
            console.print(f"\n[bold cyan]{title}[/bold cyan]")
            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("Rank", style="white")
            table.add_column("Provider", style="cyan")
            table.add_column("Score", style="white")
            table.add_column("Change", style="white")
            for entry in entries:
                delta = entry.delta_from_last_week
                if delta is None:
                    change = "[dim]new[/dim]"
                elif delta > 0:
                    change = f"[green]+{delta}[/green]"
                elif delta < 0:
                    change = f"[red]{delta}[/red]"
                else:
                    change = "0"
                table.add_row(
                    str(entry.rank),
                    entry.provider_display_name,
                    f"{entry.score:g}{unit}",
                    change,
                )
            console.print(table)

        if ranking.category_leaders:
            console.print("\n[bold cyan]Category Leaders (within 10%)[/bold cyan]")
            for category, entries in ranking.category_leaders.items():
                leaders = ", ".join(
                    f"{e.rank}. {e.provider_display_name} ({format_percentage(e.score)})"
                    for e in entries
                )
                console.print(f"  [cyan]{category}[/cyan]: {leaders}")

    except Exception as e:
        console.print(f"[red]✗ Error: {str(e)}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli()
