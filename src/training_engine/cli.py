#!/usr/bin/env python3
"""
Training decision engine CLI.

Usage:
    training-engine nightly                  # Run the training load update for today
    training-engine nightly --date 2026-03-01
    training-engine load ATHLETE_ID --days 14
    training-engine digest                   # Athletes grouped by load zone
    training-engine threshold --trial 1200:240 --trial 3000:660 --recovery-hours 48
    training-engine serve                    # Start the API server
"""

import argparse
import logging
import sys
from datetime import date
from typing import List

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import get_settings
from .db.database import TrainingDatabase
from .exceptions import TrainingEngineError
from .metrics.load import LoadZone, describe_zone
from .metrics.threshold import TimeTrialObservation, estimate_threshold
from .services.load_monitor import LoadMonitorService
from .utils.log_sanitizer import install_log_sanitizer

console = Console()


def get_zone_color(zone: LoadZone) -> str:
    """Get rich color for a load zone."""
    colors = {
        LoadZone.DETRAINING: "blue",
        LoadZone.OPTIMAL: "green",
        LoadZone.CAUTION: "yellow",
        LoadZone.DANGER: "red",
        LoadZone.CRITICAL: "bold red",
    }
    return colors.get(zone, "white")


def parse_trial(value: str) -> TimeTrialObservation:
    """Parse DIST:SECONDS into a time trial."""
    try:
        distance, seconds = value.split(":", 1)
        return TimeTrialObservation(distance_m=float(distance), time_sec=float(seconds))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid trial '{value}'. Expected DISTANCE_M:SECONDS, e.g. 1200:240"
        )


def cmd_nightly(args, db: TrainingDatabase):
    """Run the nightly training load update."""
    service = LoadMonitorService(db)
    day = date.fromisoformat(args.date) if args.date else None
    result = service.run_nightly_update(day)

    table = Table(title="Training Load Update", box=box.ROUNDED)
    table.add_column("Processed", justify="right")
    table.add_column("Updated", justify="right", style="green")
    table.add_column("Errors", justify="right", style="red")
    table.add_row(str(result.processed), str(result.updated), str(result.errors))
    console.print(table)


def cmd_load(args, db: TrainingDatabase):
    """Show an athlete's load history."""
    service = LoadMonitorService(db)
    samples = service.get_history(args.athlete_id, days=args.days)

    if not samples:
        console.print(f"No training load data for athlete {args.athlete_id}.")
        return

    table = Table(title=f"Training Load - {args.athlete_id}", box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Load", justify="right")
    table.add_column("Acute", justify="right")
    table.add_column("Chronic", justify="right")
    table.add_column("Ratio", justify="right")
    table.add_column("Zone")

    for s in samples:
        color = get_zone_color(s.zone)
        table.add_row(
            s.date.isoformat(),
            f"{s.daily_load:.0f}",
            f"{s.acute_load:.1f}",
            f"{s.chronic_load:.1f}",
            f"{s.ratio:.2f}",
            f"[{color}]{s.zone.value}[/{color}]",
        )
    console.print(table)

    guidance = describe_zone(samples[0].zone)
    console.print(Panel(
        f"{guidance['description']}\n[bold]{guidance['action']}[/bold]",
        title=guidance["label"],
        box=box.ROUNDED,
    ))


def cmd_digest(args, db: TrainingDatabase):
    """Show athletes grouped by load zone."""
    digest = LoadMonitorService(db).build_risk_digest()

    table = Table(title=f"Risk Digest - {digest.date.isoformat()}", box=box.ROUNDED)
    table.add_column("Zone")
    table.add_column("Athletes", justify="right")
    for zone, samples in digest.by_zone.items():
        color = get_zone_color(zone)
        table.add_row(f"[{color}]{zone.value}[/{color}]", str(len(samples)))
    console.print(table)

    if digest.high_risk:
        console.print("[bold]High-risk athletes:[/bold]")
        for s in digest.high_risk:
            color = get_zone_color(s.zone)
            console.print(f"  {s.athlete_id}: ratio {s.ratio:.2f} [{color}]{s.zone.value}[/{color}]")
    else:
        console.print("[green]No athletes above the optimal range.[/green]")


def cmd_threshold(args, trials: List[TimeTrialObservation]):
    """Estimate threshold pace from time trials."""
    estimate = estimate_threshold(trials, args.recovery_hours)

    text = f"""
[cyan]Threshold velocity:[/cyan]  {estimate.threshold_velocity:.3f} m/s
[cyan]Threshold pace:[/cyan]      {estimate.threshold_pace}/km
[cyan]Capacity reserve:[/cyan]    {estimate.capacity_reserve_m:.0f} m
[cyan]R²:[/cyan]                  {estimate.r_squared:.3f} ({estimate.fit_quality.value})
[cyan]Confidence:[/cyan]          {estimate.confidence.value}
"""
    console.print(Panel(text, title="Threshold Estimate", box=box.ROUNDED))

    for warning in estimate.warnings:
        console.print(f"[yellow]! {warning}[/yellow]")
    for recommendation in estimate.recommendations:
        console.print(f"- {recommendation}")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "training_engine.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
    )


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Training decision engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db", type=str, help="Path to the SQLite database")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    nightly_p = subparsers.add_parser("nightly", help="Run the training load update")
    nightly_p.add_argument("--date", type=str, help="Day to compute (YYYY-MM-DD)")

    load_p = subparsers.add_parser("load", help="Show an athlete's load history")
    load_p.add_argument("athlete_id", type=str)
    load_p.add_argument("--days", "-d", type=int, default=14, help="Number of days to show")

    subparsers.add_parser("digest", help="Show athletes grouped by load zone")

    threshold_p = subparsers.add_parser("threshold", help="Estimate threshold pace from time trials")
    threshold_p.add_argument(
        "--trial", "-t",
        type=parse_trial,
        action="append",
        default=[],
        help="Time trial as DISTANCE_M:SECONDS (repeat for each trial)",
    )
    threshold_p.add_argument(
        "--recovery-hours",
        type=float,
        help="Hours of recovery between trials",
    )

    serve_p = subparsers.add_parser("serve", help="Start the API server")
    serve_p.add_argument("--host", type=str)
    serve_p.add_argument("--port", type=int)

    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)-8s %(message)s")
    install_log_sanitizer(extra_secrets=[settings.cron_secret])

    try:
        if args.command == "threshold":
            cmd_threshold(args, args.trial)
        elif args.command == "serve":
            cmd_serve(args)
        elif args.command in ("nightly", "load", "digest"):
            db = TrainingDatabase(args.db or str(settings.database_path))
            if args.command == "nightly":
                cmd_nightly(args, db)
            elif args.command == "load":
                cmd_load(args, db)
            else:
                cmd_digest(args, db)
        else:
            parser.print_help()
    except TrainingEngineError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
