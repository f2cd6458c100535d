"""
CLI interface for TokenLoyalty.

Provides a command-line shell around the loyalty accounting kernel.
"""

import logging
import sys
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from token_loyalty.cli.repl import HELP_TEXT, parse_line
from token_loyalty.config.loader import load_scenario
from token_loyalty.core.amounts import format_usd
from token_loyalty.core.errors import LoyaltyValidationError
from token_loyalty.core.ledger import EntryKind
from token_loyalty.core.session import CommandOutcome, Session
from token_loyalty.demo.walkthrough import run_demo
from token_loyalty.storage.export import DirectorySink, export_state

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging"
    )
):
    """TokenLoyalty demo CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)]
        )
    if ctx.invoked_subcommand is None:
        console.print("TokenLoyalty - Use --help to see available commands")


@app.command()
def programs():
    """List the seed loyalty programs."""
    _display_programs(Session())


@app.command()
def quote(
    amount: str = typer.Argument(..., help="Purchase amount in USD"),
    program: Optional[str] = typer.Option(
        None,
        "--program",
        "-p",
        help="Program id (defaults to the first seed program)"
    )
):
    """Preview the points a purchase would earn."""
    session = Session()
    try:
        result = session.quote(amount, program)
        selected = session.resolve_program(program)
    except LoyaltyValidationError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"\n[bold]{selected.name}[/bold] ({selected.token_symbol})")
    console.print(f"Purchase: {format_usd(result.purchase_amount)}")
    console.print(f"Earn value: {format_usd(result.earned_value)}")
    console.print(f"Points to issue: {result.earned_points}\n")


@app.command()
def demo(
    export_dir: Optional[str] = typer.Option(
        None,
        "--export-dir",
        "-o",
        help="Write the final state as JSON into this directory"
    )
):
    """Run the built-in walkthrough of the live prototype."""
    session = Session()
    outcomes = run_demo(session)
    _display_outcomes(outcomes)
    _display_summary(session)
    if export_dir:
        _export(session, export_dir)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def run(
    scenario: str = typer.Argument(..., help="Path to a scenario YAML file"),
    export_dir: Optional[str] = typer.Option(
        None,
        "--export-dir",
        "-o",
        help="Write the final state as JSON into this directory"
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        "-s",
        help="Exit with error code if any step is rejected"
    )
):
    """
    Replay a scripted session from a YAML scenario.

    Rejected steps are reported and skipped; they never change state.
    """
    try:
        script = load_scenario(scenario)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    session = Session()
    outcomes = [session.dispatch(command) for command in script.commands()]
    _display_outcomes(outcomes)
    _display_summary(session)
    if export_dir:
        _export(session, export_dir)

    if strict and any(not outcome.accepted for outcome in outcomes):
        sys.exit(EXIT_CODE_FAIL)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def play(
    export_dir: str = typer.Option(
        ".",
        "--export-dir",
        "-o",
        help="Directory for the 'export' command"
    )
):
    """Interactive shell: connect, issue, redeem and inspect the ledger."""
    session = Session()
    console.print("TokenLoyalty live prototype. Type 'help' for commands.")
    while True:
        try:
            line = typer.prompt("loyalty", default="", show_default=False, prompt_suffix="> ")
        except typer.Abort:
            break

        try:
            verb, command = parse_line(line)
        except ValueError as e:
            console.print(f"[yellow]{e}[/]")
            continue

        if verb in ("quit", "exit"):
            break
        if command is not None:
            _display_outcomes([session.dispatch(command)], numbered=False)
        elif verb == "help":
            console.print(HELP_TEXT, markup=False)
        elif verb == "balance":
            _display_balance(session)
        elif verb == "ledger":
            _display_ledger(session)
        elif verb == "programs":
            _display_programs(session)
        elif verb == "export":
            _export(session, export_dir)
    sys.exit(EXIT_CODE_PASS)


def _format_points(points) -> str:
    return f"{points:,.2f}"


def _export(session: Session, export_dir: str) -> None:
    sink = DirectorySink(export_dir)
    filename = export_state(session, sink)
    console.print(f"[green]✓[/] Exported {sink.directory / filename}")


def _display_outcomes(outcomes: List[CommandOutcome], numbered: bool = True) -> None:
    for i, outcome in enumerate(outcomes, start=1):
        prefix = f"{i:>2}. " if numbered else ""
        if outcome.accepted:
            suffix = ""
            if outcome.balance is not None:
                suffix = f" (balance {_format_points(outcome.balance)})"
            console.print(f"{prefix}[green]✓[/] {outcome.message}{suffix}")
        else:
            console.print(f"{prefix}[yellow]✗ Rejected:[/] {outcome.message}")


def _display_summary(session: Session) -> None:
    console.print()
    _display_balance(session)
    _display_ledger(session)


def _display_programs(session: Session) -> None:
    table = Table(title="Loyalty programs")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Symbol")
    table.add_column("Value / pt", justify="right")
    table.add_column("Earn rate", justify="right")
    table.add_column("Breakage", justify="right")
    for program in session.registry.list():
        marker = "*" if program.id == session.registry.selected_id else ""
        table.add_row(
            f"{program.id}{marker}",
            program.name,
            program.token_symbol,
            format_usd(program.fixed_cents_per_point / 100),
            f"{program.earn_rate_pct}%",
            f"{program.breakage_pct}%"
        )
    console.print(table)


def _display_balance(session: Session) -> None:
    """Show wallet, active balance and the program health estimate."""
    program = session.active_program
    health = session.health()
    if session.wallet is None:
        console.print("Wallet: [dim]not connected[/]")
    else:
        console.print(
            f"Wallet: {session.wallet.short_address} on {session.wallet.network.value.upper()}"
        )
    console.print(
        f"[bold]{program.name}[/bold]: {_format_points(health.balance_points)} "
        f"{program.token_symbol} (~ {format_usd(health.balance_value)})"
    )
    console.print(
        f"Breakage: {health.breakage_pct}%  "
        f"Liability (est): {format_usd(health.estimated_liability)}"
    )


def _display_ledger(session: Session) -> None:
    entries = session.ledger.entries
    if not entries:
        console.print("\n[dim]No activity yet.[/]")
        return

    names = {program.id: program.name for program in session.registry.list()}
    table = Table(title="Ledger")
    table.add_column("Time")
    table.add_column("Type")
    table.add_column("Program")
    table.add_column("Pts", justify="right")
    table.add_column("USD", justify="right")
    table.add_column("Note")
    for entry in entries:
        color = "green" if entry.kind == EntryKind.ISSUE else "yellow"
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{color}]{entry.kind.value}[/]",
            names.get(entry.program_id, entry.program_id),
            _format_points(entry.points_amount),
            format_usd(entry.value_amount),
            entry.note
        )
    console.print(table)


if __name__ == "__main__":
    app()
