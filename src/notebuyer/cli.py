"""
Command line entry point.
"""

import argparse
import asyncio
import sys
from typing import List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from notebuyer.config import settings
from notebuyer.logging import configure_logging, get_logger
from .accounts import load_profiles, prepare_accounts
from .client import MarketplaceClient
from .errors import AccountSetupError, TransportError
from .filters import select
from .investor import Deadline
from .metrics import start_metrics_server
from .models import Account, AccountOutcome
from .scheduler import run_accounts

logger = get_logger(__name__)


def _add_common_options(parser: argparse.ArgumentParser, accounts_default, log_level_default) -> None:
    parser.add_argument("--accounts", default=accounts_default,
                        help="Accounts file (JSON).")
    parser.add_argument("--log-level", default=log_level_default,
                        help="Override the configured log level.")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="notebuyer",
        description="Buy loan notes that pass the configured filters, for every configured account.",
    )
    _add_common_options(parser, settings.invest.accounts_file, None)

    # Subcommand copies only set a value when given, so the top-level one survives
    common = argparse.ArgumentParser(add_help=False)
    _add_common_options(common, argparse.SUPPRESS, argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", parents=[common],
                                       help="Invest until cash runs out or the deadline passes.")
    run_parser.add_argument("--deadline", type=float, default=None,
                            help="Run budget in seconds.")

    subparsers.add_parser("filters", parents=[common],
                          help="Show the loans each account would buy now, without ordering.")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "run"
        args.deadline = None
    return args


def render_outcomes(outcomes: Sequence[AccountOutcome], console: Console) -> None:
    table = Table(title="Investment Run")

    table.add_column("Account", style="cyan")
    table.add_column("Result")
    table.add_column("Cycles", justify="right")
    table.add_column("Notes Bought", justify="right", style="green")
    table.add_column("Cash Left", justify="right", style="yellow")
    table.add_column("Error", style="red")

    for outcome in outcomes:
        style = "red" if outcome.reason.is_error else "green"
        table.add_row(
            outcome.investor_id,
            f"[{style}]{outcome.reason.value}[/{style}]",
            str(outcome.cycles),
            str(len(outcome.loans_purchased)),
            f"{outcome.cash_remaining:.2f}",
            outcome.error or "",
        )

    console.print(table)


async def invest(accounts: Sequence[Account], client: MarketplaceClient,
                 deadline_seconds: Optional[float]) -> List[AccountOutcome]:
    if deadline_seconds is None:
        deadline_seconds = settings.invest.run_deadline_seconds
    deadline = Deadline(deadline_seconds)
    return await run_accounts(accounts, client, deadline)


async def preview(accounts: Sequence[Account], client: MarketplaceClient, console: Console) -> bool:
    """Print what each account would buy now. Returns False if any fetch failed."""
    ok = True
    for account in accounts:
        try:
            listed = await client.fetch_listings(True, account.authorization_token)
        except TransportError as e:
            logger.error(f"Cannot preview account {account.investor_id}: {e}")
            console.print(f"Account {account.investor_id}: {e}", style="red", markup=False)
            ok = False
            continue

        chosen = select(listed, account)

        table = Table(title=f"Account {account.investor_id}: {len(chosen)} of {len(listed)} listed loans")
        table.add_column("Loan", style="cyan")
        table.add_column("Grade")
        table.add_column("Rate", justify="right", style="yellow")
        table.add_column("Purpose")
        table.add_column("State")
        for loan in chosen:
            table.add_row(str(loan.id), loan.grade, f"{loan.int_rate}%", loan.purpose, loan.addr_state)
        console.print(table)
    return ok


async def main_async(args: argparse.Namespace, console: Console) -> int:
    profiles = load_profiles(args.accounts)

    async with MarketplaceClient() as client:
        accounts = await prepare_accounts(profiles, client)
        failed_setup = len(profiles) - len(accounts)

        if args.command == "filters":
            previewed = await preview(accounts, client, console)
            return 1 if failed_setup or not previewed else 0

        outcomes = await invest(accounts, client, args.deadline)

    render_outcomes(outcomes, console)
    if failed_setup or any(outcome.reason.is_error for outcome in outcomes):
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    start_metrics_server(settings.monitoring.metrics_port)

    console = Console()
    try:
        return asyncio.run(main_async(args, console))
    except AccountSetupError as e:
        logger.error(str(e))
        return 2
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
