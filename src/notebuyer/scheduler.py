"""
Runs one investment loop per account, concurrently, under a shared deadline.
"""

import asyncio
from typing import List, Optional, Sequence

from notebuyer.config import settings
from notebuyer.logging import get_logger
from . import metrics
from .client import MarketplaceClient
from .investor import AccountInvestor, Deadline
from .models import Account, AccountOutcome, LoopExit, LoopState

logger = get_logger(__name__)


async def run_accounts(
    accounts: Sequence[Account],
    client: MarketplaceClient,
    deadline: Optional[Deadline] = None,
    quiescence_interval: Optional[float] = None,
) -> List[AccountOutcome]:
    """
    Invest every account in its own task and wait for all of them.

    Accounts share nothing but the read-only deadline and the stateless
    client. A failure in one task becomes that account's outcome and never
    cancels the others. Outcomes are returned in account order.
    """
    if deadline is None:
        deadline = Deadline(settings.invest.run_deadline_seconds)

    investors = [
        AccountInvestor(account, client, deadline, quiescence_interval)
        for account in accounts
    ]

    logger.info(
        f"Launching {len(investors)} investment loops",
        deadline_seconds=deadline.duration_seconds,
    )

    tasks = [
        asyncio.create_task(investor.run(), name=f"invest-{investor.account.investor_id}")
        for investor in investors
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    outcomes = []
    for investor, result in zip(investors, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.opt(exception=result).error(
                f"Investment loop for {investor.account.investor_id} crashed"
            )
            investor.state = LoopState.DONE
            metrics.loop_exits_total.labels(reason=LoopExit.UNEXPECTED_ERROR.value).inc()
            result = AccountOutcome(
                investor_id=investor.account.investor_id,
                reason=LoopExit.UNEXPECTED_ERROR,
                cycles=investor.cycles,
                loans_purchased=list(investor.purchased),
                cash_remaining=investor.account.available_cash,
                error=repr(result),
            )
        outcomes.append(result)

    return outcomes
