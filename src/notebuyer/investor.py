"""
Per-account investment loop.
"""

import asyncio
import time
from typing import Callable, List, Optional, Sequence, Tuple

from notebuyer.config import settings
from notebuyer.logging import get_logger, trace_context
from . import metrics
from .client import MarketplaceClient
from .errors import InvalidAccountIdentifier, TransportError
from .filters import select
from .models import Account, AccountOutcome, Loan, LoopExit, LoopState, OrderConfirmation
from .orders import build_order, partial_fills, purchased_loan_ids

logger = get_logger(__name__)


class Deadline:
    """Wall-clock budget shared read-only by every account loop."""

    def __init__(self, duration_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.duration_seconds = duration_seconds
        self.clock = clock
        self.started_at = clock()

    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def remaining(self) -> float:
        return max(0.0, self.duration_seconds - self.elapsed())

    def expired(self) -> bool:
        return self.elapsed() >= self.duration_seconds


class AccountInvestor:
    """Drives fetch, filter, order and reconcile cycles for one account."""

    def __init__(
        self,
        account: Account,
        client: MarketplaceClient,
        deadline: Deadline,
        quiescence_interval: Optional[float] = None,
    ):
        self.account = account
        self.client = client
        self.deadline = deadline
        self.quiescence_interval = (
            settings.invest.quiescence_interval_seconds
            if quiescence_interval is None
            else quiescence_interval
        )

        self.state = LoopState.IDLE
        self.cycles = 0
        self.purchased: List[int] = []

    async def run(self) -> AccountOutcome:
        """Run cycles until cash runs out, the deadline passes or a request fails."""
        account = self.account

        with trace_context(f"investor-{account.investor_id}"):
            logger.info(
                "Starting investment loop",
                investor_id=account.investor_id,
                available_cash=str(account.available_cash),
                amount_per_loan=str(account.amount_per_loan),
            )
            reason, error = await self._run_until_done()
            self.state = LoopState.DONE

            metrics.loop_exits_total.labels(reason=reason.value).inc()
            log = logger.error if reason.is_error else logger.info
            log(
                "Investment loop finished",
                reason=reason.value,
                cycles=self.cycles,
                purchased=len(self.purchased),
                available_cash=str(account.available_cash),
            )

        return AccountOutcome(
            investor_id=account.investor_id,
            reason=reason,
            cycles=self.cycles,
            loans_purchased=list(self.purchased),
            cash_remaining=account.available_cash,
            error=error,
        )

    async def _run_until_done(self) -> Tuple[LoopExit, Optional[str]]:
        if not self.account.can_invest:
            return LoopExit.SKIPPED, None

        while True:
            if self.deadline.expired():
                return LoopExit.DEADLINE, None
            if not self.account.can_invest:
                return LoopExit.INSUFFICIENT_CASH, None

            try:
                await self.run_cycle()
            except TransportError as e:
                return LoopExit.TRANSPORT_ERROR, str(e)
            except InvalidAccountIdentifier as e:
                return LoopExit.INVALID_ACCOUNT, str(e)

    async def run_cycle(self) -> List[int]:
        """Run one polling cycle and return the loan ids bought in it."""
        self.cycles += 1
        metrics.cycles_total.labels(investor_id=self.account.investor_id).inc()

        self.state = LoopState.POLLING
        listed = await self.poll()

        self.state = LoopState.FILTERING
        selected = select(listed, self.account)

        if not selected:
            self.state = LoopState.NO_MATCH
            await asyncio.sleep(self.quiescence_interval)
            return []

        self.state = LoopState.ORDERING
        confirmations = await self.place_order(selected)

        self.state = LoopState.RECONCILING
        return self.reconcile(confirmations)

    async def poll(self) -> List[Loan]:
        """Fetch the full listing on the first call, only new listings afterwards."""
        show_all = self.account.is_first_fetch
        loans = await self.client.fetch_listings(show_all, self.account.authorization_token)
        self.account.is_first_fetch = False
        return loans

    async def place_order(self, loans: Sequence[Loan]) -> List[OrderConfirmation]:
        account = self.account
        order = build_order(loans, account.amount_per_loan, account.investor_id)

        logger.info(
            f"Submitting order for {len(order.orders)} loans",
            loan_ids=[line.loan_id for line in order.orders],
        )
        metrics.orders_submitted_total.labels(investor_id=account.investor_id).inc()

        return await self.client.submit_order(order, account.authorization_token)

    def reconcile(self, confirmations: Sequence[OrderConfirmation]) -> List[int]:
        """Record accepted loans and debit cash once for all of them."""
        account = self.account
        purchased = purchased_loan_ids(confirmations)
        rejected = len(confirmations) - len(purchased)

        for confirmation in partial_fills(confirmations, account.amount_per_loan):
            logger.warning(
                f"Loan {confirmation.loan_id} filled at {confirmation.invested_amount}, "
                f"debiting {account.amount_per_loan}"
            )

        account.owned_loan_ids.update(purchased)
        account.available_cash -= account.amount_per_loan * len(purchased)
        self.purchased.extend(purchased)

        metrics.loans_purchased_total.labels(investor_id=account.investor_id).inc(len(purchased))
        metrics.loans_rejected_total.labels(investor_id=account.investor_id).inc(rejected)
        metrics.available_cash.labels(investor_id=account.investor_id).set(float(account.available_cash))

        logger.info(
            f"Order reconciled: {len(purchased)} purchased, {rejected} rejected",
            loan_ids=purchased,
            available_cash=str(account.available_cash),
        )
        return purchased
