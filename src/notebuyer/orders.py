"""
Order construction and confirmation reconciliation.
"""

from decimal import Decimal
from typing import Iterable, List, Sequence

from .errors import InvalidAccountIdentifier
from .models import Loan, Order, OrderConfirmation, OrderLine


def parse_account_id(investor_id: str) -> int:
    """Convert an investor id to the integer form used in order payloads."""
    if not isinstance(investor_id, str) or not investor_id.strip().isdecimal():
        raise InvalidAccountIdentifier(str(investor_id))
    return int(investor_id)


def build_order(loans: Iterable[Loan], amount_per_loan: Decimal, investor_id: str) -> Order:
    """Request exactly ``amount_per_loan`` of each loan, with no portfolio."""
    aid = parse_account_id(investor_id)

    lines = [
        OrderLine(loan_id=loan.id, requested_amount=amount_per_loan, portfolio_id=None)
        for loan in loans
    ]

    return Order(aid=aid, orders=lines)


def purchased_loan_ids(confirmations: Sequence[OrderConfirmation]) -> List[int]:
    """Loan ids the marketplace accepted, in confirmation order."""
    return [c.loan_id for c in confirmations if c.is_purchased]


def partial_fills(
    confirmations: Sequence[OrderConfirmation], amount_per_loan: Decimal
) -> List[OrderConfirmation]:
    """Accepted lines whose invested amount differs from what was requested."""
    return [
        c for c in confirmations
        if c.is_purchased and c.invested_amount != amount_per_loan
    ]
