"""Factories shared by the test modules."""

from decimal import Decimal
from typing import Any, Dict

from notebuyer.models import Account, InvestmentCriteria, Loan, OrderConfirmation


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_loan(loan_id: int = 1, **overrides: Any) -> Loan:
    """A listing that passes the default criteria unless overridden."""
    fields: Dict[str, Any] = {
        "id": loan_id,
        "grade": "C",
        "int_rate": Decimal("12.5"),
        "term": 36,
        "purpose": "debt_consolidation",
        "addr_state": "CA",
        "annual_inc": Decimal("75000"),
        "mths_since_last_delinq": None,
        "inq_last_6_mths": 0,
        "loan_amount": Decimal("10000"),
        "revol_bal": Decimal("10000"),
    }
    fields.update(overrides)
    return Loan(**fields)


def make_criteria(**overrides: Any) -> InvestmentCriteria:
    fields: Dict[str, Any] = {
        "min_annual_income": Decimal("59900"),
        "allowed_purposes": {"debt_consolidation", "credit_card"},
        "allowed_grades": {"B", "C", "D"},
        "allowed_states": {"CA", "NY", "TX"},
        "required_term": 36,
        "min_interest_rate": Decimal("10.0"),
    }
    fields.update(overrides)
    return InvestmentCriteria(**fields)


def make_account(**overrides: Any) -> Account:
    fields: Dict[str, Any] = {
        "investor_id": "1302864",
        "authorization_token": "token-abc",
        "available_cash": Decimal("100"),
        "amount_per_loan": Decimal("25"),
        "criteria": make_criteria(),
    }
    fields.update(overrides)
    return Account(**fields)


def confirm(loan_id: int, invested: Any) -> OrderConfirmation:
    amount = None if invested is None else Decimal(str(invested))
    return OrderConfirmation(loan_id=loan_id, invested_amount=amount)


