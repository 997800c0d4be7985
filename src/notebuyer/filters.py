"""
Loan eligibility filter and ranking.
"""

from decimal import Decimal
from typing import List, Sequence

from .models import Account, InvestmentCriteria, Loan


def is_eligible(loan: Loan, criteria: InvestmentCriteria) -> bool:
    """Check a single listing against the account's criteria (ownership excluded)."""
    if loan.annual_inc < criteria.min_annual_income:
        return False
    if loan.purpose not in criteria.allowed_purposes:
        return False
    if loan.inq_last_6_mths > criteria.max_inquiries_last_6_months:
        return False
    if loan.int_rate < criteria.min_interest_rate:
        return False
    if loan.term != criteria.required_term:
        return False
    if loan.grade not in criteria.allowed_grades:
        return False
    if criteria.require_no_delinquency and loan.mths_since_last_delinq is not None:
        return False

    # Loan amount must track the revolving balance it refinances
    band = criteria.revol_bal_band
    if not (Decimal(1) - band) * loan.revol_bal <= loan.loan_amount <= (Decimal(1) + band) * loan.revol_bal:
        return False

    return loan.addr_state in criteria.allowed_states


def select(candidates: Sequence[Loan], account: Account) -> List[Loan]:
    """
    Pick the loans to buy this cycle.

    Eligible loans the account does not already own, highest interest rate
    first (listing order breaks ties), capped at the number of notes the
    current cash can buy.
    """
    cap = account.target_loan_count
    if cap <= 0:
        return []

    eligible = [
        loan for loan in candidates
        if loan.id not in account.owned_loan_ids and is_eligible(loan, account.criteria)
    ]

    # sorted() is stable, so equal rates keep listing order
    ranked = sorted(eligible, key=lambda loan: loan.int_rate, reverse=True)
    return ranked[:cap]
