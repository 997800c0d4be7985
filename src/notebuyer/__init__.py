"""Automated loan note purchasing across investor accounts."""

from .errors import AccountSetupError, InvalidAccountIdentifier, NoteBuyerError, TransportError
from .filters import select
from .investor import AccountInvestor, Deadline
from .models import Account, AccountOutcome, Loan, LoopExit, LoopState, Order, OrderConfirmation
from .orders import build_order
from .scheduler import run_accounts

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountOutcome",
    "Loan",
    "LoopExit",
    "LoopState",
    "Order",
    "OrderConfirmation",
    "AccountInvestor",
    "Deadline",
    "select",
    "build_order",
    "run_accounts",
    "NoteBuyerError",
    "TransportError",
    "InvalidAccountIdentifier",
    "AccountSetupError",
]
