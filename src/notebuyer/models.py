"""
Data models for listings, orders, confirmations and investor accounts.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator


class LoopState(str, Enum):
    """States of an account investment loop."""
    IDLE = "idle"
    POLLING = "polling"
    FILTERING = "filtering"
    NO_MATCH = "no_match"
    ORDERING = "ordering"
    RECONCILING = "reconciling"
    DONE = "done"


class LoopExit(str, Enum):
    """Why an account investment loop reached DONE."""
    SKIPPED = "skipped"  # Not enough cash to start
    INSUFFICIENT_CASH = "insufficient_cash"
    DEADLINE = "deadline"
    TRANSPORT_ERROR = "transport_error"
    INVALID_ACCOUNT = "invalid_account"
    UNEXPECTED_ERROR = "unexpected_error"

    @property
    def is_error(self) -> bool:
        return self in (
            LoopExit.TRANSPORT_ERROR,
            LoopExit.INVALID_ACCOUNT,
            LoopExit.UNEXPECTED_ERROR,
        )


class WireModel(BaseModel):
    """Base for marketplace payloads: camelCase on the wire, unknown fields ignored."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class Loan(WireModel):
    """A listed loan, as returned for one polling cycle."""
    model_config = ConfigDict(frozen=True)

    id: int
    grade: str
    int_rate: Decimal = Field(alias="intRate")
    term: int
    purpose: str
    addr_state: str = Field(alias="addrState")
    annual_inc: Decimal = Field(alias="annualInc")
    mths_since_last_delinq: Optional[int] = Field(None, alias="mthsSinceLastDelinq")
    inq_last_6_mths: int = Field(0, alias="inqLast6Mths")
    loan_amount: Decimal = Field(alias="loanAmount")
    revol_bal: Decimal = Field(alias="revolBal")


class LoanListing(WireModel):
    """Body of the listing endpoint."""
    as_of_date: Optional[str] = Field(None, alias="asOfDate")
    loans: Optional[List[Loan]] = None


class OrderLine(WireModel):
    """One loan requested in an order."""
    loan_id: int = Field(alias="loanId")
    requested_amount: Decimal = Field(alias="requestedAmount")
    portfolio_id: Optional[int] = Field(None, alias="portfolioId")

    @field_serializer("requested_amount")
    def serialize_amount(self, value: Decimal) -> float:
        return float(value)


class Order(WireModel):
    """Purchase order submitted for one account."""
    model_config = ConfigDict(frozen=True)

    aid: int
    orders: List[OrderLine]

    def to_payload(self) -> dict:
        """Serialize with marketplace field names."""
        return self.model_dump(mode="json", by_alias=True)


class OrderConfirmation(WireModel):
    """Fill status for one requested loan. A negative or missing amount means rejected."""
    loan_id: int = Field(alias="loanId")
    invested_amount: Optional[Decimal] = Field(None, alias="investedAmount")
    execution_status: List[str] = Field(default_factory=list, alias="executionStatus")

    @property
    def is_purchased(self) -> bool:
        return self.invested_amount is not None and self.invested_amount >= 0


class CompleteOrderConfirmation(WireModel):
    """Body of the order submission endpoint."""
    order_instruct_id: Optional[int] = Field(None, alias="orderInstructId")
    order_confirmations: List[OrderConfirmation] = Field(alias="orderConfirmations")


class AccountSummary(WireModel):
    """Body of the account summary endpoint."""
    investor_id: str = Field(alias="investorId")
    available_cash: Decimal = Field(alias="availableCash")
    account_total: Decimal = Field(Decimal("0"), alias="accountTotal")


class OwnedNote(WireModel):
    """A note already held by the account."""
    loan_id: int = Field(alias="loanId")
    note_id: Optional[int] = Field(None, alias="noteId")
    loan_status: Optional[str] = Field(None, alias="loanStatus")


class NotesOwned(WireModel):
    """Body of the detailed notes endpoint."""
    my_notes: List[OwnedNote] = Field(default_factory=list, alias="myNotes")


class InvestmentCriteria(BaseModel):
    """Eligibility rules a listed loan must satisfy."""
    min_annual_income: Decimal
    allowed_purposes: Set[str]
    allowed_grades: Set[str]
    allowed_states: Set[str]
    required_term: int
    min_interest_rate: Decimal
    max_inquiries_last_6_months: int = 0
    require_no_delinquency: bool = True
    revol_bal_band: Decimal = Decimal("0.10")


class Account(BaseModel):
    """Investor account state, mutated only by its own investment loop."""
    investor_id: str
    authorization_token: str = Field(repr=False)
    available_cash: Decimal
    amount_per_loan: Decimal = Field(gt=0)
    account_total: Decimal = Decimal("0")
    criteria: InvestmentCriteria
    owned_loan_ids: Set[int] = Field(default_factory=set)
    is_first_fetch: bool = True

    @property
    def target_loan_count(self) -> int:
        """Number of notes the current cash can buy."""
        if self.available_cash <= 0:
            return 0
        return int(self.available_cash // self.amount_per_loan)

    @property
    def can_invest(self) -> bool:
        return self.available_cash >= self.amount_per_loan


class AccountProfile(BaseModel):
    """One entry of the accounts file."""
    investor_id: str
    token: Optional[str] = Field(None, repr=False)
    token_file: Optional[str] = None
    amount_per_loan: Optional[Decimal] = Field(None, gt=0)
    loan_grades_allowed: Optional[Set[str]] = None
    state_percent_limit: Optional[float] = None
    notes_csv_path: Optional[str] = None
    allowed_states: Optional[Set[str]] = None

    @model_validator(mode="after")
    def check_token_source(self) -> "AccountProfile":
        if not self.token and not self.token_file:
            raise ValueError("either token or token_file is required")
        return self


class AccountsFile(BaseModel):
    """Top-level structure of the accounts file."""
    accounts: List[AccountProfile]


class AccountOutcome(BaseModel):
    """Terminal record of one account's run."""
    investor_id: str
    reason: LoopExit
    cycles: int = 0
    loans_purchased: List[int] = Field(default_factory=list)
    cash_remaining: Decimal = Decimal("0")
    error: Optional[str] = None
