"""
Geographic allow-list computed from a notes export.

A state is allowed while the principal already invested there stays within
``state_percent_limit`` of the account value.
"""

import csv
import io
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Union

from .errors import AccountSetupError

US_STATES = (
    "AK", "AL", "AR", "AZ", "CA",
    "CO", "CT", "DE", "FL", "GA",
    "HI", "IA", "ID", "IL", "IN",
    "KS", "KY", "LA", "MA", "MD",
    "ME", "MI", "MN", "MO", "MS",
    "MT", "NC", "ND", "NE", "NH",
    "NJ", "NM", "NV", "NY", "OH",
    "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VA",
    "VT", "WA", "WI", "WV", "WY",
)

PRINCIPAL_REMAINING_COLUMN = 10
CURRENT_STATUS = "Current"


def principal_by_state(csv_text: str) -> Dict[str, Decimal]:
    """Sum the principal remaining of current notes per state."""
    totals = {state: Decimal("0") for state in US_STATES}

    rows = csv.reader(io.StringIO(csv_text))
    next(rows, None)  # header

    for line_number, row in enumerate(rows, start=2):
        if CURRENT_STATUS not in row:
            continue

        state = next((cell for cell in row if cell in totals), None)
        if state is None:
            continue

        try:
            principal = Decimal(row[PRINCIPAL_REMAINING_COLUMN])
        except (IndexError, InvalidOperation) as e:
            raise AccountSetupError(f"Bad principal on notes CSV line {line_number}") from e

        totals[state] += principal.quantize(Decimal("0.01"))

    return totals


def compute_allowed_states(
    csv_text: str, state_percent_limit: float, account_total: Decimal
) -> List[str]:
    """States whose invested principal is within the limit, alphabetically."""
    ceiling = Decimal(str(state_percent_limit)) * Decimal(account_total)
    totals = principal_by_state(csv_text)
    return sorted(state for state, total in totals.items() if total <= ceiling)


def load_allowed_states(
    path: Union[str, Path], state_percent_limit: float, account_total: Decimal
) -> List[str]:
    """Read a notes CSV export and compute the allowed states."""
    try:
        csv_text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as e:
        raise AccountSetupError(f"Cannot read notes CSV {path}: {e}") from e
    return compute_allowed_states(csv_text, state_percent_limit, account_total)
