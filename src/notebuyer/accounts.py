"""
Account setup: turns profiles from the accounts file into investable accounts.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import ValidationError

from notebuyer.config import Settings, settings as default_settings
from notebuyer.logging import get_logger
from .allowed_states import US_STATES, load_allowed_states
from .client import MarketplaceClient
from .errors import AccountSetupError, InvalidAccountIdentifier, TransportError
from .models import Account, AccountProfile, AccountsFile, InvestmentCriteria
from .orders import parse_account_id

logger = get_logger(__name__)


def load_profiles(path: Union[str, Path]) -> List[AccountProfile]:
    """Read and validate the accounts file."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise AccountSetupError(f"Cannot read accounts file {path}: {e}") from e

    try:
        return AccountsFile.model_validate_json(raw).accounts
    except ValidationError as e:
        raise AccountSetupError(f"Invalid accounts file {path}: {e}") from e


def read_token(profile: AccountProfile) -> str:
    """Inline token, or the contents of the profile's token file."""
    if profile.token:
        return profile.token.strip()

    try:
        token = Path(profile.token_file).read_text(encoding="utf-8").strip()
    except OSError as e:
        raise AccountSetupError(
            f"Cannot read token file {profile.token_file}: {e}", profile.investor_id
        ) from e

    if not token:
        raise AccountSetupError(f"Token file {profile.token_file} is empty", profile.investor_id)
    return token


def build_criteria(
    profile: AccountProfile, allowed_states: Sequence[str], config: Settings
) -> InvestmentCriteria:
    policy = config.filters
    return InvestmentCriteria(
        min_annual_income=policy.min_annual_income,
        allowed_purposes=set(policy.allowed_purposes),
        allowed_grades=set(profile.loan_grades_allowed or policy.default_loan_grades),
        allowed_states=set(allowed_states),
        required_term=policy.required_term,
        min_interest_rate=policy.min_interest_rate,
        max_inquiries_last_6_months=policy.max_inquiries_last_6_months,
        require_no_delinquency=policy.require_no_delinquency,
        revol_bal_band=policy.revol_bal_band,
    )


async def build_account(
    profile: AccountProfile,
    client: MarketplaceClient,
    config: Optional[Settings] = None,
) -> Account:
    """Fetch balance and holdings for a profile and assemble its Account."""
    config = config or default_settings
    parse_account_id(profile.investor_id)
    token = read_token(profile)

    summary = await client.get_account_summary(profile.investor_id, token)
    notes = await client.get_owned_notes(profile.investor_id, token)

    if profile.allowed_states is not None:
        allowed_states = sorted(profile.allowed_states)
    elif profile.notes_csv_path:
        limit = profile.state_percent_limit
        if limit is None:
            limit = config.invest.default_state_percent_limit
        allowed_states = load_allowed_states(profile.notes_csv_path, limit, summary.account_total)
    else:
        allowed_states = list(US_STATES)

    account = Account(
        investor_id=profile.investor_id,
        authorization_token=token,
        available_cash=summary.available_cash,
        amount_per_loan=profile.amount_per_loan or config.invest.default_amount_per_loan,
        account_total=summary.account_total,
        criteria=build_criteria(profile, allowed_states, config),
        owned_loan_ids={note.loan_id for note in notes.my_notes},
    )

    logger.info(
        f"Prepared account {account.investor_id}",
        available_cash=str(account.available_cash),
        owned_notes=len(account.owned_loan_ids),
        allowed_states=len(allowed_states),
        target_loan_count=account.target_loan_count,
    )
    return account


async def prepare_accounts(
    profiles: Sequence[AccountProfile],
    client: MarketplaceClient,
    config: Optional[Settings] = None,
) -> List[Account]:
    """Build every account; a profile that fails setup is logged and left out."""
    accounts = []
    for profile in profiles:
        try:
            accounts.append(await build_account(profile, client, config))
        except (AccountSetupError, TransportError, InvalidAccountIdentifier) as e:
            logger.error(f"Skipping account {profile.investor_id}: {e}")
    return accounts
