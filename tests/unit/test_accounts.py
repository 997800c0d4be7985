"""
Unit tests for account setup.
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from notebuyer.accounts import build_account, load_profiles, prepare_accounts, read_token
from notebuyer.allowed_states import US_STATES
from notebuyer.client import MarketplaceClient
from notebuyer.config import Settings
from notebuyer.errors import AccountSetupError, InvalidAccountIdentifier, TransportError
from notebuyer.models import AccountProfile, AccountSummary, NotesOwned, OwnedNote


@pytest.fixture
def client():
    """Create a mocked marketplace client with one account's data."""
    client = AsyncMock(spec=MarketplaceClient)
    client.get_account_summary.return_value = AccountSummary(
        investor_id="1302864", available_cash=Decimal("110"), account_total=Decimal("1000")
    )
    client.get_owned_notes.return_value = NotesOwned(
        my_notes=[OwnedNote(loan_id=10), OwnedNote(loan_id=20)]
    )
    return client


class TestLoadProfiles:
    """Test reading the accounts file."""

    def test_reads_profiles(self, tmp_path):
        path = tmp_path / "accounts.json"
        path.write_text(json.dumps({
            "accounts": [
                {"investor_id": "1302864", "token_file": "/secrets/token.txt",
                 "amount_per_loan": "25", "loan_grades_allowed": ["B", "C"]},
                {"investor_id": "99", "token": "inline"},
            ]
        }))

        profiles = load_profiles(path)

        assert [p.investor_id for p in profiles] == ["1302864", "99"]
        assert profiles[0].amount_per_loan == Decimal("25")
        assert profiles[0].loan_grades_allowed == {"B", "C"}

    def test_profile_needs_a_token_source(self, tmp_path):
        path = tmp_path / "accounts.json"
        path.write_text(json.dumps({"accounts": [{"investor_id": "1"}]}))

        with pytest.raises(AccountSetupError):
            load_profiles(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(AccountSetupError):
            load_profiles(tmp_path / "nope.json")


class TestReadToken:
    """Test token loading."""

    def test_inline_token(self):
        assert read_token(AccountProfile(investor_id="1", token=" abc ")) == "abc"

    def test_token_file_is_stripped(self, tmp_path):
        token_file = tmp_path / "token.txt"
        token_file.write_text("secret-token\n")

        assert read_token(AccountProfile(investor_id="1", token_file=str(token_file))) == "secret-token"

    def test_missing_token_file(self, tmp_path):
        profile = AccountProfile(investor_id="1", token_file=str(tmp_path / "none.txt"))

        with pytest.raises(AccountSetupError) as exc_info:
            read_token(profile)

        assert exc_info.value.investor_id == "1"

    def test_empty_token_file(self, tmp_path):
        token_file = tmp_path / "token.txt"
        token_file.write_text("   \n")

        with pytest.raises(AccountSetupError):
            read_token(AccountProfile(investor_id="1", token_file=str(token_file)))


class TestBuildAccount:
    """Test assembling an Account from the marketplace."""

    @pytest.mark.asyncio
    async def test_builds_from_summary_and_notes(self, client):
        profile = AccountProfile(investor_id="1302864", token="tok", loan_grades_allowed={"B"})

        account = await build_account(profile, client, Settings())

        assert account.available_cash == Decimal("110")
        assert account.account_total == Decimal("1000")
        assert account.owned_loan_ids == {10, 20}
        assert account.amount_per_loan == Decimal("25")
        assert account.target_loan_count == 4
        assert account.is_first_fetch is True
        assert account.criteria.allowed_grades == {"B"}
        assert account.criteria.allowed_states == set(US_STATES)
        assert account.criteria.min_annual_income == Decimal("59900")
        client.get_account_summary.assert_awaited_once_with("1302864", "tok")

    @pytest.mark.asyncio
    async def test_explicit_allowed_states(self, client):
        profile = AccountProfile(investor_id="1302864", token="tok", allowed_states={"CA", "NY"})

        account = await build_account(profile, client, Settings())

        assert account.criteria.allowed_states == {"CA", "NY"}
        assert account.criteria.allowed_grades == {"B", "C", "D"}

    @pytest.mark.asyncio
    async def test_allowed_states_from_notes_csv(self, client, tmp_path):
        csv_path = tmp_path / "notes_ext.csv"
        csv_path.write_text(
            "LoanId,NoteId,OrderId,Status,Grade,State,Rate,Term,Issued,Invested,PrincipalRemaining\n"
            "1,2,3,Current,C,TX,12.5,36,2015-01-01,25.00,60.00\n"
        )
        profile = AccountProfile(
            investor_id="1302864", token="tok",
            notes_csv_path=str(csv_path), state_percent_limit=0.05,
        )

        account = await build_account(profile, client, Settings())

        assert "TX" not in account.criteria.allowed_states
        assert "CA" in account.criteria.allowed_states

    @pytest.mark.asyncio
    async def test_rejects_non_numeric_id_before_any_request(self, client):
        profile = AccountProfile(investor_id="abc", token="tok")

        with pytest.raises(InvalidAccountIdentifier):
            await build_account(profile, client, Settings())

        client.get_account_summary.assert_not_called()


class TestPrepareAccounts:
    """Test preparing several accounts."""

    @pytest.mark.asyncio
    async def test_failed_profile_is_skipped(self, client, no_logs):
        client.get_account_summary.side_effect = [
            TransportError("unauthorized", url="http://x/summary", status_code=401),
            AccountSummary(investor_id="2", available_cash=Decimal("50")),
        ]
        profiles = [
            AccountProfile(investor_id="1", token="a"),
            AccountProfile(investor_id="2", token="b"),
        ]

        accounts = await prepare_accounts(profiles, client, Settings())

        assert [a.investor_id for a in accounts] == ["2"]
