"""
Marketplace REST client for listings, orders and account data.
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from notebuyer.config import MarketplaceSettings, settings
from notebuyer.logging import get_logger
from .errors import TransportError
from .models import (
    AccountSummary,
    CompleteOrderConfirmation,
    Loan,
    LoanListing,
    NotesOwned,
    Order,
    OrderConfirmation,
)

logger = get_logger(__name__)


class MarketplaceClient:
    """Stateless request/response client; the token is supplied on every call."""

    def __init__(self, config: Optional[MarketplaceSettings] = None):
        self.config = config or settings.marketplace
        self.base_url = self.config.base_url.rstrip("/")

        # HTTP client
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
            limits=httpx.Limits(max_keepalive_connections=self.config.max_keepalive_connections),
        )

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    def _get_headers(self, token: str) -> Dict[str, str]:
        """Get common headers for requests."""
        return {
            "Authorization": token,
            "Accept": "application/json",
            "Content-Type": "application/json; charset=utf-8",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        token: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = await self.client.request(
                method, endpoint, params=params, json=json, headers=self._get_headers(token)
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {endpoint} returned HTTP {e.response.status_code}")
            raise TransportError(
                "Unexpected HTTP status", url=url, status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error on {method} {endpoint}: {e!r}")
            raise TransportError(f"Request failed: {e!r}", url=url) from e

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Malformed JSON body from {method} {endpoint}")
            raise TransportError(
                "Malformed response body", url=url, status_code=response.status_code
            ) from e

    async def fetch_listings(self, show_all: bool, token: str) -> List[Loan]:
        """Get listed loans; everything when ``show_all``, otherwise only the newest."""
        endpoint = "/loans/listing"
        params = {"showAll": "true" if show_all else "false"}

        body = await self._request("GET", endpoint, token, params=params)

        try:
            listing = LoanListing.model_validate(body)
        except ValidationError as e:
            raise TransportError(
                f"Unparseable listing: {e.error_count()} errors", url=f"{self.base_url}{endpoint}"
            ) from e

        loans = listing.loans or []
        logger.debug(f"Fetched {len(loans)} listed loans", show_all=show_all)
        return loans

    async def submit_order(self, order: Order, token: str) -> List[OrderConfirmation]:
        """Submit an order and return one confirmation per requested loan, in order."""
        endpoint = f"/accounts/{order.aid}/orders"
        url = f"{self.base_url}{endpoint}"

        body = await self._request("POST", endpoint, token, json=order.to_payload())

        try:
            result = CompleteOrderConfirmation.model_validate(body)
        except ValidationError as e:
            raise TransportError(
                f"Unparseable order confirmation: {e.error_count()} errors", url=url
            ) from e

        requested = [line.loan_id for line in order.orders]
        confirmed = [c.loan_id for c in result.order_confirmations]
        if requested != confirmed:
            # Never guess which lines went through
            logger.error(
                "Order confirmation does not match request",
                requested=requested,
                confirmed=confirmed,
            )
            raise TransportError("Order confirmation does not match submitted lines", url=url)

        return result.order_confirmations

    async def get_account_summary(self, investor_id: str, token: str) -> AccountSummary:
        """Get cash balance and account value."""
        endpoint = f"/accounts/{investor_id}/summary"
        body = await self._request("GET", endpoint, token)

        try:
            return AccountSummary.model_validate(body)
        except ValidationError as e:
            raise TransportError(
                "Unparseable account summary", url=f"{self.base_url}{endpoint}", investor_id=investor_id
            ) from e

    async def get_owned_notes(self, investor_id: str, token: str) -> NotesOwned:
        """Get the notes the account already holds."""
        endpoint = f"/accounts/{investor_id}/detailednotes"
        body = await self._request("GET", endpoint, token)

        try:
            return NotesOwned.model_validate(body)
        except ValidationError as e:
            raise TransportError(
                "Unparseable notes list", url=f"{self.base_url}{endpoint}", investor_id=investor_id
            ) from e
