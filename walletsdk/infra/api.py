"""
WalletSDK - Platform API Client

Handles all ledger-management REST calls: operation create/broadcast/get/
list, balances, assets, staking context and rewards, and faucet funding.

The transport is a ``requests.Session``; each call runs on a worker
thread so callers await it without blocking the event loop.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import requests

from ..constants import DEFAULT_PAGE_SIZE
from ..errors import APIError, NetworkError
from ..models import OperationKind

logger = logging.getLogger(__name__)

PageFetcher = Callable[[Optional[str]], Awaitable[Dict[str, Any]]]


async def drain_pages(fetch_page: PageFetcher, limit: Optional[int] = None) -> List[dict]:
    """
    Follow ``next_page`` cursors and accumulate every item in order.

    Args:
        fetch_page: Coroutine taking a page token (None for the first page)
            and returning ``{"data": [...], "has_more": bool, "next_page": str}``.
        limit: Stop once this many items are collected.

    Returns:
        Items from all pages, truncated to ``limit``.
    """
    items: List[dict] = []
    page: Optional[str] = None

    while True:
        response = await fetch_page(page) or {}
        items.extend(response.get("data") or [])

        if limit is not None and len(items) >= limit:
            return items[:limit]

        page = response.get("next_page")
        if not response.get("has_more") or not page:
            return items


class LedgerAPI:
    """
    Client for the wallet platform REST API.

    Authentication is supplied by the caller through ``session`` (for
    example a session with an auth adapter) or ``headers``.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30,
        debugging: bool = False,
    ):
        """
        Initialize API client.

        Args:
            base_url: API base URL, e.g. ``https://api.example.com/platform``.
            session: Pre-configured session; a new one is created if None.
            headers: Extra headers sent with every request.
            timeout: Per-request timeout in seconds.
            debugging: Log response bodies at DEBUG level.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)
        self.timeout = timeout
        self.debugging = debugging

    def _request_sync(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
        allow_missing: bool = False,
    ) -> Optional[dict]:
        url = f"{self.base_url}/{endpoint}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"API request failed: {e}", {"endpoint": endpoint})

        logger.debug("%s %s -> %s", method, endpoint, response.status_code)
        if self.debugging:
            logger.debug("API RESPONSE %s: %s", endpoint, response.text)

        if allow_missing and response.status_code == 404:
            return None
        if not response.ok:
            raise APIError.from_response(response, endpoint)
        if not response.content:
            return None
        return response.json()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
        allow_missing: bool = False,
    ) -> Optional[dict]:
        return await asyncio.to_thread(self._request_sync, method, endpoint, params, body, allow_missing)

    @staticmethod
    def _operations_path(kind: OperationKind, wallet_id: str, address_id: str) -> str:
        return f"v1/wallets/{wallet_id}/addresses/{address_id}/{kind.value}"

    @staticmethod
    def _balances_path(wallet_id: str, address_id: Optional[str] = None) -> str:
        if address_id:
            return f"v1/wallets/{wallet_id}/addresses/{address_id}/balances"
        return f"v1/wallets/{wallet_id}/balances"

    # =========================================================================
    # Operations
    # =========================================================================

    async def create_operation(self, kind: OperationKind, wallet_id: str, address_id: str, body: dict) -> dict:
        """Create a transfer, trade, invocation, staking operation or contract."""
        return await self._request("POST", self._operations_path(kind, wallet_id, address_id), body=body)

    async def broadcast_operation(
        self,
        kind: OperationKind,
        wallet_id: str,
        address_id: str,
        operation_id: str,
        body: dict,
    ) -> dict:
        """Submit locally signed payload(s) for an operation."""
        endpoint = f"{self._operations_path(kind, wallet_id, address_id)}/{operation_id}/{kind.broadcast_action}"
        return await self._request("POST", endpoint, body=body)

    async def get_operation(self, kind: OperationKind, wallet_id: str, address_id: str, operation_id: str) -> dict:
        endpoint = f"{self._operations_path(kind, wallet_id, address_id)}/{operation_id}"
        return await self._request("GET", endpoint)

    async def list_operations(
        self,
        kind: OperationKind,
        wallet_id: str,
        address_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: Optional[str] = None,
    ) -> dict:
        """One page of operations: ``{data, has_more, next_page}``."""
        params = {"limit": page_size}
        if page:
            params["page"] = page
        return await self._request("GET", self._operations_path(kind, wallet_id, address_id), params=params)

    # =========================================================================
    # Balances and Assets
    # =========================================================================

    async def list_balances(self, wallet_id: str, address_id: Optional[str] = None, page: Optional[str] = None) -> dict:
        params = {"page": page} if page else None
        return await self._request("GET", self._balances_path(wallet_id, address_id), params=params)

    async def get_balance(self, wallet_id: str, asset_id: str, address_id: Optional[str] = None) -> Optional[dict]:
        """Balance model for one asset, or None when the server has no record."""
        endpoint = f"{self._balances_path(wallet_id, address_id)}/{asset_id}"
        return await self._request("GET", endpoint, allow_missing=True)

    async def list_historical_balances(
        self,
        network_id: str,
        address_id: str,
        asset_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: Optional[str] = None,
    ) -> dict:
        params = {"limit": page_size}
        if page:
            params["page"] = page
        endpoint = f"v1/networks/{network_id}/addresses/{address_id}/balance_history/{asset_id}"
        return await self._request("GET", endpoint, params=params)

    async def get_asset(self, network_id: str, asset_id: str) -> dict:
        return await self._request("GET", f"v1/networks/{network_id}/assets/{asset_id}")

    # =========================================================================
    # Staking, Faucet, Addresses
    # =========================================================================

    async def get_staking_context(self, body: dict) -> dict:
        return await self._request("POST", "v1/stake/context", body=body)

    async def search_staking_rewards(
        self,
        body: dict,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: Optional[str] = None,
    ) -> dict:
        """One page of daily staking rewards for the addresses in ``body``."""
        params = {"limit": page_size}
        if page:
            params["page"] = page
        return await self._request("POST", "v1/stake/rewards/search", params=params, body=body)

    async def request_faucet_funds(self, wallet_id: str, address_id: str, asset_id: Optional[str] = None) -> dict:
        params = {"asset_id": asset_id} if asset_id else None
        endpoint = f"v1/wallets/{wallet_id}/addresses/{address_id}/faucet"
        return await self._request("POST", endpoint, params=params)

    async def get_faucet_transaction(self, network_id: str, address_id: str, tx_hash: str) -> dict:
        endpoint = f"v1/networks/{network_id}/addresses/{address_id}/faucet/{tx_hash}"
        return await self._request("GET", endpoint)

    async def get_wallet(self, wallet_id: str) -> dict:
        return await self._request("GET", f"v1/wallets/{wallet_id}")

    async def list_addresses(self, wallet_id: str, page: Optional[str] = None) -> dict:
        params = {"page": page} if page else None
        return await self._request("GET", f"v1/wallets/{wallet_id}/addresses", params=params)

    async def get_address(self, wallet_id: str, address_id: str) -> dict:
        return await self._request("GET", f"v1/wallets/{wallet_id}/addresses/{address_id}")
