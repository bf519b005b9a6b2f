"""
WalletSDK - Chain Node RPC

Minimal Ethereum JSON-RPC client used to observe broadcast transactions.
"""

import asyncio
import itertools
import logging
from typing import Any, Optional

import requests

from ..errors import NetworkError, NodeRPCError

logger = logging.getLogger(__name__)


class NodeRPC:
    """
    JSON-RPC client for an EVM node.

    Only the read calls needed to resolve transaction status are exposed.
    """

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 30):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self._ids = itertools.count(1)

    def _call_sync(self, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise NetworkError(f"Node request failed: {e}", {"method": method})
        except ValueError:
            raise NodeRPCError("Node returned invalid JSON", method=method)

        if body.get("error"):
            error = body["error"]
            raise NodeRPCError(error.get("message", "RPC error"), rpc_code=error.get("code"), method=method)

        logger.debug("%s -> %s", method, "found" if body.get("result") else "null")
        return body.get("result")

    async def call(self, method: str, *params) -> Any:
        return await asyncio.to_thread(self._call_sync, method, list(params))

    async def get_transaction(self, tx_hash: str) -> Optional[dict]:
        """Transaction by hash, or None if the node has not seen it."""
        return await self.call("eth_getTransactionByHash", tx_hash)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        """Receipt by hash, or None if the transaction is not yet mined."""
        return await self.call("eth_getTransactionReceipt", tx_hash)
