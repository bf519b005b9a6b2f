"""
WalletSDK - Main Client

High-level entry point. Builds the API client, chain node client,
lifecycle and amount normalizer from a ClientConfig and hands them to
the wallets and addresses it returns.
"""

import logging
from pathlib import Path
from typing import List, Optional

import requests

from .address import WalletAddress
from .amounts import AmountNormalizer
from .config import ClientConfig
from .events import EventEmitter
from .infra.api import LedgerAPI, drain_pages
from .infra.node import NodeRPC
from .lifecycle import OperationLifecycle
from .logging import StructuredLogger
from .models import Asset
from .providers import load_key_provider
from .wallet import Wallet

API_KEY_HEADER = "X-Api-Key-Name"
PRIVATE_KEY_ENV = "WALLETSDK_PRIVATE_KEY"


class WalletClient:
    """
    High-level client for the wallet platform.

    Example:
        client = WalletClient.from_config("client_config.json",
                                          key_provider=EnvKeyProvider())

        address = await client.get_address(wallet_id, address_id)
        transfer = await address.transfer("0.5", "eth", "0xRecipient...")

        @client.events.on(EventType.ON_TERMINAL)
        def settled(event):
            print(event.operation_id, event.status)
    """

    def __init__(
        self,
        config: ClientConfig,
        key_provider=None,
        api: Optional[LedgerAPI] = None,
        node: Optional[NodeRPC] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize client.

        Args:
            config: Client configuration.
            key_provider: Signs transactions locally; not needed with the
                server signer.
            api: Optional LedgerAPI instance.
            node: Optional NodeRPC instance; built from ``config.node_urls``
                when omitted.
            session: Optional requests session shared by the built clients.
            logger: Optional Python logger for structured logging.
        """
        self.config = config
        self.api = api or LedgerAPI(
            base_url=config.api_base_url,
            session=session,
            headers={API_KEY_HEADER: config.api_key_name},
            timeout=config.request_timeout,
            debugging=config.debugging,
        )

        node_url = config.node_url()
        if node is None and node_url:
            node = NodeRPC(node_url, session=session, timeout=config.request_timeout)
        self.node = node

        self.normalizer = AmountNormalizer()
        self.events = EventEmitter(logger)
        self.logger = StructuredLogger(logger=logger or logging.getLogger("walletsdk.client"))
        self.lifecycle = OperationLifecycle(
            key_provider=key_provider,
            use_server_signer=config.use_server_signer,
            events=self.events,
            logger=self.logger,
            interval_seconds=config.interval_seconds,
            timeout_seconds=config.timeout_seconds,
        )

    @classmethod
    def from_config(cls, config_path: str, key_provider=None) -> "WalletClient":
        """Create client from a JSON config file."""
        return cls(ClientConfig.from_file(str(Path(config_path))), key_provider=key_provider)

    @classmethod
    def from_env(cls, key_provider=None) -> "WalletClient":
        """
        Create client from ``WALLETSDK_*`` environment variables.

        ``WALLETSDK_PRIVATE_KEY``, when set, supplies the key provider.
        """
        config = ClientConfig.from_env()
        provider = key_provider or load_key_provider(env_var=PRIVATE_KEY_ENV)
        return cls(config, key_provider=provider)

    @property
    def key_provider(self):
        return self.lifecycle.key_provider

    # =========================================================================
    # Wallets and Addresses
    # =========================================================================

    def wallet(self, model: dict) -> Wallet:
        """Wrap a wallet model with this client's collaborators."""
        return Wallet(model, self.api, self.lifecycle, self.node, self.normalizer)

    def address(self, model: dict) -> WalletAddress:
        """Wrap an address model with this client's collaborators."""
        return WalletAddress(model, self.api, self.lifecycle, self.node, self.normalizer)

    async def get_wallet(self, wallet_id: str) -> Wallet:
        return self.wallet(await self.api.get_wallet(wallet_id))

    async def get_address(self, wallet_id: str, address_id: str) -> WalletAddress:
        return self.address(await self.api.get_address(wallet_id, address_id))

    async def list_addresses(self, wallet_id: str) -> List[WalletAddress]:
        models = await drain_pages(lambda page: self.api.list_addresses(wallet_id, page))
        return [self.address(model) for model in models]

    async def get_asset(self, asset_id: str, network_id: Optional[str] = None) -> Asset:
        """Fetch an asset and make its precision known to the normalizer."""
        network = network_id or self.config.network_id
        primary = self.normalizer.resolve_primary_asset_id(asset_id)
        asset = Asset.from_model(await self.api.get_asset(network, primary), asset_id)
        self.normalizer.register(asset)
        return asset
