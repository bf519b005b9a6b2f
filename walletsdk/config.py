"""
WalletSDK - Configuration Management

Handles loading and managing SDK configuration.
Private keys are not part of the configuration; see ``providers.py``.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .constants import (
    BASE_SEPOLIA,
    DEFAULT_API_URL,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_NODE_URLS,
    DEFAULT_TIMEOUT_SECONDS,
)
from .errors import ConfigurationError, MissingConfigError

ENV_PREFIX = "WALLETSDK_"


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ClientConfig:
    """
    Client configuration (PUBLIC).

    Safe to commit to version control: holds endpoints and polling
    defaults, never key material.

    Example client_config.json:
    {
        "api_key_name": "organizations/.../apiKeys/...",
        "network_id": "base-sepolia",
        "use_server_signer": false,
        "node_urls": {"base-sepolia": "https://sepolia.base.org"},
        "interval_seconds": 0.2,
        "timeout_seconds": 10
    }
    """
    api_key_name: str
    network_id: str = BASE_SEPOLIA
    api_base_url: str = DEFAULT_API_URL
    use_server_signer: bool = False
    node_urls: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_NODE_URLS))
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    request_timeout: float = 30
    debugging: bool = False

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ConfigurationError("interval_seconds must be positive", {"interval_seconds": self.interval_seconds})
        if self.timeout_seconds <= 0:
            raise ConfigurationError("timeout_seconds must be positive", {"timeout_seconds": self.timeout_seconds})

    def node_url(self, network_id: Optional[str] = None) -> Optional[str]:
        """Chain node URL for a network, if one is configured."""
        return self.node_urls.get(network_id or self.network_id)

    @classmethod
    def from_dict(cls, data: dict, source: Optional[str] = None) -> "ClientConfig":
        if not data.get("api_key_name"):
            raise MissingConfigError("api_key_name", source)

        node_urls = dict(DEFAULT_NODE_URLS)
        node_urls.update(data.get("node_urls") or {})

        return cls(
            api_key_name=data["api_key_name"],
            network_id=data.get("network_id", BASE_SEPOLIA),
            api_base_url=data.get("api_base_url", DEFAULT_API_URL),
            use_server_signer=_parse_bool(data.get("use_server_signer", False)),
            node_urls=node_urls,
            interval_seconds=float(data.get("interval_seconds", DEFAULT_INTERVAL_SECONDS)),
            timeout_seconds=float(data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            request_timeout=float(data.get("request_timeout", 30)),
            debugging=_parse_bool(data.get("debugging", False)),
        )

    @classmethod
    def from_file(cls, path: str) -> "ClientConfig":
        """Load configuration from a JSON file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(config_path) as f:
            data = json.load(f)

        return cls.from_dict(data, source=str(config_path))

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ClientConfig":
        """
        Load configuration from ``WALLETSDK_*`` environment variables.

        ``WALLETSDK_NODE_URL`` sets the node URL for the configured network.
        """
        env = os.environ if environ is None else environ
        data = {}
        for key in ("api_key_name", "network_id", "api_base_url", "use_server_signer",
                    "interval_seconds", "timeout_seconds", "request_timeout", "debugging"):
            value = env.get(ENV_PREFIX + key.upper())
            if value is not None:
                data[key] = value

        node_url = env.get(ENV_PREFIX + "NODE_URL")
        if node_url:
            data["node_urls"] = {data.get("network_id", BASE_SEPOLIA): node_url}

        return cls.from_dict(data, source="environment")
