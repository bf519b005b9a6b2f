"""
WalletSDK - Key Providers

Abstract interface for key management with multiple backend implementations.
Separates key storage/signing from SDK logic so private keys never travel
through the operation objects.
"""

import os
from abc import ABC, abstractmethod
from typing import Optional

from eth_account import Account
from embit import bip32, bip39

from .constants import ADDRESS_PATH_PREFIX
from .payload import TransactionRequest


class KeyProvider(ABC):
    """
    Abstract base class for key providers.

    Implementations hold an EVM private key and sign decoded transaction
    requests without exposing the key to the SDK core.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed address controlled by this key."""
        pass

    @abstractmethod
    def sign_transaction(self, request: TransactionRequest) -> str:
        """
        Sign a transaction request.

        Args:
            request: Decoded unsigned transaction.

        Returns:
            0x-prefixed hex of the signed, serialized transaction.
        """
        pass

    @abstractmethod
    def sign_typed_data(self, typed_data: dict) -> str:
        """Sign EIP-712 typed data; returns the 0x-prefixed signature."""
        pass

    @abstractmethod
    def sign_hash(self, message_hash: str) -> str:
        """Sign a 32-byte hash as-is; returns the 0x-prefixed signature."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address})"

    def __str__(self) -> str:
        return self.__repr__()

    def __getstate__(self):
        raise TypeError(f"{type(self).__name__} cannot be pickled (contains secret material)")

    def __reduce__(self):
        raise TypeError(f"{type(self).__name__} cannot be pickled (contains secret material)")


class _AccountKeyProvider(KeyProvider):
    """Signs with an ``eth_account`` local account."""

    def __init__(self, private_key_hex: str):
        key = private_key_hex[2:] if private_key_hex.startswith("0x") else private_key_hex
        if len(key) != 64:
            raise ValueError("Private key must be 64 hex characters (32 bytes)")
        self._account = Account.from_key(bytes.fromhex(key))

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, request: TransactionRequest) -> str:
        signed = self._account.sign_transaction(request.to_signable())
        return "0x" + bytes(signed.raw_transaction).hex()

    def sign_typed_data(self, typed_data: dict) -> str:
        signed = self._account.sign_typed_data(full_message=typed_data)
        return "0x" + bytes(signed.signature).hex()

    def sign_hash(self, message_hash: str) -> str:
        digest = message_hash[2:] if message_hash.startswith("0x") else message_hash
        if len(digest) != 64:
            raise ValueError("Hash must be 64 hex characters (32 bytes)")
        signed = self._account.unsafe_sign_hash(bytes.fromhex(digest))
        return "0x" + bytes(signed.signature).hex()


class MemoryKeyProvider(_AccountKeyProvider):
    """
    Key provider with key in memory.

    WARNING: Only use for testing or when key is already in memory.
    For production, prefer EnvKeyProvider.

    Example:
        provider = MemoryKeyProvider("abc123...")
    """
    pass


class EnvKeyProvider(_AccountKeyProvider):
    """
    Key provider that reads the private key from an environment variable.

    Example:
        export WALLETSDK_PRIVATE_KEY="abc123..."

        provider = EnvKeyProvider()
    """

    def __init__(self, env_var: str = "WALLETSDK_PRIVATE_KEY"):
        private_key_hex = os.environ.get(env_var)
        if not private_key_hex:
            raise ValueError(
                f"Environment variable {env_var} not set. "
                f"Set it with: export {env_var}=<your-private-key-hex>"
            )
        super().__init__(private_key_hex)


class FileKeyProvider(_AccountKeyProvider):
    """
    Key provider that reads from a file.

    WARNING: Only for development. Never store unencrypted keys in files
    in production environments.
    """

    def __init__(self, key_file_path: str):
        with open(key_file_path, 'r') as f:
            private_key_hex = f.read().strip()
        super().__init__(private_key_hex)


class SeedKeyProvider(_AccountKeyProvider):
    """
    Key provider deriving an address key from a wallet seed.

    Uses BIP-32 derivation at ``m/44'/60'/0'/0/{index}``, the path wallet
    addresses are registered under.

    Example:
        provider = SeedKeyProvider(seed_hex, index=0)
        provider = SeedKeyProvider.from_mnemonic("abandon ... about")
    """

    def __init__(self, seed_hex: str, index: int = 0):
        if index < 0:
            raise ValueError("Address index must not be negative")
        root = bip32.HDKey.from_seed(bytes.fromhex(seed_hex))
        child = root.derive(f"{ADDRESS_PATH_PREFIX}/{index}")
        self.index = index
        super().__init__(child.key.secret.hex())

    @classmethod
    def from_mnemonic(cls, mnemonic: str, index: int = 0, passphrase: str = "") -> "SeedKeyProvider":
        seed = bip39.mnemonic_to_seed(mnemonic, password=passphrase)
        return cls(seed.hex(), index=index)


def load_key_provider(private_key: Optional[str] = None, env_var: Optional[str] = None) -> Optional[KeyProvider]:
    """Build a provider from an explicit key or an environment variable, if any."""
    if private_key:
        return MemoryKeyProvider(private_key)
    if env_var and os.environ.get(env_var):
        return EnvKeyProvider(env_var)
    return None
