"""
WalletSDK - Error Types

Specific exception classes for better error handling and debugging.
"""

from typing import Optional, Dict, Type


class WalletSDKError(Exception):
    """Base exception for all WalletSDK errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InternalError(WalletSDKError):
    """Unexpected state inside the SDK."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(WalletSDKError):
    """Error in SDK configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""

    def __init__(self, key: str, source: Optional[str] = None):
        super().__init__(f"Missing required configuration: {key}", {"key": key, "source": source})
        self.key = key
        self.source = source


# =============================================================================
# Validation Errors
# =============================================================================

class ArgumentError(WalletSDKError):
    """An argument is invalid for the requested operation."""
    pass


class InsufficientFundsError(ArgumentError):
    """Not enough funds to complete the operation."""

    def __init__(self, requested, available, message: Optional[str] = None):
        msg = message or f"Insufficient funds: {requested} requested, but only {available} available"
        super().__init__(msg, {"requested": str(requested), "available": str(available)})
        self.requested = requested
        self.available = available


class UnsupportedAssetError(WalletSDKError):
    """No decimal precision can be resolved for the asset."""

    def __init__(self, asset_id: str, network_id: Optional[str] = None):
        super().__init__(
            f"Unsupported asset: {asset_id}",
            {"asset_id": asset_id, "network_id": network_id}
        )
        self.asset_id = asset_id
        self.network_id = network_id


# =============================================================================
# Payload and Signing Errors
# =============================================================================

class InvalidUnsignedPayloadError(WalletSDKError):
    """Server-supplied unsigned payload could not be decoded."""

    def __init__(self, message: str = "Invalid unsigned payload"):
        super().__init__(message)


class SigningError(WalletSDKError):
    """Error during local transaction signing."""
    pass


class MissingSignerError(SigningError):
    """Local signing is required but no key provider is configured."""

    def __init__(self, operation: str = "sign"):
        super().__init__(
            f"Cannot {operation} without a private key loaded or a server signer",
            {"operation": operation}
        )
        self.operation = operation


class NotSignedError(SigningError):
    """Broadcast was requested for an unsigned transaction."""
    pass


# =============================================================================
# Lifecycle Errors
# =============================================================================

class TimeoutError(WalletSDKError):
    """Stopped waiting for an operation to reach a terminal state.

    The server-side operation is not cancelled and may still complete.
    """

    def __init__(self, elapsed_seconds: float, operation_id: Optional[str] = None, message: Optional[str] = None):
        label = operation_id or "operation"
        msg = message or f"Timed out waiting for {label} after {elapsed_seconds:.2f}s"
        super().__init__(msg, {"operation_id": operation_id, "elapsed_seconds": round(elapsed_seconds, 3)})
        self.elapsed_seconds = elapsed_seconds
        self.operation_id = operation_id


# =============================================================================
# Network Errors
# =============================================================================

class NetworkError(WalletSDKError):
    """Error communicating with the platform API or a chain node."""
    pass


class APIError(NetworkError):
    """Error returned by the platform API."""

    def __init__(
        self,
        message: str,
        http_code: Optional[int] = None,
        api_code: Optional[str] = None,
        api_message: Optional[str] = None,
        correlation_id: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(message, {
            "http_code": http_code,
            "api_code": api_code,
            "correlation_id": correlation_id,
            "endpoint": endpoint,
        })
        self.http_code = http_code
        self.api_code = api_code
        self.api_message = api_message
        self.correlation_id = correlation_id
        self.endpoint = endpoint

    @classmethod
    def from_response(cls, response, endpoint: Optional[str] = None) -> "APIError":
        """
        Build the most specific APIError for an HTTP error response.

        Args:
            response: A ``requests.Response`` with a non-2xx status.
            endpoint: Request path, for diagnostics.

        Returns:
            An APIError subclass selected by the body's ``code`` field.
        """
        api_code = None
        api_message = None
        correlation_id = None
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            api_code = body.get("code")
            api_message = body.get("message")
            correlation_id = body.get("correlation_id")

        correlation_id = correlation_id or response.headers.get("x-correlation-id")
        error_cls = API_ERROR_CODES.get(api_code, APIError)
        message = f"API request failed with status {response.status_code}"
        if api_message:
            message = f"{message}: {api_message}"

        return error_cls(
            message,
            http_code=response.status_code,
            api_code=api_code,
            api_message=api_message,
            correlation_id=correlation_id,
            endpoint=endpoint,
        )


class UnimplementedError(APIError):
    pass


class UnauthorizedError(APIError):
    pass


class InternalAPIError(APIError):
    pass


class NotFoundError(APIError):
    pass


class InvalidAmountError(APIError):
    pass


class InvalidPageError(APIError):
    pass


class InvalidLimitError(APIError):
    pass


class AlreadyExistsError(APIError):
    pass


class MalformedRequestError(APIError):
    pass


class UnsupportedAssetAPIError(APIError):
    pass


class InvalidAssetIDError(APIError):
    pass


class InvalidDestinationError(APIError):
    pass


class InvalidNetworkIDError(APIError):
    pass


class ResourceExhaustedError(APIError):
    """Rate or usage limit exceeded."""
    pass


class FaucetLimitReachedError(APIError):
    pass


class InvalidSignedPayloadError(APIError):
    pass


API_ERROR_CODES: Dict[Optional[str], Type[APIError]] = {
    "unimplemented": UnimplementedError,
    "unauthorized": UnauthorizedError,
    "internal": InternalAPIError,
    "not_found": NotFoundError,
    "invalid_amount": InvalidAmountError,
    "invalid_page_token": InvalidPageError,
    "invalid_page_limit": InvalidLimitError,
    "already_exists": AlreadyExistsError,
    "malformed_request": MalformedRequestError,
    "unsupported_asset": UnsupportedAssetAPIError,
    "invalid_asset_id": InvalidAssetIDError,
    "invalid_destination": InvalidDestinationError,
    "invalid_network_id": InvalidNetworkIDError,
    "resource_exhausted": ResourceExhaustedError,
    "faucet_limit_reached": FaucetLimitReachedError,
    "invalid_signed_payload": InvalidSignedPayloadError,
}


class NodeRPCError(NetworkError):
    """Error returned by a chain node JSON-RPC endpoint."""

    def __init__(self, message: str, rpc_code: Optional[int] = None, method: Optional[str] = None):
        super().__init__(message, {"rpc_code": rpc_code, "method": method})
        self.rpc_code = rpc_code
        self.method = method
