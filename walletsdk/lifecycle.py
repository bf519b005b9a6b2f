"""
WalletSDK - Operation Lifecycle

Drives an operation from creation to a terminal state:

    create -> sign -> broadcast -> poll until terminal (or timeout)

Every kind of operation goes through the same loop; per-kind behaviour is
supplied as closures by the caller.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .constants import DEFAULT_INTERVAL_SECONDS, DEFAULT_TIMEOUT_SECONDS
from .errors import MissingSignerError, TimeoutError, WalletSDKError
from .events import EventEmitter, EventType
from .logging import StructuredLogger

CreateFn = Callable[[], Awaitable[Any]]
SignFn = Callable[[Any], Any]
BroadcastFn = Callable[[Any], Awaitable[Any]]


async def wait_until(
    reload: Callable[[], Awaitable[Any]],
    is_terminal: Callable[[], bool],
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    operation_id: Optional[str] = None,
) -> float:
    """
    Reload until ``is_terminal()`` holds.

    Each round sleeps ``min(interval, remaining)``, reloads, then checks
    the predicate. Nothing is reloaded if the target is already terminal.

    Returns:
        Seconds elapsed.

    Raises:
        TimeoutError: If ``timeout_seconds`` elapse first.
    """
    start = time.monotonic()
    if is_terminal():
        return 0.0

    while True:
        elapsed = time.monotonic() - start
        if elapsed >= timeout_seconds:
            raise TimeoutError(elapsed, operation_id)

        await asyncio.sleep(min(interval_seconds, timeout_seconds - elapsed))
        await reload()

        if is_terminal():
            return time.monotonic() - start


class OperationLifecycle:
    """
    Shared create/sign/broadcast/wait orchestration.

    Signing happens locally when a key provider is configured and the
    server signer is not in use. With a server signer, the platform signs
    and broadcasts and the lifecycle only polls.

    Example:
        lifecycle = OperationLifecycle(key_provider=MemoryKeyProvider(key))

        transfer = await lifecycle.execute(
            lambda: address.create_transfer(body),
            timeout_seconds=30,
        )
    """

    def __init__(
        self,
        key_provider=None,
        use_server_signer: bool = False,
        events: Optional[EventEmitter] = None,
        logger: Optional[StructuredLogger] = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.key_provider = key_provider
        self.use_server_signer = use_server_signer
        self.events = events or EventEmitter()
        self.logger = logger or StructuredLogger(logging.getLogger("walletsdk.lifecycle"))
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds

    @property
    def signs_locally(self) -> bool:
        return self.key_provider is not None and not self.use_server_signer

    def require_signer(self, operation: str = "create operation") -> None:
        """
        Raises:
            MissingSignerError: If neither a key provider nor the server
                signer is available.
        """
        if not self.use_server_signer and self.key_provider is None:
            raise MissingSignerError(operation)

    # =========================================================================
    # Orchestration
    # =========================================================================

    async def execute(
        self,
        create_fn: CreateFn,
        sign_fn: Optional[SignFn] = None,
        broadcast_fn: Optional[BroadcastFn] = None,
        *,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Create an operation and drive it to a terminal state.

        Args:
            create_fn: Coroutine function returning the new Operation.
            sign_fn: Signs an Operation in place (default: ``op.sign(key_provider)``).
            broadcast_fn: Coroutine function submitting signed payloads
                (default: ``op.broadcast()``).
            interval_seconds: Poll interval override.
            timeout_seconds: Poll timeout override.

        Returns:
            The Operation in its final state. A FAILED operation is returned,
            not raised.

        Raises:
            MissingSignerError: Before creation, if no signer is available.
            TimeoutError: If the operation does not settle in time.
        """
        self.require_signer()

        self.events.emit(EventType.BEFORE_CREATE)
        try:
            with self.logger.stage("create") as stage:
                operation = await create_fn()
                stage.operation = operation
        except WalletSDKError as e:
            self.events.emit(EventType.ON_ERROR, stage="create", error=e)
            raise
        self.events.emit(EventType.AFTER_CREATE, operation)

        if self.signs_locally:
            await self._sign_and_broadcast(operation, sign_fn, broadcast_fn)

        return await self.wait(
            operation,
            sign_fn,
            broadcast_fn,
            interval_seconds=interval_seconds,
            timeout_seconds=timeout_seconds,
        )

    async def wait(
        self,
        operation,
        sign_fn: Optional[SignFn] = None,
        broadcast_fn: Optional[BroadcastFn] = None,
        *,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Poll an operation until terminal.

        Transactions that appear unsigned between polls (multi-step staking)
        are signed and broadcast locally when a key provider is in use.
        """
        interval = interval_seconds or self.interval_seconds
        timeout = timeout_seconds or self.timeout_seconds
        start = time.monotonic()
        attempts = 0

        async def poll():
            nonlocal attempts
            attempts += 1
            await operation.reload()
            if self.signs_locally and operation.needs_signature():
                await self._sign_and_broadcast(operation, sign_fn, broadcast_fn)
            elapsed = time.monotonic() - start
            self.logger.poll(operation, attempts, elapsed)
            self.events.emit(EventType.ON_POLL, operation, attempt=attempts, elapsed_seconds=elapsed)

        try:
            elapsed = await wait_until(poll, operation.is_terminal, interval, timeout, operation.id)
        except TimeoutError as e:
            self.logger.record(
                logging.WARNING, "wait", "Operation did not settle", operation,
                attempt=attempts, elapsed_ms=round(e.elapsed_seconds * 1000, 3),
            )
            self.events.emit(EventType.ON_TIMEOUT, operation, attempt=attempts,
                             elapsed_seconds=e.elapsed_seconds, error=e)
            raise
        except WalletSDKError as e:
            self.events.emit(EventType.ON_ERROR, operation, stage="wait", attempt=attempts, error=e)
            raise

        self.logger.record(
            logging.INFO, "wait", "Operation settled", operation,
            attempt=attempts, elapsed_ms=round(elapsed * 1000, 3),
        )
        self.events.emit(EventType.ON_TERMINAL, operation, attempt=attempts, elapsed_seconds=elapsed)
        return operation

    async def _sign_and_broadcast(self, operation, sign_fn=None, broadcast_fn=None) -> None:
        if not operation.needs_signature():
            return

        stage = "sign"
        try:
            self.events.emit(EventType.BEFORE_SIGN, operation)
            with self.logger.stage("sign", operation):
                if sign_fn is not None:
                    sign_fn(operation)
                else:
                    operation.sign(self.key_provider)
            self.events.emit(EventType.AFTER_SIGN, operation)

            stage = "broadcast"
            self.events.emit(EventType.BEFORE_BROADCAST, operation)
            with self.logger.stage("broadcast", operation):
                if broadcast_fn is not None:
                    await broadcast_fn(operation)
                else:
                    await operation.broadcast()
        except WalletSDKError as e:
            self.events.emit(EventType.ON_ERROR, operation, stage=stage, error=e)
            raise
        self.events.emit(EventType.AFTER_BROADCAST, operation)
