"""
WalletSDK - Structured Logging

One JSON record per lifecycle stage, keyed by operation id, kind and
status, so a single operation can be followed through create, sign,
broadcast and every poll attempt.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass
class LifecycleRecord:
    """A lifecycle stage of one operation."""
    stage: str
    message: str
    operation_id: Optional[str] = None
    kind: Optional[str] = None
    status: Optional[str] = None
    tx_hash: Optional[str] = None
    attempt: Optional[int] = None
    elapsed_ms: Optional[float] = None
    error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class StructuredLogger:
    """
    Writes lifecycle records through a standard library logger.

    Example:
        log = StructuredLogger(logging.getLogger("walletsdk"))

        with log.stage("broadcast", operation):
            await operation.broadcast()
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("walletsdk.lifecycle")

    def record(self, level: int, stage: str, message: str, operation=None, **fields) -> LifecycleRecord:
        """Emit a record, filling id, kind, status and hash from ``operation``."""
        if operation is not None:
            fields.setdefault("operation_id", operation.id)
            fields.setdefault("kind", type(operation).__name__)
            fields.setdefault("status", operation.get_status().value)
            fields.setdefault("tx_hash", operation.get_transaction_hash())
        entry = LifecycleRecord(stage=stage, message=message, **fields)
        if self._logger.isEnabledFor(level):
            self._logger.log(level, entry.to_json())
        return entry

    def poll(self, operation, attempt: int, elapsed_seconds: float) -> LifecycleRecord:
        return self.record(
            logging.DEBUG, "poll", "Polled operation", operation,
            attempt=attempt, elapsed_ms=round(elapsed_seconds * 1000, 3),
        )

    def stage(self, name: str, operation=None) -> "StageTimer":
        """Context manager timing one stage; set ``operation`` on it once known."""
        return StageTimer(self, name, operation)


class StageTimer:
    """Times a lifecycle stage and records its outcome without handling errors."""

    def __init__(self, logger: StructuredLogger, name: str, operation=None):
        self.logger = logger
        self.name = name
        self.operation = operation
        self.start_time: float = 0

    def __enter__(self) -> "StageTimer":
        self.start_time = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed_ms = round((time.monotonic() - self.start_time) * 1000, 3)
        if exc_val is not None:
            self.logger.record(
                logging.ERROR, self.name, f"{self.name} failed", self.operation,
                elapsed_ms=elapsed_ms, error=str(exc_val),
            )
        else:
            self.logger.record(
                logging.INFO, self.name, f"{self.name} done", self.operation,
                elapsed_ms=elapsed_ms,
            )
