"""
Unit tests for lifecycle event hooks.
"""

import pytest

from walletsdk.events import Event, EventEmitter, EventType
from walletsdk.models import TransactionStatus
from walletsdk.operations import Transfer

from conftest import TX_HASH, transfer_model


class TestEvent:

    @pytest.mark.unit
    def test_snapshot_of_operation(self):
        transfer = Transfer(transfer_model("broadcast", transaction_hash=TX_HASH), None)

        event = Event.for_operation(EventType.ON_POLL, transfer, attempt=2)

        assert event.operation_id == "transfer-1"
        assert event.kind == "Transfer"
        assert event.status == TransactionStatus.BROADCAST.value
        assert event.tx_hash == TX_HASH
        assert event.attempt == 2

    @pytest.mark.unit
    def test_without_operation(self):
        event = Event.for_operation(EventType.BEFORE_CREATE)
        assert event.operation_id is None
        assert event.status is None


class TestEventEmitter:
    """Tests for EventEmitter."""

    @pytest.mark.unit
    def test_decorator_registers_several_types(self):
        emitter = EventEmitter()
        seen = []

        @emitter.on(EventType.ON_TERMINAL, EventType.ON_TIMEOUT)
        def settled(event):
            seen.append((event.type, event.operation_id))

        transfer = Transfer(transfer_model(), None)
        emitter.emit(EventType.ON_TERMINAL, transfer)
        emitter.emit(EventType.ON_TIMEOUT, transfer)
        emitter.emit(EventType.ON_POLL, transfer)

        assert seen == [
            (EventType.ON_TERMINAL, "transfer-1"),
            (EventType.ON_TIMEOUT, "transfer-1"),
        ]

    @pytest.mark.unit
    def test_emit_returns_event(self):
        emitter = EventEmitter()
        event = emitter.emit(EventType.ON_ERROR, stage="create", error=ValueError("bad"))
        assert event.stage == "create"
        assert isinstance(event.error, ValueError)

    @pytest.mark.unit
    def test_handler_error_reported(self):
        emitter = EventEmitter()
        errors = []

        def broken(event):
            raise RuntimeError("handler failed")

        emitter.add_handler(EventType.BEFORE_BROADCAST, broken)
        emitter.add_handler(EventType.ON_ERROR, errors.append)

        emitter.emit(EventType.BEFORE_BROADCAST, Transfer(transfer_model(), None))

        assert len(errors) == 1
        assert errors[0].stage == "handler"
        assert errors[0].operation_id == "transfer-1"
        assert isinstance(errors[0].error, RuntimeError)

    @pytest.mark.unit
    def test_failing_error_handler_does_not_recurse(self):
        emitter = EventEmitter()
        calls = []

        def broken(event):
            calls.append(event.type)
            raise RuntimeError("still broken")

        emitter.add_handler(EventType.ON_ERROR, broken)
        emitter.emit(EventType.ON_ERROR, stage="wait")

        assert calls == [EventType.ON_ERROR]
