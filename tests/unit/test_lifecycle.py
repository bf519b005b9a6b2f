"""
Unit tests for the operation lifecycle and the shared wait loop.
"""

import json
import logging
import pytest
from unittest.mock import AsyncMock, Mock

from walletsdk.errors import MissingSignerError, TimeoutError
from walletsdk.events import EventType
from walletsdk.lifecycle import OperationLifecycle, wait_until
from walletsdk.logging import StructuredLogger
from walletsdk.models import OperationKind, StakingOperationStatus, TransactionStatus
from walletsdk.operations import StakingOperation, Transfer

from conftest import (
    ADDRESS_ID,
    TX_HASH,
    WALLET_ID,
    sponsored_transfer_model,
    transaction_model,
    transfer_model,
)


def staking_model(status="initialized", transactions=None) -> dict:
    return {
        "id": "stake-1",
        "wallet_id": WALLET_ID,
        "address_id": ADDRESS_ID,
        "network_id": "base-sepolia",
        "status": status,
        "transactions": transactions if transactions is not None else [transaction_model()],
    }


class TestWaitUntil:
    """Tests for the shared poll loop."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        reload = AsyncMock()
        with pytest.raises(TimeoutError) as exc:
            await wait_until(reload, lambda: False, interval_seconds=0.01, timeout_seconds=0.05,
                             operation_id="op-1")

        assert exc.value.elapsed_seconds >= 0.05
        assert exc.value.operation_id == "op-1"
        assert reload.await_count >= 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_after_two_reloads(self):
        statuses = iter([TransactionStatus.BROADCAST, TransactionStatus.COMPLETE])
        state = {"status": TransactionStatus.PENDING, "reloads": 0}

        async def reload():
            state["reloads"] += 1
            state["status"] = next(statuses)

        await wait_until(reload, lambda: state["status"].is_terminal, interval_seconds=0.01, timeout_seconds=1)
        assert state["reloads"] == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_already_terminal(self):
        reload = AsyncMock()
        assert await wait_until(reload, lambda: True, 0.01, 1) == 0.0
        reload.assert_not_awaited()


class TestSignerRequirement:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_signer_before_create(self):
        lifecycle = OperationLifecycle()
        create = AsyncMock()

        with pytest.raises(MissingSignerError):
            await lifecycle.execute(create)
        create.assert_not_awaited()

    @pytest.mark.unit
    def test_server_signer_does_not_sign_locally(self, key_provider):
        lifecycle = OperationLifecycle(key_provider=key_provider, use_server_signer=True)
        assert not lifecycle.signs_locally
        lifecycle.require_signer()


class TestExecute:
    """Tests for create -> sign -> broadcast -> wait."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_local_signing_flow(self, mock_api, lifecycle):
        mock_api.create_operation.return_value = transfer_model()
        mock_api.broadcast_operation.return_value = transfer_model("broadcast", transaction_hash=TX_HASH)
        mock_api.get_operation.return_value = transfer_model("complete", transaction_hash=TX_HASH)

        async def create():
            model = await mock_api.create_operation(OperationKind.TRANSFER, WALLET_ID, ADDRESS_ID, {})
            return Transfer(model, mock_api)

        transfer = await lifecycle.execute(create)

        assert transfer.get_status() is TransactionStatus.COMPLETE
        assert transfer.get_transaction_hash() == TX_HASH
        body = mock_api.broadcast_operation.await_args.args[4]
        assert not body["signed_payload"].startswith("0x")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_signer_skips_sign_and_broadcast(self, mock_api, key_provider):
        lifecycle = OperationLifecycle(key_provider=key_provider, use_server_signer=True,
                                       interval_seconds=0.01, timeout_seconds=1)
        mock_api.get_operation.return_value = transfer_model("complete", transaction_hash=TX_HASH)
        sign = Mock()
        broadcast = AsyncMock()

        async def create():
            return Transfer(transfer_model(), mock_api)

        transfer = await lifecycle.execute(create, sign, broadcast)

        assert transfer.is_terminal()
        sign.assert_not_called()
        broadcast.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_custom_closures(self, mock_api, lifecycle):
        mock_api.get_operation.return_value = transfer_model("complete", transaction_hash=TX_HASH)
        sign = Mock()
        broadcast = AsyncMock()

        async def create():
            return Transfer(transfer_model(), mock_api)

        await lifecycle.execute(create, sign, broadcast)

        sign.assert_called_once()
        broadcast.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_is_returned(self, mock_api, lifecycle):
        mock_api.broadcast_operation.return_value = transfer_model("broadcast", transaction_hash=TX_HASH)
        mock_api.get_operation.return_value = transfer_model("failed", transaction_hash=TX_HASH)

        async def create():
            return Transfer(transfer_model(), mock_api)

        transfer = await lifecycle.execute(create)
        assert transfer.get_status() is TransactionStatus.FAILED

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_emits_event(self, mock_api, key_provider):
        lifecycle = OperationLifecycle(key_provider=key_provider, interval_seconds=0.01, timeout_seconds=0.05)
        mock_api.broadcast_operation.return_value = transfer_model("broadcast", transaction_hash=TX_HASH)
        mock_api.get_operation.return_value = transfer_model("broadcast", transaction_hash=TX_HASH)
        timeouts = []
        lifecycle.events.add_handler(EventType.ON_TIMEOUT, timeouts.append)

        async def create():
            return Transfer(transfer_model(), mock_api)

        with pytest.raises(TimeoutError):
            await lifecycle.execute(create)
        assert len(timeouts) == 1
        assert timeouts[0].operation_id == "transfer-1"
        assert timeouts[0].attempt >= 1
        assert timeouts[0].elapsed_seconds >= 0.05

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_event_order(self, mock_api, lifecycle):
        mock_api.broadcast_operation.return_value = transfer_model("broadcast", transaction_hash=TX_HASH)
        mock_api.get_operation.return_value = transfer_model("complete", transaction_hash=TX_HASH)
        seen = []
        lifecycle.events.on(*EventType)(lambda event: seen.append(event.type))

        async def create():
            return Transfer(transfer_model(), mock_api)

        await lifecycle.execute(create)

        assert seen == [
            EventType.BEFORE_CREATE,
            EventType.AFTER_CREATE,
            EventType.BEFORE_SIGN,
            EventType.AFTER_SIGN,
            EventType.BEFORE_BROADCAST,
            EventType.AFTER_BROADCAST,
            EventType.ON_POLL,
            EventType.ON_TERMINAL,
        ]


class TestMultiStepStaking:
    """Transactions issued while polling are signed and broadcast."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_resigns_new_transactions(self, mock_api, lifecycle):
        second_payload = transaction_model()["unsigned_payload"]
        mock_api.broadcast_operation.side_effect = [
            staking_model("pending", [transaction_model("broadcast", transaction_hash=TX_HASH)]),
            staking_model("pending", [
                transaction_model("complete", transaction_hash=TX_HASH),
                transaction_model("broadcast", transaction_hash="0x" + "cd" * 32),
            ]),
        ]
        mock_api.get_operation.side_effect = [
            staking_model("pending", [
                transaction_model("complete", transaction_hash=TX_HASH),
                transaction_model("pending", unsigned_payload=second_payload),
            ]),
            staking_model("complete", [
                transaction_model("complete", transaction_hash=TX_HASH),
                transaction_model("complete", transaction_hash="0x" + "cd" * 32),
            ]),
        ]

        async def create():
            return StakingOperation(staking_model(), mock_api)

        operation = await lifecycle.execute(create)

        assert operation.get_status() is StakingOperationStatus.COMPLETE
        indices = [call.args[4]["transaction_index"] for call in mock_api.broadcast_operation.await_args_list]
        assert indices == [0, 1]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_created_empty_then_populated_on_reload(self, mock_api, lifecycle):
        mock_api.get_operation.side_effect = [
            staking_model("pending", [transaction_model()]),
            staking_model("complete", [transaction_model("complete", transaction_hash=TX_HASH)]),
        ]
        mock_api.broadcast_operation.return_value = staking_model(
            "pending", [transaction_model("broadcast", transaction_hash=TX_HASH)])

        async def create():
            return StakingOperation(staking_model("initialized", []), mock_api)

        operation = await lifecycle.execute(create)

        assert operation.get_status() is StakingOperationStatus.COMPLETE
        assert mock_api.get_operation.await_count == 2
        assert mock_api.broadcast_operation.await_args.args[4]["transaction_index"] == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_created_empty_keeps_polling(self, mock_api, key_provider):
        lifecycle = OperationLifecycle(key_provider=key_provider, interval_seconds=0.01, timeout_seconds=0.05)
        mock_api.get_operation.return_value = staking_model("pending", [])

        async def create():
            return StakingOperation(staking_model("initialized", []), mock_api)

        with pytest.raises(TimeoutError):
            await lifecycle.execute(create)
        assert mock_api.get_operation.await_count >= 1
        mock_api.broadcast_operation.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_broadcast_with_zero_transactions_completes(self, mock_api, lifecycle):
        mock_api.broadcast_operation.return_value = staking_model("pending", [])

        async def create():
            return StakingOperation(staking_model(), mock_api)

        operation = await lifecycle.execute(create)

        assert operation.get_status() is StakingOperationStatus.COMPLETE
        mock_api.get_operation.assert_not_awaited()


class TestGaslessTransferLifecycle:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_signs_typed_data_and_polls(self, mock_api, lifecycle):
        mock_api.broadcast_operation.return_value = sponsored_transfer_model("submitted")
        mock_api.get_operation.return_value = sponsored_transfer_model("complete", transaction_hash=TX_HASH)

        async def create():
            return Transfer(sponsored_transfer_model(), mock_api)

        transfer = await lifecycle.execute(create)

        assert transfer.get_status() is TransactionStatus.COMPLETE
        assert transfer.get_transaction_hash() == TX_HASH
        body = mock_api.broadcast_operation.await_args.args[4]
        assert body["signed_payload"].startswith("0x")
        assert len(body["signed_payload"]) == 132


class TestPollReporting:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_poll_events_count_attempts(self, mock_api, lifecycle):
        mock_api.broadcast_operation.return_value = transfer_model("broadcast", transaction_hash=TX_HASH)
        mock_api.get_operation.side_effect = [
            transfer_model("broadcast", transaction_hash=TX_HASH),
            transfer_model("complete", transaction_hash=TX_HASH),
        ]
        polls, settled = [], []
        lifecycle.events.add_handler(EventType.ON_POLL, polls.append)
        lifecycle.events.add_handler(EventType.ON_TERMINAL, settled.append)

        async def create():
            return Transfer(transfer_model(), mock_api)

        await lifecycle.execute(create)

        assert [event.attempt for event in polls] == [1, 2]
        assert [event.status for event in polls] == ["broadcast", "complete"]
        assert settled[0].attempt == 2
        assert settled[0].kind == "Transfer"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_settle_logged_with_operation_id(self, mock_api, key_provider, caplog):
        caplog.set_level(logging.DEBUG, logger="tests.lifecycle")
        lifecycle = OperationLifecycle(key_provider=key_provider, interval_seconds=0.01, timeout_seconds=1,
                                       logger=StructuredLogger(logging.getLogger("tests.lifecycle")))
        mock_api.broadcast_operation.return_value = transfer_model("broadcast", transaction_hash=TX_HASH)
        mock_api.get_operation.return_value = transfer_model("complete", transaction_hash=TX_HASH)

        async def create():
            return Transfer(transfer_model(), mock_api)

        await lifecycle.execute(create)

        records = [json.loads(r.getMessage()) for r in caplog.records if r.name == "tests.lifecycle"]
        assert [r["stage"] for r in records] == ["create", "sign", "broadcast", "poll", "wait"]
        assert records[-1]["operation_id"] == "transfer-1"
        assert records[-1]["status"] == "complete"
        assert records[-1]["attempt"] == 1
