"""Tests for the scriptable mobile-money gateway used in development and tests."""

from payments.gateway import FakeGateway, ManualConfirmationResult, PaymentStatusResult, PushResult
from payments.gateway.port import STATUS_FAILED, STATUS_PENDING, STATUS_SUCCESS


class TestFakeGateway:
    async def test_default_push_succeeds(self):
        gateway = FakeGateway()
        result = await gateway.initiate_push("42", "254712345678", 2000)
        assert isinstance(result, PushResult)
        assert result.success is True
        assert result.transaction_id.startswith("fake_txn_")
        assert result.checkout_request_id.startswith("ws_CO_")

    async def test_configured_push_fails(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Insufficient funds")
        result = await gateway.initiate_push("42", "254712345678", 2000)
        assert result.success is False
        assert result.failure_reason == "Insufficient funds"
        assert result.checkout_request_id is None

    async def test_status_defaults_to_success(self):
        gateway = FakeGateway()
        result = await gateway.check_status("ws_CO_1")
        assert isinstance(result, PaymentStatusResult)
        assert result.status == STATUS_SUCCESS
        assert result.is_final

    async def test_scripted_statuses_repeat_the_last(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=True, statuses=[STATUS_PENDING, STATUS_FAILED])
        statuses = [(await gateway.check_status("ws_CO_1")).status for _ in range(3)]
        assert statuses == [STATUS_PENDING, STATUS_FAILED, STATUS_FAILED]

    async def test_pending_is_not_final(self):
        assert not PaymentStatusResult(status=STATUS_PENDING).is_final

    async def test_manual_confirmation(self):
        gateway = FakeGateway()
        result = await gateway.confirm_manual("42", "QKJ4H7TL2P", 2000)
        assert isinstance(result, ManualConfirmationResult)
        assert result.success is True

        gateway.configure(should_succeed=False, failure_reason="Reference not found")
        result = await gateway.confirm_manual("42", "QKJ4H7TL2P", 2000)
        assert result.success is False
        assert result.failure_reason == "Reference not found"

    async def test_call_logging(self):
        gateway = FakeGateway()
        await gateway.initiate_push("42", "254712345678", 2000)
        await gateway.check_status("ws_CO_1")
        assert [call["method"] for call in gateway.calls] == ["initiate_push", "check_status"]
        assert gateway.calls[0]["amount"] == 2000
        assert gateway.calls_to("check_status") == [{"method": "check_status", "checkout_request_id": "ws_CO_1"}]
