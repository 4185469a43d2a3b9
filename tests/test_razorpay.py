import hashlib
import hmac
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests
from django.test import override_settings

from wallets.destinations import BankDestination, UpiDestination
from wallets.providers import ProviderError, ProviderNotConfigured
from wallets.razorpay import RazorpayService

CREDENTIALS = dict(
    RAZORPAY_KEY_ID="rzp_test_key",
    RAZORPAY_KEY_SECRET="shh",
    RAZORPAY_WEBHOOK_SECRET="hook",
    RAZORPAY_ACCOUNT_NUMBER="2323230000000000",
)


def _response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


@pytest.fixture
def service():
    with override_settings(**CREDENTIALS):
        svc = RazorpayService()
    svc.session = MagicMock()
    return svc


def test_missing_credentials():
    with override_settings(RAZORPAY_KEY_ID=None, RAZORPAY_KEY_SECRET=None):
        with pytest.raises(ProviderNotConfigured):
            RazorpayService()


def test_create_order_sends_paise(service):
    service.session.request.return_value = _response(200, {"id": "order_1", "amount": 50000, "currency": "INR"})

    intent = service.create_deposit_intent(Decimal("500"), receipt="dep_1")

    assert intent.intent_id == "order_1"
    assert intent.amount == Decimal("500")
    method, url = service.session.request.call_args.args
    assert (method, url) == ("POST", "https://api.razorpay.com/v1/orders")
    assert service.session.request.call_args.kwargs["json"]["amount"] == 50000


def test_deposit_signature(service):
    good = hmac.new(b"shh", b"order_1|pay_1", hashlib.sha256).hexdigest()
    assert service.verify_deposit_signature("order_1", "pay_1", good)
    assert not service.verify_deposit_signature("order_1", "pay_2", good)


def test_webhook_signature(service):
    body = b'{"event":"payout.processed"}'
    good = hmac.new(b"hook", body, hashlib.sha256).hexdigest()
    assert service.verify_webhook_signature(body, good)
    assert not service.verify_webhook_signature(body, "0" * 64)

    service.webhook_secret = ""
    assert not service.verify_webhook_signature(body, good)


def test_upi_payout_request(service):
    service.session.request.return_value = _response(200, {"id": "pout_1", "status": "QUEUED"})

    payout = service.initiate_payout(Decimal("250"), UpiDestination(upi_id="a@okbank"), reference="withdraw_7")

    assert payout.payout_id == "pout_1"
    assert payout.status == "queued"
    kwargs = service.session.request.call_args.kwargs
    assert kwargs["json"]["mode"] == "UPI"
    assert kwargs["json"]["fund_account"]["vpa"] == {"address": "a@okbank"}
    assert kwargs["headers"] == {"X-Payout-Idempotency": "withdraw_7"}


def test_bank_payout_uses_neft(service):
    service.session.request.return_value = _response(200, {"id": "pout_2", "status": "processing"})
    bank = BankDestination("A Kumar", "123456789012", "HDFC0001234", "HDFC")

    service.initiate_payout(Decimal("1000"), bank, reference="withdraw_8")

    assert service.session.request.call_args.kwargs["json"]["mode"] == "NEFT"


def test_error_response_raises(service):
    service.session.request.return_value = _response(400, {"error": {"description": "Invalid IFSC"}})
    with pytest.raises(ProviderError, match="Invalid IFSC"):
        service.get_payout_status("pout_3")


def test_network_error_raises(service):
    service.session.request.side_effect = requests.exceptions.ConnectTimeout("timed out")
    with pytest.raises(ProviderError):
        service.get_payout_status("pout_4")
