# wallets/razorpay.py
import hashlib
import hmac
import logging
from decimal import Decimal

import requests
from django.conf import settings
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .destinations import BankDestination, UpiDestination, WalletDestination
from .providers import (
    DepositIntent,
    PaymentProvider,
    PayoutProvider,
    PayoutResult,
    ProviderError,
    ProviderNotConfigured,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class RazorpayService(PaymentProvider, PayoutProvider):
    """
    Razorpay orders for deposits and RazorpayX payouts for withdrawals.
    Amounts go over the wire in paise.
    """

    def __init__(self):
        self.base_url = settings.RAZORPAY_BASE_URL
        self.key_id = settings.RAZORPAY_KEY_ID
        self.key_secret = settings.RAZORPAY_KEY_SECRET
        self.webhook_secret = settings.RAZORPAY_WEBHOOK_SECRET
        self.account_number = settings.RAZORPAY_ACCOUNT_NUMBER
        self.timeout = (settings.RAZORPAY_CONNECT_TIMEOUT, settings.RAZORPAY_READ_TIMEOUT)

        missing = []
        if not self.key_id:
            missing.append("RAZORPAY_KEY_ID")
        if not self.key_secret:
            missing.append("RAZORPAY_KEY_SECRET")
        if missing:
            error_msg = f"Razorpay missing credentials: {', '.join(missing)}"
            logger.error(error_msg)
            raise ProviderNotConfigured(error_msg)

        self.session = self._create_session(settings.RAZORPAY_MAX_RETRIES)

    def _create_session(self, max_retries):
        session = requests.Session()
        session.auth = (self.key_id, self.key_secret)

        # Only idempotent reads are retried; a retried POST could create a second payout
        retry_strategy = Retry(
            total=max_retries,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            backoff_factor=1,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=20)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _request(self, method, endpoint, **kwargs):
        url = f"{self.base_url}{endpoint}"
        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error("Razorpay request to %s failed: %s", url, e)
            raise ProviderError(f"Razorpay unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text[:500]}

        if not 200 <= response.status_code < 300:
            description = (data.get("error") or {}).get("description") or f"HTTP {response.status_code}"
            logger.error("Razorpay %s %s -> %s: %s", method, endpoint, response.status_code, description)
            raise ProviderError(description)

        return data

    # ---------------------------------------------------
    # DEPOSITS
    # ---------------------------------------------------
    def create_deposit_intent(self, amount, receipt, notes=None):
        data = self._request(
            "POST",
            "/orders",
            json={
                "amount": to_minor_units(amount),
                "currency": "INR",
                "receipt": receipt,
                "payment_capture": 1,
                "notes": notes or {},
            },
        )
        return DepositIntent(
            intent_id=data["id"],
            amount=Decimal(data["amount"]) / 100,
            currency=data.get("currency", "INR"),
            raw=data,
        )

    def verify_deposit_signature(self, intent_id, payment_id, signature):
        expected = hmac.new(
            self.key_secret.encode(),
            f"{intent_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature or "")

    # ---------------------------------------------------
    # PAYOUTS
    # ---------------------------------------------------
    def _fund_account(self, destination):
        if isinstance(destination, BankDestination):
            return {
                "account_type": "bank_account",
                "bank_account": {
                    "name": destination.account_holder_name,
                    "ifsc": destination.ifsc_code,
                    "account_number": destination.account_number,
                },
                "contact": {"name": destination.account_holder_name, "type": "customer"},
            }, "NEFT"
        if isinstance(destination, UpiDestination):
            return {
                "account_type": "vpa",
                "vpa": {"address": destination.upi_id},
                "contact": {"name": destination.upi_id, "type": "customer"},
            }, "UPI"
        if isinstance(destination, WalletDestination):
            return {
                "account_type": "wallet",
                "wallet": {
                    "provider": destination.wallet_type,
                    "phone": destination.wallet_number,
                    "name": destination.wallet_number,
                },
                "contact": {"name": destination.wallet_number, "type": "customer"},
            }, "amazonpay"
        raise ProviderError(f"Unsupported payout destination: {destination!r}")

    def initiate_payout(self, amount, destination, reference):
        if not self.account_number:
            raise ProviderNotConfigured("RAZORPAY_ACCOUNT_NUMBER is not set")

        fund_account, mode = self._fund_account(destination)
        data = self._request(
            "POST",
            "/payouts",
            json={
                "account_number": self.account_number,
                "amount": to_minor_units(amount),
                "currency": "INR",
                "mode": mode,
                "purpose": "payout",
                "fund_account": fund_account,
                "queue_if_low_balance": True,
                "reference_id": reference,
                "narration": "Win Go withdrawal",
            },
            headers={"X-Payout-Idempotency": reference},
        )
        logger.info("Razorpay payout %s created with status %s", data.get("id"), data.get("status"))
        return self._payout_result(data)

    def get_payout_status(self, payout_id):
        return self._payout_result(self._request("GET", f"/payouts/{payout_id}"))

    def _payout_result(self, data):
        return PayoutResult(
            payout_id=data.get("id"),
            status=(data.get("status") or "").lower(),
            failure_reason=data.get("failure_reason"),
            raw=data,
        )

    # ---------------------------------------------------
    # WEBHOOK SIGNATURE VERIFICATION
    # ---------------------------------------------------
    def verify_webhook_signature(self, payload, signature):
        if not self.webhook_secret:
            logger.error("RAZORPAY_WEBHOOK_SECRET is not set; rejecting webhook")
            return False

        computed = hmac.new(
            self.webhook_secret.encode(),
            payload,
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(computed, signature or "")
