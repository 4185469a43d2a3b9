import json
import logging

from django.http import HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from ..deposits import complete_deposit
from ..providers import ProviderError, get_provider
from ..withdrawals import apply_payout_status

logger = logging.getLogger(__name__)

PAYOUT_EVENTS = (
    "payout.processed",
    "payout.failed",
    "payout.rejected",
    "payout.reversed",
    "payout.queued",
    "payout.pending",
    "payout.initiated",
    "payout.updated",
)
DEPOSIT_EVENTS = ("payment.captured", "order.paid")


def _entity(event_data, name):
    return ((event_data.get("payload") or {}).get(name) or {}).get("entity") or {}


@csrf_exempt
@require_POST
def razorpay_webhook(request):
    try:
        provider = get_provider()
    except ProviderError as e:
        logger.error("Webhook received but payment provider unavailable: %s", e)
        return HttpResponse(status=503)

    payload = request.body
    signature = request.headers.get("X-Razorpay-Signature", "")

    if not provider.verify_webhook_signature(payload, signature):
        logger.warning("Invalid Razorpay webhook signature")
        return HttpResponse(status=400)

    try:
        event_data = json.loads(payload)
    except ValueError:
        logger.warning("Malformed Razorpay webhook body")
        return HttpResponse(status=400)

    event = event_data.get("event")
    logger.info("RAZORPAY WEBHOOK RECEIVED: %s", event)

    # ======================================================
    # WITHDRAWALS
    # ======================================================
    if event in PAYOUT_EVENTS:
        payout = _entity(event_data, "payout")
        if payout.get("id"):
            apply_payout_status(payout["id"], payout.get("status"), payout.get("failure_reason"))
        return HttpResponse(status=200)

    # ======================================================
    # DEPOSITS
    # ======================================================
    if event in DEPOSIT_EVENTS:
        payment = _entity(event_data, "payment")
        order_id = payment.get("order_id") or _entity(event_data, "order").get("id")
        if order_id:
            result = complete_deposit(
                order_id,
                payment_id=payment.get("id"),
                paid_amount_minor=payment.get("amount"),
            )
            if not result:
                logger.error("Webhook deposit %s not applied: %s", order_id, result.error)
        return HttpResponse(status=200)

    return HttpResponse(status=200)
