"""Purchases API routes"""
import logging
from fastapi import APIRouter, Depends

from aura.core.context import AppContext, get_context, get_gateway, require_store
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.schemas.billing import (
    CompletePurchaseRequest, PaymentIntentRequest, RecordPurchaseRequest, StoredMethodPaymentIntentRequest
)
from aura.services import purchase_service
from aura.services.purchase_service import PurchaseRecorder
from aura.services.stripe_service import StripeGateway

router = APIRouter(prefix="/api/purchases", tags=["purchases"])
logger = logging.getLogger(__name__)


def get_recorder(
    context: AppContext = Depends(get_context),
    store: RemoteStore = Depends(require_store),
) -> PurchaseRecorder:
    return PurchaseRecorder(context.gateway, store, verify_delay=context.settings.PURCHASE_VERIFY_DELAY)


@router.post("/payment-intents")
def create_payment_intent(body: PaymentIntentRequest, gateway: StripeGateway = Depends(get_gateway)):
    return purchase_service.create_payment_intent(gateway, body.amount, body.currency, body.customer_id)


@router.post("/payment-intents/stored")
def create_payment_intent_with_stored_method(
    body: StoredMethodPaymentIntentRequest,
    gateway: StripeGateway = Depends(get_gateway),
    store: RemoteStore = Depends(require_store),
):
    """Charge a stored card"""
    return purchase_service.create_payment_intent_with_stored_method(
        gateway, store, body.amount, body.currency, body.customer_id,
        body.payment_method_id, body.user_id, body.price_id,
    )


@router.get("/payment-intents/{payment_intent_id}")
def verify_payment_intent(payment_intent_id: str, gateway: StripeGateway = Depends(get_gateway)):
    return purchase_service.verify_payment_intent(gateway, payment_intent_id)


@router.post("/record")
def record_purchase(body: RecordPurchaseRequest, recorder: PurchaseRecorder = Depends(get_recorder)):
    return recorder.record_purchase(
        body.user_id, body.payment_intent_id, body.price_id, body.amount_paid, body.currency
    )


@router.post("/complete")
def complete_purchase(body: CompletePurchaseRequest, recorder: PurchaseRecorder = Depends(get_recorder)):
    """Record the purchase once the payment intent has succeeded"""
    return recorder.complete_purchase(body.payment_intent_id, body.user_id)


@router.get("/user/{user_id}")
def get_user_purchases(user_id: str, store: RemoteStore = Depends(require_store)):
    return helpers.get_user_purchases(user_id, store)
