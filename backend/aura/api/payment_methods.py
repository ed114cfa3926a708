"""Payment method API routes"""
import logging
from fastapi import APIRouter, Depends

from aura.core.context import get_gateway, require_store
from aura.db.remote_store import RemoteStore
from aura.schemas.billing import (
    FixAttachmentsRequest, RegisterPaymentMethodRequest, SetDefaultRequest, SetupIntentRequest
)
from aura.services import customer_service
from aura.services.payment_method_service import (
    PaymentMethodReconciler, create_setup_intent, list_processor_payment_methods
)
from aura.services.stripe_service import StripeGateway

router = APIRouter(prefix="/api/payment-methods", tags=["payment-methods"])
logger = logging.getLogger(__name__)


def get_reconciler(
    gateway: StripeGateway = Depends(get_gateway),
    store: RemoteStore = Depends(require_store),
) -> PaymentMethodReconciler:
    return PaymentMethodReconciler(gateway, store)


@router.post("/setup-intent")
def setup_intent(body: SetupIntentRequest, gateway: StripeGateway = Depends(get_gateway)):
    """Start collecting a card client-side"""
    return create_setup_intent(gateway, body.customer_id)


@router.post("/register")
def register_payment_method(
    body: RegisterPaymentMethodRequest,
    reconciler: PaymentMethodReconciler = Depends(get_reconciler),
):
    """Store a payment method after its setup intent was confirmed"""
    customer_id = body.customer_id or customer_service.ensure_customer(
        body.user_id, reconciler.gateway, reconciler.store, email=body.email
    )
    return reconciler.register_payment_method(customer_id, body.payment_method_id, body.user_id, body.is_default)


@router.post("/default")
def set_default_payment_method(body: SetDefaultRequest, reconciler: PaymentMethodReconciler = Depends(get_reconciler)):
    return reconciler.set_default(body.customer_id, body.payment_method_id, body.user_id)


@router.delete("/{payment_method_id}")
def delete_payment_method(
    payment_method_id: str,
    user_id: str,
    reconciler: PaymentMethodReconciler = Depends(get_reconciler),
):
    return reconciler.remove(payment_method_id, user_id)


@router.get("/user/{user_id}")
def get_stored_payment_methods(user_id: str, reconciler: PaymentMethodReconciler = Depends(get_reconciler)):
    return reconciler.list_payment_methods(user_id)


@router.get("/customer/{customer_id}")
def get_customer_payment_methods(customer_id: str, gateway: StripeGateway = Depends(get_gateway)):
    """Cards attached to the customer in Stripe"""
    return list_processor_payment_methods(gateway, customer_id)


@router.post("/fix-attachments")
def fix_payment_method_attachments(
    body: FixAttachmentsRequest,
    reconciler: PaymentMethodReconciler = Depends(get_reconciler),
):
    fixed = reconciler.fix_payment_method_attachments(body.customer_id, body.user_id)
    return {"fixed": fixed, "message": f"Fixed {fixed} payment method attachments"}
