"""Subscriptions API routes"""
import logging
from fastapi import APIRouter, Depends

from aura.core.context import AppContext, get_context, get_gateway, require_store
from aura.db.remote_store import RemoteStore
from aura.schemas.billing import CreateSubscriptionRequest, UserRequest
from aura.services.stripe_service import StripeGateway
from aura.services.subscription_service import SubscriptionOrchestrator

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])
stripe_router = APIRouter(prefix="/api/stripe", tags=["stripe"])
logger = logging.getLogger(__name__)


def get_orchestrator(
    gateway: StripeGateway = Depends(get_gateway),
    store: RemoteStore = Depends(require_store),
) -> SubscriptionOrchestrator:
    return SubscriptionOrchestrator(gateway, store)


@router.post("")
def create_subscription(body: CreateSubscriptionRequest, orchestrator: SubscriptionOrchestrator = Depends(get_orchestrator)):
    return orchestrator.create_subscription(body.user_id, body.price_id)


@router.post("/sync-all")
def sync_all_subscriptions(body: UserRequest, orchestrator: SubscriptionOrchestrator = Depends(get_orchestrator)):
    return orchestrator.sync_all_user_subscriptions(body.user_id)


@router.post("/{subscription_id}/cancel")
def cancel_subscription(
    subscription_id: str,
    body: UserRequest,
    orchestrator: SubscriptionOrchestrator = Depends(get_orchestrator),
):
    """Cancel at the end of the current period"""
    return orchestrator.cancel_subscription(subscription_id, body.user_id)


@router.get("/{subscription_id}/status")
def get_subscription_status(subscription_id: str, gateway: StripeGateway = Depends(get_gateway)):
    # Read-only Stripe lookup; no relational backend session needed
    return SubscriptionOrchestrator(gateway, store=None).get_subscription_status(subscription_id)


@router.post("/{subscription_id}/sync")
def sync_subscription(
    subscription_id: str,
    body: UserRequest,
    orchestrator: SubscriptionOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.sync_subscription_status(body.user_id, subscription_id)


@stripe_router.get("/config")
def get_stripe_config(context: AppContext = Depends(get_context)):
    """Publishable key for the client-side Stripe SDK"""
    return {"publishable_key": context.credentials.stripe_publishable_key()}
