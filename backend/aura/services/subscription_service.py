"""Subscription service - Subscription management and business logic"""
import logging
from typing import Any, List, Optional

from pydantic import BaseModel

from aura.core.errors import AuraError, ErrorKind
from aura.core.metrics import subscriptions_canceled_counter, subscriptions_created_counter
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.services.payment_method_service import PaymentMethodReconciler, select_default
from aura.services.stripe_service import (
    StripeGateway, _get_stripe_value, customer_id_of, subscription_period_end, subscription_price_id
)
from aura.utils.idempotency import generate_idempotency_key

logger = logging.getLogger(__name__)

# Local mirror value written on cancellation, whatever Stripe returns
CANCELED_STATUS = "canceled"


class SubscriptionResponse(BaseModel):
    subscription_id: str
    customer_id: Optional[str] = None
    status: str
    current_period_end: Optional[int] = None
    price_id: str


class CancelResponse(BaseModel):
    subscription_id: str
    status: str
    stripe_status: str
    cancel_at_period_end: bool


class SubscriptionSyncResult(BaseModel):
    updated_subscriptions: int = 0
    errors: List[str] = []


def _to_response(subscription: Any) -> SubscriptionResponse:
    return SubscriptionResponse(
        subscription_id=_get_stripe_value(subscription, "id"),
        customer_id=customer_id_of(subscription),
        status=_get_stripe_value(subscription, "status", "unknown"),
        current_period_end=subscription_period_end(subscription),
        price_id=subscription_price_id(subscription),
    )


class SubscriptionOrchestrator:
    """
    Creates, cancels and syncs a user's subscription.

    The profile's subscription fields are a lagging mirror of Stripe; every
    write here comes from an object Stripe just returned.
    """

    def __init__(self, gateway: StripeGateway, store: RemoteStore, reconciler: Optional[PaymentMethodReconciler] = None):
        self.gateway = gateway
        self.store = store
        self.reconciler = reconciler or PaymentMethodReconciler(gateway, store)

    def create_subscription(self, user_id: str, price_id: str) -> SubscriptionResponse:
        """
        Subscribe a user to a price, charging their default payment method.

        Raises:
            AuraError: NO_CUSTOMER when the user has no Stripe customer,
                NO_PAYMENT_METHOD when no card is stored,
                REMOTE_STORE when the local mirror write fails (the Stripe
                subscription then exists and a later sync repairs the mirror)
        """
        profile = helpers.require_user_profile(user_id, self.store)
        customer_id = profile.stripe_customer_id
        if not customer_id:
            subscriptions_created_counter.labels(status="no_customer").inc()
            raise AuraError(
                ErrorKind.NO_CUSTOMER,
                "User does not have a Stripe customer ID. Please add a payment method first.",
            )

        methods = helpers.get_user_payment_methods(user_id, self.store)
        if not methods:
            subscriptions_created_counter.labels(status="no_payment_method").inc()
            raise AuraError(ErrorKind.NO_PAYMENT_METHOD, "No payment methods found. Please add a payment method first.")

        # Stripe is the source of truth and may have drifted; re-assert attach + default
        default_method = select_default(methods)
        payment_method_id = default_method.stripe_payment_method_id
        self.reconciler.set_default(customer_id, payment_method_id, user_id)

        try:
            subscription = self.gateway.create_subscription(
                customer_id,
                price_id,
                payment_method_id,
                metadata={"user_id": str(user_id)},
                idempotency_key=generate_idempotency_key("subscription_create", user_id, price_id),
            )
        except AuraError:
            subscriptions_created_counter.labels(status="failure").inc()
            raise

        response = _to_response(subscription)
        if response.price_id == "unknown":
            response.price_id = price_id
        logger.info(f"Created subscription {response.subscription_id} ({response.status}) for user {user_id}")

        try:
            helpers.update_subscription_status(
                user_id, response.subscription_id, response.status, response.current_period_end, self.store
            )
        except AuraError:
            logger.error(
                f"Subscription {response.subscription_id} exists in Stripe but the profile mirror "
                f"for user {user_id} was not updated; run a sync to repair it"
            )
            subscriptions_created_counter.labels(status="mirror_failed").inc()
            raise

        subscriptions_created_counter.labels(status="success").inc()
        return response

    def cancel_subscription(self, subscription_id: str, user_id: str) -> CancelResponse:
        """Cancel at period end; the profile mirror is set to 'canceled' right away"""
        try:
            subscription = self.gateway.cancel_subscription_at_period_end(subscription_id)
        except AuraError:
            subscriptions_canceled_counter.labels(status="failure").inc()
            raise

        helpers.update_subscription_status(
            user_id, subscription_id, CANCELED_STATUS, subscription_period_end(subscription), self.store
        )
        subscriptions_canceled_counter.labels(status="success").inc()
        logger.info(f"Subscription {subscription_id} for user {user_id} set to cancel at period end")
        return CancelResponse(
            subscription_id=subscription_id,
            status=CANCELED_STATUS,
            stripe_status=_get_stripe_value(subscription, "status", "unknown"),
            cancel_at_period_end=bool(_get_stripe_value(subscription, "cancel_at_period_end", True)),
        )

    def get_subscription_status(self, subscription_id: str) -> SubscriptionResponse:
        return _to_response(self.gateway.retrieve_subscription(subscription_id))

    def sync_subscription_status(self, user_id: str, subscription_id: str) -> SubscriptionResponse:
        """Overwrite the profile mirror with Stripe's current state"""
        response = self.get_subscription_status(subscription_id)
        helpers.update_subscription_status(
            user_id, subscription_id, response.status, response.current_period_end, self.store
        )
        logger.info(f"Synced subscription {subscription_id} for user {user_id}: {response.status}")
        return response

    def sync_all_user_subscriptions(self, user_id: str) -> SubscriptionSyncResult:
        """Sync every subscription the profile references; failures are collected, not raised"""
        profile = helpers.require_user_profile(user_id, self.store)
        result = SubscriptionSyncResult()

        subscription_ids = [profile.subscription_id] if profile.subscription_id else []
        for subscription_id in subscription_ids:
            try:
                self.sync_subscription_status(user_id, subscription_id)
                result.updated_subscriptions += 1
            except AuraError as e:
                logger.warning(f"Failed to sync subscription {subscription_id} for user {user_id}: {e.detail}")
                result.errors.append(f"Failed to sync subscription {subscription_id}: {e.detail}")
        return result
