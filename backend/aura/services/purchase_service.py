"""Purchase service - payment intents and recording of completed token purchases"""
import logging
import time
from typing import Any, Dict, Optional

from pydantic import BaseModel

from aura.core.advisory import run_advisory
from aura.core.errors import AuraError, ErrorKind, not_found
from aura.core.logging import billing_logger
from aura.core.metrics import purchases_recorded_counter, tokens_granted_counter
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.models import Profile, Purchase
from aura.services.stripe_service import StripeGateway, _get_stripe_value, normalize_currency
from aura.utils.idempotency import generate_idempotency_key
from aura.utils.purchase_tokens import format_amount, resolve_tokens_purchased

logger = logging.getLogger(__name__)

UNKNOWN_PRICE_ID = "unknown_price"
SUCCEEDED = "succeeded"


class PurchaseResult(BaseModel):
    purchase: Purchase
    already_recorded: bool = False
    balance_verified: bool = False
    profile: Optional[Profile] = None


class PurchaseRecorder:
    """
    Turns a succeeded payment intent into exactly one purchase row.

    Token balances are maintained by backend triggers on the purchases table;
    the recorder only re-reads the profile afterwards to confirm they moved.
    """

    def __init__(self, gateway: StripeGateway, store: RemoteStore, verify_delay: float = 0.1):
        self.gateway = gateway
        self.store = store
        self.verify_delay = verify_delay

    def record_purchase(
        self,
        user_id: str,
        payment_intent_id: str,
        price_id: str,
        amount_paid: int,
        currency: str,
    ) -> PurchaseResult:
        """
        Record a completed purchase.

        A payment intent that was already recorded returns the existing row,
        so retries never grant tokens twice.

        Args:
            user_id: Purchasing user
            payment_intent_id: Succeeded Stripe payment intent (pi_...)
            price_id: Stripe price that was bought
            amount_paid: Amount in minor currency units
            currency: ISO currency code

        Returns:
            PurchaseResult with the purchase row and the balance verification outcome
        """
        existing = helpers.get_purchase_by_payment_intent(payment_intent_id, self.store)
        if existing:
            logger.info(f"Purchase for payment intent {payment_intent_id} already recorded ({existing.id})")
            purchases_recorded_counter.labels(status="duplicate").inc()
            return PurchaseResult(purchase=existing, already_recorded=True)

        try:
            purchase = self._insert_purchase(user_id, payment_intent_id, price_id, amount_paid, currency)
        except AuraError:
            purchases_recorded_counter.labels(status="failure").inc()
            raise

        purchases_recorded_counter.labels(status="success").inc()
        tokens_granted_counter.inc(purchase.tokens_purchased)
        billing_logger.info(
            f"User {user_id} purchased {purchase.tokens_purchased} tokens for "
            f"{format_amount(amount_paid, currency)} ({payment_intent_id})"
        )

        verification = run_advisory("verify_token_balance", self._verify_balance, user_id)
        return PurchaseResult(
            purchase=purchase,
            balance_verified=verification.ok and verification.value is not None,
            profile=verification.value if verification.ok else None,
        )

    def _insert_purchase(self, user_id, payment_intent_id, price_id, amount_paid, currency) -> Purchase:
        product_id = self.gateway.get_price_product(price_id)

        package = helpers.get_package_by_product(product_id, self.store)
        if not package:
            logger.info(f"No package mirrors product {product_id}; creating the default package")
            package = helpers.create_default_package(product_id, self.store)

        package_price = helpers.get_package_price_by_stripe_price(price_id, self.store)
        tokens = resolve_tokens_purchased(amount_paid, package_price.token_amount if package_price else None)

        return helpers.insert_purchase(Purchase(
            user_id=user_id,
            stripe_payment_intent_id=payment_intent_id,
            stripe_price_id=price_id,
            stripe_product_id=product_id,
            package_id=package.id,
            package_price_id=package_price.id if package_price else None,
            amount_paid=amount_paid,
            currency=currency.lower(),
            tokens_purchased=tokens,
            status="completed",
            completed_at=helpers.utcnow_iso(),
        ), self.store)

    def _verify_balance(self, user_id: str) -> Optional[Profile]:
        # Give the backend triggers a moment to update the balances
        time.sleep(self.verify_delay)
        profile = helpers.get_user_profile(user_id, self.store)
        if profile is None:
            raise not_found("User profile not found")
        logger.info(
            f"Token balance for user {user_id}: remaining={profile.tokens_remaining}, "
            f"total={profile.total_tokens}, purchases={profile.total_purchases}"
        )
        return profile

    def complete_purchase(self, payment_intent_id: str, user_id: str) -> PurchaseResult:
        """Record the purchase behind a payment intent once Stripe reports it succeeded"""
        intent = self.gateway.retrieve_payment_intent(payment_intent_id)
        status = _get_stripe_value(intent, "status")
        if status != SUCCEEDED:
            raise AuraError(
                ErrorKind.PAYMENT_NOT_SUCCEEDED,
                f"Payment has not succeeded (status: {status})",
            )

        metadata = _get_stripe_value(intent, "metadata", {}) or {}
        price_id = _get_stripe_value(metadata, "price_id") or UNKNOWN_PRICE_ID
        if price_id == UNKNOWN_PRICE_ID:
            logger.warning(f"Payment intent {payment_intent_id} carries no price_id metadata")

        return self.record_purchase(
            user_id,
            payment_intent_id,
            price_id,
            int(_get_stripe_value(intent, "amount", 0)),
            _get_stripe_value(intent, "currency", "usd"),
        )


# ============================================================================
# PAYMENT INTENTS
# ============================================================================

def create_payment_intent(
    gateway: StripeGateway,
    amount: int,
    currency: str,
    customer_id: str,
    metadata: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    intent = gateway.create_payment_intent(amount, normalize_currency(currency), customer_id, metadata=metadata)
    return {
        "client_secret": _get_stripe_value(intent, "client_secret"),
        "payment_intent_id": _get_stripe_value(intent, "id"),
    }


def create_payment_intent_with_stored_method(
    gateway: StripeGateway,
    store: RemoteStore,
    amount: int,
    currency: str,
    customer_id: str,
    payment_method_id: str,
    user_id: str,
    price_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Charge a stored card immediately (manual confirmation, confirmed on create)"""
    stored = helpers.get_payment_method(user_id, payment_method_id, store)
    if not stored or not stored.is_active:
        raise not_found(f"Payment method {payment_method_id} not found for this user")

    metadata = {"user_id": str(user_id)}
    if price_id:
        metadata["price_id"] = price_id

    intent = gateway.create_payment_intent(
        amount,
        normalize_currency(currency),
        customer_id,
        payment_method_id=payment_method_id,
        confirm=True,
        metadata=metadata,
        idempotency_key=generate_idempotency_key("payment_intent", user_id, payment_method_id, amount, price_id),
    )
    run_advisory("mark_payment_method_used", helpers.mark_payment_method_used, user_id, payment_method_id, store)
    return {
        "client_secret": _get_stripe_value(intent, "client_secret"),
        "payment_intent_id": _get_stripe_value(intent, "id"),
        "status": _get_stripe_value(intent, "status"),
    }


def verify_payment_intent(gateway: StripeGateway, payment_intent_id: str) -> Dict[str, Any]:
    intent = gateway.retrieve_payment_intent(payment_intent_id)
    return {
        "payment_intent_id": _get_stripe_value(intent, "id", payment_intent_id),
        "status": _get_stripe_value(intent, "status"),
        "amount": _get_stripe_value(intent, "amount"),
        "currency": _get_stripe_value(intent, "currency"),
        "metadata": dict(_get_stripe_value(intent, "metadata", {}) or {}),
    }
