"""Payment method service - keeps Stripe attachments, defaults and stored card rows in step"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from aura.core.advisory import run_advisory
from aura.core.errors import AuraError, ErrorKind, invalid_request, not_found
from aura.core.metrics import payment_methods_registered_counter, payment_methods_removed_counter
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.models import PaymentMethodRecord
from aura.services.stripe_service import StripeGateway, _get_stripe_value, card_details, customer_id_of

logger = logging.getLogger(__name__)

UNUSABLE_MESSAGE = (
    "Payment method is no longer usable and has been removed from your account. "
    "Please add a new payment method."
)


@dataclass
class RemovalResult:
    payment_method_id: str
    detached: bool
    promoted_payment_method_id: Optional[str] = None


def select_default(methods: List[PaymentMethodRecord]) -> Optional[PaymentMethodRecord]:
    """The method that counts as default: an explicit default first, else the newest.

    Two rows flagged default (a lost race between concurrent set-default calls)
    resolve to the newer one.
    """
    if not methods:
        return None
    newest_first = sorted(methods, key=lambda m: m.created_at or "", reverse=True)
    for method in newest_first:
        if method.is_default:
            return method
    return newest_first[0]


def order_for_display(methods: List[PaymentMethodRecord]) -> List[PaymentMethodRecord]:
    """Default first, then newest first"""
    default = select_default(methods)
    rest = sorted(
        (m for m in methods if m is not default),
        key=lambda m: m.created_at or "",
        reverse=True,
    )
    return ([default] if default else []) + rest


class PaymentMethodReconciler:
    """
    Reconciles one user's payment methods between Stripe and the payment_methods table.

    Stripe is updated first and the local row second; there is no rollback
    across the two, so every operation is written to be safe to re-run.
    """

    def __init__(self, gateway: StripeGateway, store: RemoteStore):
        self.gateway = gateway
        self.store = store

    def _ensure_attached(self, payment_method: Any, customer_id: str, user_id: str) -> None:
        """Attach the method to the customer if it is not attached anywhere yet.

        Raises:
            AuraError(INVALID_REQUEST): Attached to a different customer
            AuraError(PERMANENTLY_UNUSABLE): Stripe refuses to ever attach it; the local row is removed
        """
        payment_method_id = _get_stripe_value(payment_method, "id")
        attached_to = customer_id_of(payment_method)
        if attached_to == customer_id:
            return
        if attached_to:
            raise invalid_request(f"Payment method {payment_method_id} is not attached to customer {customer_id}")

        try:
            self.gateway.attach_payment_method(payment_method_id, customer_id)
        except AuraError as e:
            if e.kind != ErrorKind.PERMANENTLY_UNUSABLE:
                raise
            run_advisory(
                "remove_unusable_payment_method",
                helpers.delete_payment_method_from_db, user_id, payment_method_id, self.store,
            )
            raise AuraError(ErrorKind.PERMANENTLY_UNUSABLE, UNUSABLE_MESSAGE)

    # ========================================================================
    # REGISTER
    # ========================================================================

    def register_payment_method(
        self,
        customer_id: str,
        payment_method_id: str,
        user_id: str,
        is_default: Optional[bool] = None,
    ) -> PaymentMethodRecord:
        """
        Store a payment method after its setup intent was confirmed client-side.

        Args:
            customer_id: Stripe customer the method belongs to
            payment_method_id: Stripe payment method id (pm_...)
            user_id: Owning user
            is_default: Make it the default; the user's first method always is

        Returns:
            The stored PaymentMethodRecord

        Raises:
            AuraError: PROCESSOR_LOOKUP if Stripe does not know the method,
                PERMANENTLY_UNUSABLE if it can never be attached,
                INVALID_REQUEST if it is not a card
        """
        try:
            record = self._register(customer_id, payment_method_id, user_id, is_default)
        except AuraError:
            payment_methods_registered_counter.labels(status="failure").inc()
            raise
        payment_methods_registered_counter.labels(status="success").inc()
        return record

    def _register(self, customer_id, payment_method_id, user_id, is_default) -> PaymentMethodRecord:
        payment_method = self.gateway.retrieve_payment_method(payment_method_id)
        card = card_details(payment_method)
        if not card:
            raise invalid_request("Payment method does not have card details")

        self._ensure_attached(payment_method, customer_id, user_id)

        existing = helpers.get_payment_method(user_id, payment_method_id, self.store)
        others = [
            m for m in helpers.get_user_payment_methods(user_id, self.store)
            if m.stripe_payment_method_id != payment_method_id
        ]
        should_be_default = bool(is_default) or not others

        if should_be_default:
            run_advisory(
                "unset_other_defaults",
                helpers.unset_all_default_payment_methods, user_id, self.store, except_id=payment_method_id,
            )
            self.gateway.set_invoice_default(customer_id, payment_method_id)

        values: Dict[str, Any] = {
            **card,
            "stripe_customer_id": customer_id,
            "is_default": should_be_default or bool(existing and existing.is_active and existing.is_default),
            "is_active": True,
        }
        if existing:
            logger.info(f"Payment method {payment_method_id} already stored for user {user_id}, refreshing it")
            record = helpers.update_payment_method(user_id, payment_method_id, values, self.store) or existing
        else:
            record = helpers.store_payment_method(PaymentMethodRecord(
                user_id=user_id,
                stripe_payment_method_id=payment_method_id,
                **values,
            ), self.store)

        run_advisory("record_customer_reference", helpers.update_customer_reference, user_id, customer_id, self.store)
        logger.info(
            f"Registered {card['card_brand']} ****{card['card_last4']} ({payment_method_id}) "
            f"for user {user_id}, default={record.is_default}"
        )
        return record

    # ========================================================================
    # DEFAULT / REMOVE
    # ========================================================================

    def set_default(self, customer_id: str, payment_method_id: str, user_id: str) -> PaymentMethodRecord:
        """Make a stored, active method the default in Stripe, then locally

        Raises:
            AuraError(NOT_FOUND): The method is not stored or was removed; Stripe is not touched
        """
        stored = helpers.get_payment_method(user_id, payment_method_id, self.store)
        if not stored or not stored.is_active:
            raise not_found(f"Payment method {payment_method_id} is not stored for this user")

        payment_method = self.gateway.retrieve_payment_method(payment_method_id)
        self._ensure_attached(payment_method, customer_id, user_id)

        self.gateway.set_invoice_default(customer_id, payment_method_id)

        run_advisory(
            "unset_other_defaults",
            helpers.unset_all_default_payment_methods, user_id, self.store, except_id=payment_method_id,
        )
        record = helpers.update_payment_method(user_id, payment_method_id, {"is_default": True}, self.store)
        if record is None:
            raise not_found(f"Payment method {payment_method_id} is not stored for this user")
        logger.info(f"Default payment method for user {user_id} is now {payment_method_id}")
        return record

    def remove(self, payment_method_id: str, user_id: str) -> RemovalResult:
        """Detach from Stripe, deactivate locally, and promote a sole survivor to default"""
        try:
            detached = self.gateway.detach_payment_method(payment_method_id)
            helpers.deactivate_payment_method(user_id, payment_method_id, self.store)
        except AuraError:
            payment_methods_removed_counter.labels(status="failure").inc()
            raise
        payment_methods_removed_counter.labels(status="success").inc()

        result = RemovalResult(payment_method_id=payment_method_id, detached=detached)
        promoted = helpers.ensure_single_payment_method_is_default(user_id, self.store)
        if promoted:
            result.promoted_payment_method_id = promoted.stripe_payment_method_id
            run_advisory(
                "promote_stripe_default",
                self.gateway.set_invoice_default, promoted.stripe_customer_id, promoted.stripe_payment_method_id,
            )
        return result

    # ========================================================================
    # QUERIES & REPAIR
    # ========================================================================

    def list_payment_methods(self, user_id: str) -> List[PaymentMethodRecord]:
        return order_for_display(helpers.get_user_payment_methods(user_id, self.store))

    def fix_payment_method_attachments(self, customer_id: str, user_id: str) -> int:
        """Re-attach stored methods that Stripe reports unattached; returns how many were fixed"""
        fixed = 0
        for method in helpers.get_user_payment_methods(user_id, self.store):
            payment_method_id = method.stripe_payment_method_id
            payment_method = self.gateway.retrieve_payment_method(payment_method_id)
            if customer_id_of(payment_method) is None:
                try:
                    self._ensure_attached(payment_method, customer_id, user_id)
                except AuraError as e:
                    if e.kind != ErrorKind.PERMANENTLY_UNUSABLE:
                        raise
                    logger.warning(f"Removed unusable payment method {payment_method_id} for user {user_id}")
                    continue
                fixed += 1
            if method.is_default:
                self.gateway.set_invoice_default(customer_id, payment_method_id)
        logger.info(f"Fixed {fixed} payment method attachments for user {user_id}")
        return fixed


# ============================================================================
# STRIPE-ONLY OPERATIONS
# ============================================================================

def create_setup_intent(gateway: StripeGateway, customer_id: str) -> Dict[str, str]:
    intent = gateway.create_setup_intent(customer_id)
    return {
        "client_secret": _get_stripe_value(intent, "client_secret"),
        "setup_intent_id": _get_stripe_value(intent, "id"),
    }


def list_processor_payment_methods(gateway: StripeGateway, customer_id: str) -> List[Dict[str, Any]]:
    """Cards attached to a customer in Stripe"""
    methods = []
    for payment_method in gateway.list_payment_methods(customer_id):
        card = card_details(payment_method)
        if card:
            methods.append({"id": _get_stripe_value(payment_method, "id"), **card})
    return methods
