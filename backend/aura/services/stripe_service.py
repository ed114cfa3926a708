"""Stripe service - gateway over the Stripe SDK calls used by billing"""
import logging
from typing import Any, Callable, Dict, List, Optional

import stripe
from stripe import StripeError

from aura.core import otel
from aura.core.cache import ProcessCache
from aura.core.errors import AuraError, ErrorKind, invalid_request
from aura.core.metrics import stripe_errors_counter
from aura.services.credentials import CredentialProvider

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = ("usd", "eur", "gbp")
DEFAULT_CURRENCY = "usd"
SUPPORTED_INTERVALS = ("month", "year")

# Stripe reports these when a payment method was used once without a customer;
# it can never be attached again
PERMANENTLY_UNUSABLE_MARKERS = (
    "was previously used without being attached",
    "may not be used again",
)

# Stripe reports these when detaching a method that is already detached
ALREADY_DETACHED_MARKERS = (
    "not attached to a customer",
    "detachment is impossible",
)


# ============================================================================
# STRIPE OBJECT ACCESS HELPERS
# ============================================================================

def _get_stripe_value(obj: Any, key: str, default=None):
    """Safely extract value from Stripe object (supports both dict and attribute access).

    Dict access comes first: StripeObject is a dict, and keys such as 'items'
    would otherwise resolve to dict methods.
    """
    if obj is None:
        return default
    if isinstance(obj, dict):
        value = obj.get(key)
    else:
        value = getattr(obj, key, None)
    return default if value is None else value


def _list_data(obj: Any) -> List[Any]:
    return list(_get_stripe_value(obj, "data", []) or [])


def customer_id_of(obj: Any) -> Optional[str]:
    """Customer id of a payment method/subscription; 'customer' may be an id or an expanded object"""
    customer = _get_stripe_value(obj, "customer")
    if customer is None or isinstance(customer, str):
        return customer
    return _get_stripe_value(customer, "id")


def card_details(payment_method: Any) -> Optional[Dict[str, Any]]:
    """Card brand (lowercase), last4 and expiry; None for non-card methods"""
    card = _get_stripe_value(payment_method, "card")
    if not card:
        return None
    return {
        "card_brand": str(_get_stripe_value(card, "brand", "unknown")).lower(),
        "card_last4": _get_stripe_value(card, "last4", ""),
        "card_exp_month": int(_get_stripe_value(card, "exp_month", 0)),
        "card_exp_year": int(_get_stripe_value(card, "exp_year", 0)),
    }


def subscription_price_id(subscription: Any) -> str:
    items = _list_data(_get_stripe_value(subscription, "items"))
    if not items:
        return "unknown"
    return _get_stripe_value(_get_stripe_value(items[0], "price"), "id", "unknown")


def subscription_period_end(subscription: Any) -> Optional[int]:
    """current_period_end in epoch seconds; newer API versions carry it on the items"""
    period_end = _get_stripe_value(subscription, "current_period_end")
    if period_end is None:
        items = _list_data(_get_stripe_value(subscription, "items"))
        if items:
            period_end = _get_stripe_value(items[0], "current_period_end")
    return int(period_end) if period_end is not None else None


def price_interval(price: Any):
    """(interval, interval_count) of a price; one-time prices are ('one_time', 1)"""
    recurring = _get_stripe_value(price, "recurring")
    if not recurring:
        return "one_time", 1
    return _get_stripe_value(recurring, "interval", "month"), int(_get_stripe_value(recurring, "interval_count", 1))


def normalize_currency(currency: Optional[str]) -> str:
    currency = (currency or "").lower()
    return currency if currency in SUPPORTED_CURRENCIES else DEFAULT_CURRENCY


def is_permanently_unusable(message: str) -> bool:
    message = message.lower()
    return any(marker in message for marker in PERMANENTLY_UNUSABLE_MARKERS)


def is_already_detached(message: str) -> bool:
    message = message.lower()
    return any(marker in message for marker in ALREADY_DETACHED_MARKERS)


# ============================================================================
# GATEWAY
# ============================================================================

class StripeGateway:
    """
    Typed access to the Stripe calls the billing services need.

    Every failure leaves here as an AuraError: lookups as PROCESSOR_LOOKUP,
    mutations as PROCESSOR_OPERATION, and the "never attachable again" signal
    as PERMANENTLY_UNUSABLE, so no caller has to inspect Stripe's wording.
    """

    def __init__(self, credentials: CredentialProvider, cache: ProcessCache):
        self.credentials = credentials
        self.cache = cache

    @property
    def api_key(self) -> str:
        return self.credentials.stripe_secret_key()

    def _call(self, operation: str, kind: ErrorKind, fn: Callable, *args, **kwargs):
        api_key = self.api_key
        with otel.span(f"stripe.{operation}", stripe_operation=operation):
            try:
                return fn(*args, api_key=api_key, **kwargs)
            except StripeError as e:
                stripe_errors_counter.labels(operation=operation).inc()
                logger.error(f"Stripe {operation} failed: {e}")
                raise AuraError(kind, f"Failed to {operation.replace('_', ' ')}: {e}")

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def create_customer(self, email: str, name: Optional[str] = None, metadata: Optional[Dict[str, str]] = None):
        params = {"email": email}
        if name:
            params["name"] = name
        if metadata:
            params["metadata"] = metadata
        customer = self._call("create_customer", ErrorKind.PROCESSOR_OPERATION, stripe.Customer.create, **params)
        logger.info(f"Created Stripe customer {_get_stripe_value(customer, 'id')} for {email}")
        return customer

    def find_customer_by_email(self, email: str):
        customers = self._call("list_customers", ErrorKind.PROCESSOR_LOOKUP, stripe.Customer.list, email=email, limit=1)
        data = _list_data(customers)
        return data[0] if data else None

    def set_invoice_default(self, customer_id: str, payment_method_id: str):
        return self._call(
            "update_customer_default_payment_method",
            ErrorKind.PROCESSOR_OPERATION,
            stripe.Customer.modify,
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )

    # ------------------------------------------------------------------
    # Payment methods
    # ------------------------------------------------------------------

    def retrieve_payment_method(self, payment_method_id: str):
        return self._call("retrieve_payment_method", ErrorKind.PROCESSOR_LOOKUP, stripe.PaymentMethod.retrieve, payment_method_id)

    def attach_payment_method(self, payment_method_id: str, customer_id: str):
        """Attach a method to a customer.

        Raises:
            AuraError(PERMANENTLY_UNUSABLE): The method can never be attached again
            AuraError(PROCESSOR_OPERATION): Any other Stripe failure
        """
        api_key = self.api_key
        with otel.span("stripe.attach_payment_method", payment_method_id=payment_method_id):
            try:
                result = stripe.PaymentMethod.attach(payment_method_id, customer=customer_id, api_key=api_key)
            except StripeError as e:
                stripe_errors_counter.labels(operation="attach_payment_method").inc()
                if is_permanently_unusable(str(e)):
                    logger.warning(f"Payment method {payment_method_id} is permanently unusable: {e}")
                    raise AuraError(
                        ErrorKind.PERMANENTLY_UNUSABLE,
                        f"Payment method {payment_method_id} can no longer be used. Please add a new payment method.",
                    )
                logger.error(f"Failed to attach payment method {payment_method_id} to {customer_id}: {e}")
                raise AuraError(ErrorKind.PROCESSOR_OPERATION, f"Failed to attach payment method: {e}")
        logger.info(f"Attached payment method {payment_method_id} to customer {customer_id}")
        return result

    def detach_payment_method(self, payment_method_id: str) -> bool:
        """Detach a method; returns False when Stripe says it was already detached"""
        api_key = self.api_key
        with otel.span("stripe.detach_payment_method", payment_method_id=payment_method_id) as current:
            try:
                stripe.PaymentMethod.detach(payment_method_id, api_key=api_key)
            except StripeError as e:
                if is_already_detached(str(e)):
                    logger.info(f"Payment method {payment_method_id} already detached in Stripe")
                    current.set_attribute("aura.already_detached", True)
                    return False
                stripe_errors_counter.labels(operation="detach_payment_method").inc()
                logger.error(f"Failed to detach payment method {payment_method_id}: {e}")
                raise AuraError(ErrorKind.PROCESSOR_OPERATION, f"Failed to detach payment method: {e}")
        return True

    def list_payment_methods(self, customer_id: str) -> List[Any]:
        methods = self._call(
            "list_payment_methods", ErrorKind.PROCESSOR_LOOKUP,
            stripe.PaymentMethod.list, customer=customer_id, type="card",
        )
        return _list_data(methods)

    def create_setup_intent(self, customer_id: str):
        return self._call(
            "create_setup_intent", ErrorKind.PROCESSOR_OPERATION,
            stripe.SetupIntent.create, customer=customer_id, payment_method_types=["card"],
        )

    # ------------------------------------------------------------------
    # Payment intents
    # ------------------------------------------------------------------

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        customer_id: str,
        payment_method_id: Optional[str] = None,
        confirm: bool = False,
        metadata: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ):
        params = {
            "amount": amount,
            "currency": normalize_currency(currency),
            "customer": customer_id,
            "payment_method_types": ["card"],
        }
        if payment_method_id:
            params["payment_method"] = payment_method_id
            params["confirmation_method"] = "manual"
            params["confirm"] = confirm
        if metadata:
            params["metadata"] = metadata
        if idempotency_key:
            params["idempotency_key"] = idempotency_key
        return self._call("create_payment_intent", ErrorKind.PROCESSOR_OPERATION, stripe.PaymentIntent.create, **params)

    def retrieve_payment_intent(self, payment_intent_id: str):
        return self._call("retrieve_payment_intent", ErrorKind.PROCESSOR_LOOKUP, stripe.PaymentIntent.retrieve, payment_intent_id)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: str,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ):
        params = {
            "customer": customer_id,
            "items": [{"price": price_id, "quantity": 1}],
            "default_payment_method": payment_method_id,
            "metadata": metadata,
        }
        if idempotency_key:
            params["idempotency_key"] = idempotency_key
        return self._call("create_subscription", ErrorKind.PROCESSOR_OPERATION, stripe.Subscription.create, **params)

    def cancel_subscription_at_period_end(self, subscription_id: str):
        return self._call(
            "cancel_subscription", ErrorKind.PROCESSOR_OPERATION,
            stripe.Subscription.modify, subscription_id, cancel_at_period_end=True,
        )

    def retrieve_subscription(self, subscription_id: str):
        return self._call("retrieve_subscription", ErrorKind.PROCESSOR_LOOKUP, stripe.Subscription.retrieve, subscription_id)

    # ------------------------------------------------------------------
    # Products & prices
    # ------------------------------------------------------------------

    def get_price_product(self, price_id: str) -> str:
        """Product id a price belongs to (memoised; a price never changes product)"""
        def lookup():
            price = self._call("retrieve_price", ErrorKind.PROCESSOR_LOOKUP, stripe.Price.retrieve, price_id)
            product = _get_stripe_value(price, "product")
            if product is not None and not isinstance(product, str):
                product = _get_stripe_value(product, "id")
            if not product:
                raise AuraError(ErrorKind.PROCESSOR_LOOKUP, "Price has no associated product")
            return product

        return self.cache.get_or_compute(("price_product", price_id), lookup)

    def retrieve_product(self, product_id: str):
        return self._call("retrieve_product", ErrorKind.PROCESSOR_LOOKUP, stripe.Product.retrieve, product_id)

    def list_prices(self, product_id: str, limit: Optional[int] = None) -> List[Any]:
        params = {"product": product_id, "active": True}
        if limit:
            params["limit"] = limit
        return _list_data(self._call("list_prices", ErrorKind.PROCESSOR_LOOKUP, stripe.Price.list, **params))

    def create_product(self, name: str, description: Optional[str] = None):
        params = {"name": name}
        if description:
            params["description"] = description
        return self._call("create_product", ErrorKind.PROCESSOR_OPERATION, stripe.Product.create, **params)

    def create_price(self, product_id: str, amount: int, currency: str, interval: Optional[str] = None):
        params = {
            "product": product_id,
            "unit_amount": amount,
            "currency": normalize_currency(currency),
        }
        if interval:
            if interval not in SUPPORTED_INTERVALS:
                raise invalid_request(f"Invalid interval '{interval}'. Use 'month' or 'year'")
            params["recurring"] = {"interval": interval}
        price = self._call("create_price", ErrorKind.PROCESSOR_OPERATION, stripe.Price.create, **params)
        self.cache.set(("price_product", _get_stripe_value(price, "id")), product_id)
        return price

    # ------------------------------------------------------------------
    # Connect
    # ------------------------------------------------------------------

    def create_connect_account(self, user_id: str, email: str, contractor_type: str):
        business_type = "company" if contractor_type == "business" else "individual"
        return self._call(
            "create_connect_account", ErrorKind.PROCESSOR_OPERATION,
            stripe.Account.create,
            type="express",
            email=email,
            business_type=business_type,
            capabilities={"transfers": {"requested": True}},
            metadata={"user_id": str(user_id)},
        )
