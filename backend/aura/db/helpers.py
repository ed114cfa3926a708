"""Database helper functions over the relational backend tables"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aura.core.errors import AuraError, ErrorKind, not_found
from aura.db.remote_store import Op, RemoteStore
from aura.models import (
    Package, PackagePrice, PaymentMethodRecord, Profile, Purchase, SubscriptionPlan
)

logger = logging.getLogger(__name__)

# Ordering that puts the default method first, then the most recently added
PAYMENT_METHOD_ORDER = "is_default.desc,created_at.desc"

# Mirrored package for Stripe products that were never set up locally
DEFAULT_PACKAGE_NAME = "Token Packages"
DEFAULT_PACKAGE_DESCRIPTION = "Flexible token packages with bulk discounts"
DEFAULT_PACKAGE_FEATURES = ["Flexible token amounts", "Bulk discounts", "All features", "Priority support"]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


# ============================================================================
# PROFILES
# ============================================================================

def get_user_profile(user_id: str, store: RemoteStore) -> Optional[Profile]:
    row = _first(store.select("profiles", {"id": user_id}, limit=1))
    return Profile.model_validate(row) if row else None


def require_user_profile(user_id: str, store: RemoteStore) -> Profile:
    """Get a profile or raise NOT_FOUND"""
    profile = get_user_profile(user_id, store)
    if not profile:
        raise not_found("User profile not found")
    return profile


def create_user_profile(user_id: str, values: Dict[str, Any], store: RemoteStore) -> Profile:
    row = _first(store.insert("profiles", {"id": user_id, **values}))
    if not row:
        raise AuraError(ErrorKind.REMOTE_STORE, "Profile insert returned no row")
    return Profile.model_validate(row)


def update_user_profile(user_id: str, values: Dict[str, Any], store: RemoteStore) -> Profile:
    rows = store.update("profiles", {"id": user_id}, {**values, "updated_at": utcnow_iso()}, returning=True)
    if not rows:
        raise not_found("User profile not found")
    return Profile.model_validate(rows[0])


def check_username_availability(username: str, store: RemoteStore) -> bool:
    return not store.select("profiles", {"username": username}, select="id", limit=1)


def update_subscription_status(
    user_id: str,
    subscription_id: str,
    status: str,
    period_end: Optional[int],
    store: RemoteStore,
) -> None:
    """Overwrite the profile's subscription mirror"""
    store.update("profiles", {"id": user_id}, {
        "subscription_id": subscription_id,
        "subscription_status": status,
        "subscription_period_end": period_end,
        "updated_at": utcnow_iso(),
    })


def update_customer_reference(user_id: str, customer_id: str, store: RemoteStore) -> None:
    store.update("profiles", {"id": user_id}, {
        "stripe_customer_id": customer_id,
        "updated_at": utcnow_iso(),
    })


# ============================================================================
# PAYMENT METHODS
# ============================================================================

def store_payment_method(record: PaymentMethodRecord, store: RemoteStore) -> PaymentMethodRecord:
    row = _first(store.insert("payment_methods", record.to_insert()))
    if not row:
        raise AuraError(ErrorKind.REMOTE_STORE, "Payment method insert returned no row")
    return PaymentMethodRecord.model_validate(row)


def get_user_payment_methods(user_id: str, store: RemoteStore, active_only: bool = True) -> List[PaymentMethodRecord]:
    """List stored payment methods, default first, then newest first"""
    filters = {"user_id": user_id}
    if active_only:
        filters["is_active"] = True
    rows = store.select("payment_methods", filters, order=PAYMENT_METHOD_ORDER)
    return [PaymentMethodRecord.model_validate(r) for r in rows]


def get_payment_method(user_id: str, payment_method_id: str, store: RemoteStore) -> Optional[PaymentMethodRecord]:
    row = _first(store.select("payment_methods", {
        "user_id": user_id,
        "stripe_payment_method_id": payment_method_id,
    }, limit=1))
    return PaymentMethodRecord.model_validate(row) if row else None


def update_payment_method(
    user_id: str,
    payment_method_id: str,
    values: Dict[str, Any],
    store: RemoteStore,
) -> Optional[PaymentMethodRecord]:
    rows = store.update("payment_methods", {
        "stripe_payment_method_id": payment_method_id,
        "user_id": user_id,
    }, {**values, "updated_at": utcnow_iso()}, returning=True)
    return PaymentMethodRecord.model_validate(rows[0]) if rows else None


def unset_all_default_payment_methods(user_id: str, store: RemoteStore, except_id: Optional[str] = None) -> None:
    filters = {"user_id": user_id, "is_default": True, "is_active": True}
    if except_id:
        filters["stripe_payment_method_id"] = Op("neq", except_id)
    store.update("payment_methods", filters, {"is_default": False, "updated_at": utcnow_iso()})


def deactivate_payment_method(user_id: str, payment_method_id: str, store: RemoteStore) -> None:
    """Soft delete: keep the row for history, drop it from active listings"""
    update_payment_method(user_id, payment_method_id, {"is_active": False, "is_default": False}, store)


def delete_payment_method_from_db(user_id: str, payment_method_id: str, store: RemoteStore) -> None:
    store.delete("payment_methods", {
        "stripe_payment_method_id": payment_method_id,
        "user_id": user_id,
    })


def mark_payment_method_used(user_id: str, payment_method_id: str, store: RemoteStore) -> None:
    now = utcnow_iso()
    store.update("payment_methods", {
        "stripe_payment_method_id": payment_method_id,
        "user_id": user_id,
    }, {"last_used_at": now, "updated_at": now})


def ensure_single_payment_method_is_default(user_id: str, store: RemoteStore) -> Optional[PaymentMethodRecord]:
    """Promote the only active method to default when it is not already.

    Returns the promoted record, or None when nothing changed.
    """
    methods = get_user_payment_methods(user_id, store)
    if len(methods) != 1 or methods[0].is_default:
        return None
    only = methods[0]
    logger.info(f"Promoting sole payment method {only.stripe_payment_method_id} to default for user {user_id}")
    return update_payment_method(user_id, only.stripe_payment_method_id, {"is_default": True}, store)


# ============================================================================
# CATALOG
# ============================================================================

def get_package_by_product(product_id: str, store: RemoteStore) -> Optional[Package]:
    row = _first(store.select("packages", {"stripe_product_id": product_id}, limit=1))
    return Package.model_validate(row) if row else None


def create_default_package(product_id: str, store: RemoteStore) -> Package:
    package = Package(
        name=DEFAULT_PACKAGE_NAME,
        description=DEFAULT_PACKAGE_DESCRIPTION,
        stripe_product_id=product_id,
        token_amount=100,
        bonus_percentage=0,
        features=DEFAULT_PACKAGE_FEATURES,
        is_active=True,
    )
    row = _first(store.insert("packages", package.to_insert()))
    if not row:
        raise AuraError(ErrorKind.REMOTE_STORE, "Package insert returned no row")
    return Package.model_validate(row)


def get_package_price_by_stripe_price(price_id: str, store: RemoteStore) -> Optional[PackagePrice]:
    row = _first(store.select("package_prices", {"stripe_price_id": price_id}, limit=1))
    return PackagePrice.model_validate(row) if row else None


def upsert_package_prices(prices: List[PackagePrice], store: RemoteStore) -> List[PackagePrice]:
    if not prices:
        return []
    rows = store.insert(
        "package_prices",
        [p.to_insert() for p in prices],
        upsert=True,
        on_conflict="stripe_price_id",
    )
    return [PackagePrice.model_validate(r) for r in rows]


def get_packages_with_prices(store: RemoteStore) -> List[Package]:
    rows = store.select("packages", {"is_active": True}, select="*,package_prices(*)", order="sort_order.asc")
    packages = [Package.model_validate(r) for r in rows]
    for package in packages:
        package.package_prices = sorted(
            (p for p in package.package_prices if p.is_active),
            key=lambda p: p.amount_cents,
        )
    return packages


def get_subscription_plans_with_prices(store: RemoteStore) -> List[SubscriptionPlan]:
    rows = store.select(
        "subscription_plans",
        {"is_active": True},
        select="*,subscription_prices(*)",
        order="sort_order.asc",
    )
    return [SubscriptionPlan.model_validate(r) for r in rows]


# ============================================================================
# PURCHASES
# ============================================================================

def get_purchase_by_payment_intent(payment_intent_id: str, store: RemoteStore) -> Optional[Purchase]:
    row = _first(store.select("purchases", {"stripe_payment_intent_id": payment_intent_id}, limit=1))
    return Purchase.model_validate(row) if row else None


def insert_purchase(purchase: Purchase, store: RemoteStore) -> Purchase:
    row = _first(store.insert("purchases", purchase.to_insert()))
    if not row:
        raise AuraError(ErrorKind.REMOTE_STORE, "Purchase insert returned no row")
    return Purchase.model_validate(row)


def get_user_purchases(user_id: str, store: RemoteStore) -> List[Purchase]:
    rows = store.select(
        "purchases",
        {"user_id": user_id, "status": "completed"},
        order="completed_at.desc",
    )
    return [Purchase.model_validate(r) for r in rows]
