"""Catalog service - Stripe products/prices and their mirror in the packages tables"""
import logging
from typing import Any, Dict, List, Optional

from aura.core.errors import not_found
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.models import PackagePrice
from aura.services.stripe_service import StripeGateway, _get_stripe_value, price_interval
from aura.utils.purchase_tokens import get_token_amount_from_price

logger = logging.getLogger(__name__)


def _price_summary(price: Any) -> Dict[str, Any]:
    interval, interval_count = price_interval(price)
    return {
        "id": _get_stripe_value(price, "id"),
        "amount": _get_stripe_value(price, "unit_amount", 0),
        "currency": _get_stripe_value(price, "currency", "usd"),
        "interval": interval,
        "interval_count": interval_count,
    }


def get_product_with_prices(gateway: StripeGateway, product_id: str) -> Dict[str, Any]:
    product = gateway.retrieve_product(product_id)
    prices = gateway.list_prices(product_id, limit=10)
    return {
        "id": _get_stripe_value(product, "id", product_id),
        "name": _get_stripe_value(product, "name", ""),
        "description": _get_stripe_value(product, "description"),
        "prices": [_price_summary(p) for p in prices],
    }


def create_price_for_product(
    gateway: StripeGateway,
    product_id: str,
    amount: int,
    currency: str,
    interval: Optional[str] = None,
) -> Dict[str, Any]:
    return _price_summary(gateway.create_price(product_id, amount, currency, interval))


def setup_stripe_product(
    gateway: StripeGateway,
    name: str,
    description: Optional[str],
    amount: int,
    currency: str,
    interval: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a product with a single price"""
    product = gateway.create_product(name, description)
    product_id = _get_stripe_value(product, "id")
    price = create_price_for_product(gateway, product_id, amount, currency, interval)
    logger.info(f"Created Stripe product {product_id} with price {price['id']}")
    return {"product_id": product_id, "name": name, "price": price}


def sync_stripe_prices_to_database(gateway: StripeGateway, store: RemoteStore, product_id: str) -> List[PackagePrice]:
    """Mirror every active Stripe price of a product into package_prices"""
    package = helpers.get_package_by_product(product_id, store)
    if not package:
        raise not_found(f"No package found with stripe_product_id: {product_id}")

    rows = []
    for price in gateway.list_prices(product_id):
        interval_type, interval_count = price_interval(price)
        amount_cents = _get_stripe_value(price, "unit_amount", 0)
        rows.append(PackagePrice(
            package_id=package.id,
            stripe_price_id=_get_stripe_value(price, "id"),
            amount_cents=amount_cents,
            currency=_get_stripe_value(price, "currency", "usd"),
            interval_type=interval_type,
            interval_count=interval_count,
            token_amount=get_token_amount_from_price(amount_cents),
            is_active=True,
        ))

    synced = helpers.upsert_package_prices(rows, store)
    logger.info(f"Synced {len(rows)} prices for package '{package.name}' ({product_id})")
    return synced
