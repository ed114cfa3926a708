"""Catalog API routes (Stripe products/prices and local packages)"""
import logging
from fastapi import APIRouter, Depends

from aura.core.context import get_gateway, require_store
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.schemas.catalog import CreatePriceRequest, SetupProductRequest
from aura.services import catalog_service
from aura.services.stripe_service import StripeGateway

router = APIRouter(prefix="/api/catalog", tags=["catalog"])
logger = logging.getLogger(__name__)


@router.get("/products/{product_id}")
def get_product_with_prices(product_id: str, gateway: StripeGateway = Depends(get_gateway)):
    return catalog_service.get_product_with_prices(gateway, product_id)


@router.post("/products", status_code=201)
def setup_product(body: SetupProductRequest, gateway: StripeGateway = Depends(get_gateway)):
    return catalog_service.setup_stripe_product(
        gateway, body.name, body.description, body.amount, body.currency, body.interval
    )


@router.post("/products/{product_id}/prices", status_code=201)
def create_price(product_id: str, body: CreatePriceRequest, gateway: StripeGateway = Depends(get_gateway)):
    return catalog_service.create_price_for_product(gateway, product_id, body.amount, body.currency, body.interval)


@router.post("/products/{product_id}/sync")
def sync_prices(
    product_id: str,
    gateway: StripeGateway = Depends(get_gateway),
    store: RemoteStore = Depends(require_store),
):
    """Mirror the product's Stripe prices into package_prices"""
    synced = catalog_service.sync_stripe_prices_to_database(gateway, store, product_id)
    return {"synced": len(synced), "prices": synced}


@router.get("/packages")
def get_packages(store: RemoteStore = Depends(require_store)):
    return helpers.get_packages_with_prices(store)


@router.get("/plans")
def get_subscription_plans(store: RemoteStore = Depends(require_store)):
    return helpers.get_subscription_plans_with_prices(store)
