"""Profile and customer API routes"""
import logging
from fastapi import APIRouter, Depends

from aura.core.context import get_gateway, require_store
from aura.core.errors import not_found
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.schemas.profiles import CustomerRequest, ProfileUpdate
from aura.services import customer_service
from aura.services.stripe_service import StripeGateway

router = APIRouter(prefix="/api/profiles", tags=["profiles"])
customers_router = APIRouter(prefix="/api/customers", tags=["customers"])
logger = logging.getLogger(__name__)


@router.get("/username/{username}/available")
def username_available(username: str, store: RemoteStore = Depends(require_store)):
    return {"username": username, "available": helpers.check_username_availability(username, store)}


@router.get("/{user_id}")
def get_profile(user_id: str, store: RemoteStore = Depends(require_store)):
    profile = helpers.get_user_profile(user_id, store)
    if not profile:
        raise not_found("User profile not found")
    return profile


@router.post("/{user_id}", status_code=201)
def create_profile(user_id: str, body: ProfileUpdate, store: RemoteStore = Depends(require_store)):
    return helpers.create_user_profile(user_id, body.model_dump(exclude_none=True), store)


@router.patch("/{user_id}")
def update_profile(user_id: str, body: ProfileUpdate, store: RemoteStore = Depends(require_store)):
    return helpers.update_user_profile(user_id, body.model_dump(exclude_none=True), store)


@customers_router.post("")
def create_customer(body: CustomerRequest, gateway: StripeGateway = Depends(get_gateway)):
    """Create a Stripe customer"""
    return {"customer_id": customer_service.create_stripe_customer(gateway, body.email, body.name)}


@customers_router.post("/lookup")
def get_or_create_customer(body: CustomerRequest, gateway: StripeGateway = Depends(get_gateway)):
    """Find the Stripe customer for an email, creating one if needed"""
    return {"customer_id": customer_service.get_or_create_customer(gateway, body.email, body.name)}


@customers_router.post("/{user_id}/initialize")
def initialize_customer(
    user_id: str,
    gateway: StripeGateway = Depends(get_gateway),
    store: RemoteStore = Depends(require_store),
):
    return {"customer_id": customer_service.initialize_stripe_customer(user_id, gateway, store)}
