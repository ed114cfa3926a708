"""Customer service - Stripe customer references for user profiles"""
import logging
from typing import Optional

from aura.core.config import settings
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.services.stripe_service import StripeGateway, _get_stripe_value

logger = logging.getLogger(__name__)


def create_stripe_customer(gateway: StripeGateway, email: str, name: Optional[str] = None) -> str:
    customer = gateway.create_customer(email, name)
    return _get_stripe_value(customer, "id")


def get_or_create_customer(gateway: StripeGateway, email: str, name: Optional[str] = None) -> str:
    """Reuse the Stripe customer with this email, or create one"""
    existing = gateway.find_customer_by_email(email)
    if existing:
        customer_id = _get_stripe_value(existing, "id")
        logger.info(f"Found existing Stripe customer {customer_id} for {email}")
        return customer_id
    return create_stripe_customer(gateway, email, name)


def placeholder_email(user_id: str) -> str:
    return f"user+{user_id}@{settings.PLACEHOLDER_EMAIL_DOMAIN}"


def initialize_stripe_customer(user_id: str, gateway: StripeGateway, store: RemoteStore) -> str:
    """Create a customer for a user that has none yet, under a placeholder email"""
    profile = helpers.require_user_profile(user_id, store)
    if profile.stripe_customer_id:
        return profile.stripe_customer_id

    customer = gateway.create_customer(placeholder_email(user_id), profile.full_name, metadata={"user_id": str(user_id)})
    customer_id = _get_stripe_value(customer, "id")
    helpers.update_customer_reference(user_id, customer_id, store)
    logger.info(f"Initialized Stripe customer {customer_id} for user {user_id}")
    return customer_id


def ensure_customer(
    user_id: str,
    gateway: StripeGateway,
    store: RemoteStore,
    email: Optional[str] = None,
    name: Optional[str] = None,
) -> str:
    """Customer reference for a user, creating (and recording) it lazily.

    The profile's reference wins; otherwise a customer with the given email
    is reused or created. At most one reference is ever kept per user.
    """
    profile = helpers.require_user_profile(user_id, store)
    if profile.stripe_customer_id:
        return profile.stripe_customer_id
    if not email:
        return initialize_stripe_customer(user_id, gateway, store)

    customer_id = get_or_create_customer(gateway, email, name or profile.full_name)
    helpers.update_customer_reference(user_id, customer_id, store)
    return customer_id
