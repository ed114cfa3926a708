"""Profile model"""
from typing import Optional

from aura.models.base import Row


class Profile(Row):
    """User profile; mirrors the customer reference, subscription state and token balances"""
    id: str
    updated_at: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    onboarding_complete: Optional[bool] = None

    # Stripe references (lagging mirror of processor state)
    stripe_customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    subscription_status: Optional[str] = None  # 'active', 'canceled', 'past_due', ...
    subscription_period_end: Optional[int] = None  # epoch seconds

    # Token balances (maintained by backend triggers on purchases)
    total_tokens: Optional[int] = None
    tokens_remaining: Optional[int] = None
    tokens_used: Optional[int] = None
    total_purchases: Optional[int] = None
    total_spent_cents: Optional[int] = None
    last_purchase_at: Optional[str] = None

    is_contractor: Optional[bool] = None
    contractor_id: Optional[str] = None
