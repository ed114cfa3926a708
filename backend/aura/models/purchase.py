"""Purchase model"""
from typing import Optional

from aura.models.base import Row


class Purchase(Row):
    """One-time token purchase; one row per succeeded payment intent"""
    id: Optional[str] = None
    user_id: str
    stripe_payment_intent_id: str
    stripe_price_id: str
    stripe_product_id: Optional[str] = None
    package_id: Optional[str] = None
    package_price_id: Optional[str] = None
    amount_paid: int  # minor currency units
    currency: str
    tokens_purchased: int
    status: str = "completed"
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
