"""Payment method model"""
from typing import Optional

from aura.models.base import Row


class PaymentMethodRecord(Row):
    """Stored card metadata for a Stripe payment method (never the PAN or CVV)"""
    id: Optional[str] = None
    user_id: str
    stripe_customer_id: str
    stripe_payment_method_id: str
    card_brand: str
    card_last4: str
    card_exp_month: int
    card_exp_year: int
    is_default: bool = False
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_used_at: Optional[str] = None
