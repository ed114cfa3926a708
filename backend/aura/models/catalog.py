"""Catalog models mirroring Stripe products and prices"""
from typing import List, Optional

from aura.models.base import Row


class SubscriptionPrice(Row):
    id: Optional[str] = None
    plan_id: Optional[str] = None
    stripe_price_id: str
    amount_cents: int
    currency: str = "usd"
    interval_type: str = "month"
    interval_count: int = 1
    is_active: bool = True


class SubscriptionPlan(Row):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    stripe_product_id: Optional[str] = None
    features: List[str] = []
    sort_order: Optional[int] = None
    is_active: bool = True
    subscription_prices: List[SubscriptionPrice] = []


class PackagePrice(Row):
    id: Optional[str] = None
    package_id: Optional[str] = None
    stripe_price_id: str
    amount_cents: int = 0
    currency: str = "usd"
    interval_type: str = "one_time"
    interval_count: int = 1
    token_amount: Optional[int] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Package(Row):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    stripe_product_id: Optional[str] = None
    token_amount: Optional[int] = None
    bonus_percentage: Optional[int] = None
    features: List[str] = []
    is_active: bool = True
    sort_order: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    package_prices: List[PackagePrice] = []

    def to_insert(self) -> dict:
        return self.model_dump(exclude_none=True, exclude={"id", "created_at", "updated_at", "package_prices"})
