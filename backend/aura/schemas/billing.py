"""Pydantic schemas for payment methods, subscriptions and purchases"""
from pydantic import BaseModel, Field
from typing import Optional


class SetupIntentRequest(BaseModel):
    customer_id: str


class RegisterPaymentMethodRequest(BaseModel):
    user_id: str
    payment_method_id: str
    customer_id: Optional[str] = None  # resolved from the profile when omitted
    email: Optional[str] = None
    is_default: Optional[bool] = None


class SetDefaultRequest(BaseModel):
    user_id: str
    customer_id: str
    payment_method_id: str


class FixAttachmentsRequest(BaseModel):
    user_id: str
    customer_id: str


class CreateSubscriptionRequest(BaseModel):
    user_id: str
    price_id: str


class UserRequest(BaseModel):
    user_id: str


class PaymentIntentRequest(BaseModel):
    amount: int = Field(gt=0)
    currency: str = "usd"
    customer_id: str


class StoredMethodPaymentIntentRequest(PaymentIntentRequest):
    payment_method_id: str
    user_id: str
    price_id: Optional[str] = None


class RecordPurchaseRequest(BaseModel):
    user_id: str
    payment_intent_id: str
    price_id: str
    amount_paid: int = Field(ge=0)  # minor currency units
    currency: str = "usd"


class CompletePurchaseRequest(BaseModel):
    user_id: str
    payment_intent_id: str
