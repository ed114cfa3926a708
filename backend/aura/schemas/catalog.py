"""Pydantic schemas for the product catalog"""
from pydantic import BaseModel, Field
from typing import Literal, Optional


class CreatePriceRequest(BaseModel):
    amount: int = Field(gt=0)
    currency: str = "usd"
    interval: Optional[Literal["month", "year"]] = None  # None for one-time prices


class SetupProductRequest(CreatePriceRequest):
    name: str
    description: Optional[str] = None
