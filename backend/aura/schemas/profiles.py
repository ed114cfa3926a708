"""Pydantic schemas for profiles"""
from pydantic import BaseModel
from typing import Optional


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    onboarding_complete: Optional[bool] = None


class CustomerRequest(BaseModel):
    email: str
    name: Optional[str] = None
