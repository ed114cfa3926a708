"""Pydantic schemas for contractor onboarding"""
from pydantic import BaseModel
from typing import Any, Dict, Optional


class KycProgressRequest(BaseModel):
    form_data: Dict[str, Any]
    current_step: Optional[int] = None


class DocumentStatusUpdate(BaseModel):
    stripe_file_id: Optional[str] = None
    stripe_upload_status: Optional[str] = None
    stripe_upload_error: Optional[str] = None
    verification_status: Optional[str] = None
    verification_notes: Optional[str] = None
