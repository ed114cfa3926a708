"""Contractor onboarding API routes"""
import logging
from typing import List
from fastapi import APIRouter, Depends

from aura.core.context import get_gateway, require_store
from aura.core.errors import not_found
from aura.db import contractors as contractor_db
from aura.db.remote_store import RemoteStore
from aura.models import BeneficialOwner, ContractorKycFormData, DocumentUpload, Representative
from aura.schemas.contractors import DocumentStatusUpdate, KycProgressRequest
from aura.services import contractor_service
from aura.services.stripe_service import StripeGateway

router = APIRouter(prefix="/api/contractors", tags=["contractors"])
logger = logging.getLogger(__name__)


@router.put("/{user_id}/kyc")
def save_kyc_progress(user_id: str, body: KycProgressRequest, store: RemoteStore = Depends(require_store)):
    contractor_service.save_kyc_progress(user_id, body.form_data, body.current_step, store)
    return {"saved": True}


@router.get("/{user_id}/kyc")
def load_kyc_progress(user_id: str, store: RemoteStore = Depends(require_store)):
    return {"kyc": contractor_db.load_kyc_form_data(user_id, store)}


@router.post("/{user_id}", status_code=201)
def create_contractor_profile(
    user_id: str,
    form: ContractorKycFormData,
    gateway: StripeGateway = Depends(get_gateway),
    store: RemoteStore = Depends(require_store),
):
    """Submit KYC and create the Stripe Connect account"""
    return contractor_service.create_contractor_profile(user_id, form, gateway, store)


@router.get("/{user_id}")
def get_contractor_profile(user_id: str, store: RemoteStore = Depends(require_store)):
    return contractor_service.get_contractor_profile(user_id, store)


@router.post("/by-id/{contractor_id}/beneficial-owners", status_code=201)
def create_beneficial_owner(contractor_id: str, owner: BeneficialOwner, store: RemoteStore = Depends(require_store)):
    owner.contractor_id = contractor_id
    return contractor_db.create_beneficial_owner(owner, store)


@router.get("/by-id/{contractor_id}/beneficial-owners", response_model=List[BeneficialOwner])
def get_beneficial_owners(contractor_id: str, store: RemoteStore = Depends(require_store)):
    return contractor_db.get_beneficial_owners(contractor_id, store)


@router.post("/by-id/{contractor_id}/representatives", status_code=201)
def create_representative(
    contractor_id: str,
    representative: Representative,
    store: RemoteStore = Depends(require_store),
):
    representative.contractor_id = contractor_id
    return contractor_db.create_representative(representative, store)


@router.get("/by-id/{contractor_id}/representatives", response_model=List[Representative])
def get_representatives(contractor_id: str, store: RemoteStore = Depends(require_store)):
    return contractor_db.get_representatives(contractor_id, store)


@router.post("/by-id/{contractor_id}/documents", status_code=201)
def create_document_upload(contractor_id: str, document: DocumentUpload, store: RemoteStore = Depends(require_store)):
    document.contractor_id = contractor_id
    return contractor_db.create_document_upload(document, store)


@router.get("/by-id/{contractor_id}/documents", response_model=List[DocumentUpload])
def get_document_uploads(contractor_id: str, store: RemoteStore = Depends(require_store)):
    return contractor_db.get_document_uploads(contractor_id, store)


@router.patch("/documents/{document_id}")
def update_document_upload(
    document_id: str,
    body: DocumentStatusUpdate,
    store: RemoteStore = Depends(require_store),
):
    document = contractor_db.update_document_upload(document_id, body.model_dump(exclude_none=True), store)
    if not document:
        raise not_found("Document upload not found")
    return document
