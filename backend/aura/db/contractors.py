"""Database helpers for contractor onboarding (KYC) tables"""
import logging
from typing import Any, Dict, List, Optional

from aura.core.errors import AuraError, ErrorKind
from aura.db.helpers import utcnow_iso
from aura.db.remote_store import RemoteStore
from aura.models import (
    BeneficialOwner, Contractor, ContractorAddress, ContractorKycFormData,
    DocumentUpload, Representative
)

logger = logging.getLogger(__name__)


def _inserted(rows: List[Dict[str, Any]], table: str) -> Dict[str, Any]:
    if not rows:
        raise AuraError(ErrorKind.REMOTE_STORE, f"Insert into {table} returned no row")
    return rows[0]


# ============================================================================
# KYC FORM PROGRESS
# ============================================================================

def save_kyc_form_data(user_id: str, form: Dict[str, Any], current_step: Optional[int], store: RemoteStore) -> None:
    """Upsert the in-progress KYC form (one row per user)"""
    store.insert("kyc_form_data", {
        "user_id": user_id,
        "form_data": form,
        "current_step": current_step,
        "updated_at": utcnow_iso(),
    }, returning=False, upsert=True, on_conflict="user_id")


def load_kyc_form_data(user_id: str, store: RemoteStore) -> Optional[Dict[str, Any]]:
    rows = store.select("kyc_form_data", {"user_id": user_id}, limit=1)
    return rows[0] if rows else None


# ============================================================================
# CONTRACTORS
# ============================================================================

def insert_contractor(values: Dict[str, Any], store: RemoteStore) -> Contractor:
    return Contractor.model_validate(_inserted(store.insert("contractors", values), "contractors"))


def get_contractor_by_user(user_id: str, store: RemoteStore) -> Optional[Contractor]:
    rows = store.select("contractors", {"user_id": user_id}, limit=1)
    return Contractor.model_validate(rows[0]) if rows else None


def insert_contractor_address(contractor_id: str, address: ContractorAddress, store: RemoteStore) -> None:
    store.insert("contractor_addresses", {
        "contractor_id": contractor_id,
        "address_type": "residential",
        "street_address": address.line1,
        "street_address_2": address.line2,
        "city": address.city,
        "state_province": address.state,
        "postal_code": address.postal_code,
        "country": address.country,
        "is_primary": True,
    }, returning=False)


def contractor_values_from_form(user_id: str, profile_id: str, form: ContractorKycFormData) -> Dict[str, Any]:
    """Columns for a new contractor row, taken from the submitted KYC form"""
    return {
        "user_id": user_id,
        "profile_id": profile_id,
        "contractor_type": form.contractor_type,
        "kyc_status": "submitted",
        "is_active": True,
        "business_name": form.business_name,
        "business_tax_id": form.business_tax_id,
        "business_website_url": form.business_url,
        "business_description": form.business_description,
        "industry_mcc_code": form.industry_mcc_code,
        "company_registration_number": form.company_registration_number,
        "company_structure": form.company_structure,
        "first_name": form.first_name,
        "last_name": form.last_name,
        "date_of_birth": form.date_of_birth,
        "phone_number": form.phone,
        "national_id_number": form.national_id_number,
        "national_id_type": form.national_id_type,
    }


# ============================================================================
# BENEFICIAL OWNERS / REPRESENTATIVES / DOCUMENTS
# ============================================================================

def create_beneficial_owner(owner: BeneficialOwner, store: RemoteStore) -> BeneficialOwner:
    return BeneficialOwner.model_validate(
        _inserted(store.insert("beneficial_owners", owner.to_insert()), "beneficial_owners")
    )


def get_beneficial_owners(contractor_id: str, store: RemoteStore) -> List[BeneficialOwner]:
    rows = store.select("beneficial_owners", {"contractor_id": contractor_id}, order="created_at.asc")
    return [BeneficialOwner.model_validate(r) for r in rows]


def create_representative(representative: Representative, store: RemoteStore) -> Representative:
    return Representative.model_validate(
        _inserted(store.insert("representatives", representative.to_insert()), "representatives")
    )


def get_representatives(contractor_id: str, store: RemoteStore) -> List[Representative]:
    rows = store.select("representatives", {"contractor_id": contractor_id}, order="created_at.asc")
    return [Representative.model_validate(r) for r in rows]


def create_document_upload(document: DocumentUpload, store: RemoteStore) -> DocumentUpload:
    return DocumentUpload.model_validate(
        _inserted(store.insert("document_uploads", document.to_insert()), "document_uploads")
    )


def get_document_uploads(contractor_id: str, store: RemoteStore) -> List[DocumentUpload]:
    rows = store.select("document_uploads", {"contractor_id": contractor_id}, order="created_at.desc")
    return [DocumentUpload.model_validate(r) for r in rows]


def update_document_upload(document_id: str, values: Dict[str, Any], store: RemoteStore) -> Optional[DocumentUpload]:
    rows = store.update("document_uploads", {"id": document_id}, {**values, "updated_at": utcnow_iso()}, returning=True)
    return DocumentUpload.model_validate(rows[0]) if rows else None
