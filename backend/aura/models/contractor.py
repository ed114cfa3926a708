"""Contractor onboarding (KYC) models"""
from typing import List, Optional
from pydantic import Field

from aura.models.base import Row


class ContractorAddress(Row):
    line1: str
    line2: Optional[str] = None
    city: str
    state: str
    postal_code: str = Field(alias="postalCode")
    country: str


class ContractorBankAccount(Row):
    account_holder_name: str = Field(alias="accountHolderName")
    account_holder_type: Optional[str] = Field(default=None, alias="accountHolderType")
    routing_number: Optional[str] = Field(default=None, alias="routingNumber")
    account_last4: Optional[str] = Field(default=None, alias="accountLast4")
    country: Optional[str] = None
    currency: Optional[str] = None


class ContractorKycFormData(Row):
    """KYC form as the UI submits it (camelCase) or as stored (snake_case)"""
    contractor_type: str = Field(alias="contractorType")  # 'individual' or 'business'
    email: str

    # Individual fields
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    phone: Optional[str] = None
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth")
    national_id_number: Optional[str] = Field(default=None, alias="nationalIdNumber")
    national_id_type: Optional[str] = Field(default=None, alias="nationalIdType")

    # Business fields
    business_name: Optional[str] = Field(default=None, alias="businessName")
    business_tax_id: Optional[str] = Field(default=None, alias="businessTaxId")
    business_url: Optional[str] = Field(default=None, alias="businessUrl")
    business_description: Optional[str] = Field(default=None, alias="businessDescription")
    industry_mcc_code: Optional[str] = Field(default=None, alias="industryMccCode")
    company_registration_number: Optional[str] = Field(default=None, alias="companyRegistrationNumber")
    company_structure: Optional[str] = Field(default=None, alias="companyStructure")

    address: Optional[ContractorAddress] = None
    bank_account: Optional[ContractorBankAccount] = Field(default=None, alias="bankAccount")


class Contractor(Row):
    id: str
    user_id: str
    profile_id: str
    contractor_type: str
    kyc_status: str
    is_active: bool = True
    stripe_connect_account_id: Optional[str] = None
    stripe_connect_account_status: Optional[str] = None
    stripe_connect_requirements_completed: Optional[bool] = None

    business_name: Optional[str] = None
    business_tax_id: Optional[str] = None
    business_website_url: Optional[str] = None
    business_description: Optional[str] = None
    industry_mcc_code: Optional[str] = None
    company_registration_number: Optional[str] = None
    company_structure: Optional[str] = None

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    phone_number: Optional[str] = None
    national_id_number: Optional[str] = None
    national_id_type: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BeneficialOwner(Row):
    id: Optional[str] = None
    contractor_id: Optional[str] = None  # set from the route path on create
    first_name: str
    last_name: str
    date_of_birth: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    street_address: str
    street_address_2: Optional[str] = None
    city: str
    state_province: Optional[str] = None
    postal_code: str
    country: str
    ownership_percentage: float
    title: Optional[str] = None
    national_id_number: Optional[str] = None
    national_id_type: Optional[str] = None
    is_verified: bool = False
    verified_at: Optional[str] = None
    verification_notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Representative(Row):
    id: Optional[str] = None
    contractor_id: Optional[str] = None  # set from the route path on create
    first_name: str
    last_name: str
    date_of_birth: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    street_address: str
    street_address_2: Optional[str] = None
    city: str
    state_province: Optional[str] = None
    postal_code: str
    country: str
    title: str
    is_authorized_signatory: bool = False
    national_id_number: Optional[str] = None
    national_id_type: Optional[str] = None
    is_verified: bool = False
    verified_at: Optional[str] = None
    verification_notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class DocumentUpload(Row):
    id: Optional[str] = None
    contractor_id: Optional[str] = None  # set from the route path on create
    document_type: str
    document_purpose: str
    file_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    stripe_file_id: Optional[str] = None
    stripe_upload_status: str = "pending"
    stripe_upload_error: Optional[str] = None
    local_file_path: Optional[str] = None
    file_hash: Optional[str] = None
    verification_status: str = "pending"
    verification_notes: Optional[str] = None
    verified_at: Optional[str] = None
    required_for_capability: Optional[List[str]] = None
    requirement_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
