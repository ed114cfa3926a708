"""Row models for the relational backend tables"""
from aura.models.profile import Profile
from aura.models.payment_method import PaymentMethodRecord
from aura.models.purchase import Purchase
from aura.models.catalog import Package, PackagePrice, SubscriptionPlan, SubscriptionPrice
from aura.models.contractor import (
    Contractor, ContractorAddress, ContractorBankAccount, ContractorKycFormData,
    BeneficialOwner, Representative, DocumentUpload
)

# Export all for convenience
__all__ = [
    "Profile", "PaymentMethodRecord", "Purchase",
    "Package", "PackagePrice", "SubscriptionPlan", "SubscriptionPrice",
    "Contractor", "ContractorAddress", "ContractorBankAccount", "ContractorKycFormData",
    "BeneficialOwner", "Representative", "DocumentUpload"
]
