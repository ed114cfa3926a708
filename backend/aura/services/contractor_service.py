"""Contractor service - KYC onboarding and Stripe Connect accounts"""
import logging
from typing import Any, Dict

from aura.core.advisory import run_advisory
from aura.core.errors import AuraError, ErrorKind, not_found
from aura.db import contractors as contractor_db
from aura.db import helpers
from aura.db.remote_store import RemoteStore
from aura.models import Contractor, ContractorKycFormData
from aura.services.stripe_service import StripeGateway, _get_stripe_value

logger = logging.getLogger(__name__)


def _requirements_completed(account: Any) -> bool:
    requirements = _get_stripe_value(account, "requirements")
    currently_due = _get_stripe_value(requirements, "currently_due", []) or []
    return len(currently_due) == 0


def create_contractor_profile(
    user_id: str,
    form: ContractorKycFormData,
    gateway: StripeGateway,
    store: RemoteStore,
) -> Contractor:
    """
    Onboard a user as a contractor.

    Creates the Stripe Connect account and the contractor row. The address row
    and the profile's contractor flags are best-effort: the contractor exists
    even when they fail.
    """
    profile = helpers.require_user_profile(user_id, store)

    account = gateway.create_connect_account(user_id, form.email, form.contractor_type)
    account_id = _get_stripe_value(account, "id")
    logger.info(f"Stripe Connect account {account_id} created for user {user_id}")

    values: Dict[str, Any] = contractor_db.contractor_values_from_form(user_id, profile.id, form)
    values.update({
        "stripe_connect_account_id": account_id,
        "stripe_connect_account_status": "pending",
        "stripe_connect_requirements_completed": _requirements_completed(account),
    })

    try:
        contractor = contractor_db.insert_contractor(values, store)
    except AuraError as e:
        if e.status == 409:
            logger.error(f"Contractor may already exist for user {user_id}: {e.body}")
        raise

    if form.address:
        run_advisory("create_contractor_address", contractor_db.insert_contractor_address, contractor.id, form.address, store)
    run_advisory(
        "mark_profile_contractor",
        helpers.update_user_profile, user_id, {"is_contractor": True, "contractor_id": contractor.id}, store,
    )
    return contractor


def get_contractor_profile(user_id: str, store: RemoteStore) -> Contractor:
    contractor = contractor_db.get_contractor_by_user(user_id, store)
    if not contractor:
        raise not_found("Contractor profile not found")
    return contractor


def save_kyc_progress(user_id: str, form: Dict[str, Any], current_step, store: RemoteStore) -> None:
    if not isinstance(form, dict):
        raise AuraError(ErrorKind.INVALID_REQUEST, "KYC form data must be an object")
    contractor_db.save_kyc_form_data(user_id, form, current_step, store)
