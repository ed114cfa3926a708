#!/usr/bin/env python3
"""
Stripe setup script for the token package catalog.

Creates the "Token Packages" product with one one-time price per entry of the
token price table, and prints the ids to mirror with
POST /api/catalog/products/{product_id}/sync.

Usage:
    # Test/Sandbox mode:
    python setup_token_packages.py --mode test --api-key sk_test_...

    # Production/Live mode (key may also come from STRIPE_SECRET_KEY / aura.env):
    python setup_token_packages.py --mode live
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))

from aura.core.cache import ProcessCache
from aura.core.config import BUILD_ENV_FILE
from aura.core.errors import AuraError
from aura.db.helpers import DEFAULT_PACKAGE_DESCRIPTION, DEFAULT_PACKAGE_NAME
from aura.services import catalog_service
from aura.services.credentials import CredentialProvider
from aura.services.stripe_service import StripeGateway
from aura.utils.purchase_tokens import PRICE_TOKEN_TABLE, format_amount


def validate_api_key(api_key: str, mode: str) -> bool:
    """Validate that API key matches the specified mode."""
    if mode == 'test' and not api_key.startswith('sk_test_'):
        print("Error: Test mode requires test API key (starts with sk_test_)")
        return False
    if mode == 'live' and not api_key.startswith('sk_live_'):
        print("Error: Live mode requires live API key (starts with sk_live_)")
        return False
    return True


def create_token_packages(gateway: StripeGateway, currency: str = "usd") -> Dict[str, Any]:
    """
    Create the token package product and its prices.

    Returns:
        {"product_id": ..., "prices": {amount_cents: price_id}}
    """
    product = gateway.create_product(DEFAULT_PACKAGE_NAME, DEFAULT_PACKAGE_DESCRIPTION)
    product_id = product["id"]
    print(f"Created product {product_id} ({DEFAULT_PACKAGE_NAME})")

    prices = {}
    for amount_cents, tokens in sorted(PRICE_TOKEN_TABLE.items()):
        price = catalog_service.create_price_for_product(gateway, product_id, amount_cents, currency)
        prices[amount_cents] = price["id"]
        print(f"  {format_amount(amount_cents, currency):>14} -> {tokens:>7} tokens  {price['id']}")
    return {"product_id": product_id, "prices": prices}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the Stripe token package catalog")
    parser.add_argument('--mode', choices=['test', 'live'], required=True, help='Stripe mode')
    parser.add_argument('--api-key', help='Stripe secret key (defaults to STRIPE_SECRET_KEY)')
    parser.add_argument('--currency', default='usd', help='Price currency (usd, eur, gbp)')
    args = parser.parse_args(argv)

    load_dotenv(BUILD_ENV_FILE)
    runtime_env = dict(os.environ)
    if args.api_key:
        runtime_env['STRIPE_SECRET_KEY'] = args.api_key
    credentials = CredentialProvider(runtime_env=runtime_env)

    try:
        if not validate_api_key(credentials.stripe_secret_key(), args.mode):
            return 1
        result = create_token_packages(StripeGateway(credentials, ProcessCache()), args.currency)
    except AuraError as e:
        print(f"Error: {e.detail}")
        return 1

    print(f"\nDone. Mirror the prices with: POST /api/catalog/products/{result['product_id']}/sync")
    return 0


if __name__ == '__main__':
    sys.exit(main())
