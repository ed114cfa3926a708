"""
Token grant calculation for one-time purchases.

A recorded purchase grants tokens. The preferred source is the token_amount
stored on the mirrored package_prices row for the Stripe price. When the price
has not been mirrored yet, the grant is derived from the amount paid using the
fixed price table of the token store:

    $1.49   ->     100 tokens
    $7.49   ->     500 tokens
    $14.99  ->   1,000 tokens
    $30.99  ->   5,000 tokens
    $62.99  ->  25,000 tokens
    $159.99 -> 100,000 tokens

Any other amount grants DEFAULT_TOKEN_AMOUNT, so a purchase is never recorded
with zero tokens.
"""
from typing import Optional

# Amount paid in minor currency units (cents) -> tokens granted
PRICE_TOKEN_TABLE = {
    149: 100,
    749: 500,
    1499: 1000,
    3099: 5000,
    6299: 25000,
    15999: 100000,
}

DEFAULT_TOKEN_AMOUNT = 100


def get_token_amount_from_price(amount_cents: int) -> int:
    """
    Look up the tokens granted for a purchase amount.

    Args:
        amount_cents: Amount paid in minor currency units

    Returns:
        Tokens granted; DEFAULT_TOKEN_AMOUNT for amounts not in the table
    """
    return PRICE_TOKEN_TABLE.get(amount_cents, DEFAULT_TOKEN_AMOUNT)


def resolve_tokens_purchased(amount_cents: int, stored_token_amount: Optional[int] = None) -> int:
    """
    Decide the grant for a purchase.

    A positive token_amount from the mirrored price row wins; otherwise the
    amount table is used.
    """
    if stored_token_amount:
        return stored_token_amount
    return get_token_amount_from_price(amount_cents)


def format_amount(amount_cents: int, currency: str = "usd") -> str:
    """Format minor units for log lines (e.g., 1499, 'usd' -> '$14.99 USD')"""
    symbol = {"usd": "$", "eur": "€", "gbp": "£"}.get(currency.lower(), "")
    return f"{symbol}{amount_cents / 100.0:.2f} {currency.upper()}"
