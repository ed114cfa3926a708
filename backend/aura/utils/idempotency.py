"""
Stripe idempotency key generation.

Keys are deterministic for the same operation, user and parameters within a
time bucket, so a retried request inside the window reuses the key and Stripe
returns the original object instead of creating a second one.
"""
import hashlib
from datetime import datetime, timezone
from typing import Optional


def generate_idempotency_key(
    operation: str,
    user_id: str,
    *parts,
    time_bucket_minutes: int = 5,
    now: Optional[datetime] = None,
) -> str:
    """
    Generate an idempotency key.

    Args:
        operation: Operation type (e.g., 'subscription_create')
        user_id: User identifier
        *parts: Additional values that distinguish the request
        time_bucket_minutes: Window within which retries share the key
        now: Override for the current time

    Returns:
        Key of the form '<operation>_<40 hex chars>'
    """
    now = now or datetime.now(timezone.utc)
    bucket = int(now.timestamp() // (time_bucket_minutes * 60))
    raw = ":".join([operation, str(user_id), *[str(p) for p in parts], str(bucket)])
    digest = hashlib.sha256(raw.encode()).hexdigest()[:40]
    return f"{operation}_{digest}"
