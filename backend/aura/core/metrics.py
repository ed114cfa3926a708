"""Prometheus metrics for the application"""
from prometheus_client import Counter, REGISTRY


def _counter(name: str, description: str, labels=()):
    """Create a counter, reusing the registered one when the module is re-imported"""
    try:
        return Counter(name, description, list(labels))
    except ValueError:
        # Prometheus strips the _total suffix when registering counters
        return REGISTRY._names_to_collectors.get(name) or REGISTRY._names_to_collectors.get(name[:-len('_total')])


# Payment method metrics
payment_methods_registered_counter = _counter(
    'aura_payment_methods_registered_total',
    'Total number of payment method registrations',
    ['status']
)

payment_methods_removed_counter = _counter(
    'aura_payment_methods_removed_total',
    'Total number of payment method removals',
    ['status']
)

# Subscription metrics
subscriptions_created_counter = _counter(
    'aura_subscriptions_created_total',
    'Total number of subscription creations',
    ['status']
)

subscriptions_canceled_counter = _counter(
    'aura_subscriptions_canceled_total',
    'Total number of subscription cancellations',
    ['status']
)

# Purchase metrics
purchases_recorded_counter = _counter(
    'aura_purchases_recorded_total',
    'Total number of purchase recordings',
    ['status']
)

tokens_granted_counter = _counter(
    'aura_tokens_granted_total',
    'Total number of tokens granted by recorded purchases'
)

# Integration health
advisory_failures_counter = _counter(
    'aura_advisory_failures_total',
    'Total number of best-effort steps that failed and were skipped',
    ['step']
)

remote_store_requests_counter = _counter(
    'aura_remote_store_requests_total',
    'Total number of relational backend requests',
    ['method', 'status']
)

stripe_errors_counter = _counter(
    'aura_stripe_errors_total',
    'Total number of failed Stripe calls',
    ['operation']
)
