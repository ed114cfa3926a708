"""Best-effort side steps

Some steps of a reconciliation only improve consistency (clearing stale
default flags, verifying balances after a purchase, writing contractor
sub-records). Their failure must not abort the primary operation, but it must
not vanish either: run_advisory logs it, counts it and hands the outcome back.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from aura.core.metrics import advisory_failures_counter

logger = logging.getLogger(__name__)


@dataclass
class AdvisoryResult:
    step: str
    ok: bool
    value: Any = None
    error: Optional[Exception] = None


def run_advisory(step: str, fn: Callable, *args, **kwargs) -> AdvisoryResult:
    """Run a best-effort step.

    Args:
        step: Short step name, used as the metric label
        fn: Callable performing the step

    Returns:
        AdvisoryResult; never raises for failures inside fn
    """
    try:
        value = fn(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Best-effort step '{step}' failed, continuing: {e}")
        advisory_failures_counter.labels(step=step).inc()
        return AdvisoryResult(step=step, ok=False, error=e)
    return AdvisoryResult(step=step, ok=True, value=value)
