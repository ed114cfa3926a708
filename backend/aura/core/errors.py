"""
Error taxonomy

Every failure that crosses a service boundary is an AuraError tagged with an
ErrorKind. Callers branch on the kind (retry, re-login, prompt for a new card)
instead of matching message text; the message stays human-readable for the UI.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration_error"
    AUTHENTICATION_REQUIRED = "authentication_required"
    PROCESSOR_LOOKUP = "processor_lookup_error"
    PROCESSOR_OPERATION = "processor_operation_error"
    PERMANENTLY_UNUSABLE = "permanently_unusable"
    REMOTE_STORE = "remote_store_error"
    NOT_FOUND = "not_found"
    NO_CUSTOMER = "no_customer"
    NO_PAYMENT_METHOD = "no_payment_method"
    PAYMENT_NOT_SUCCEEDED = "payment_not_succeeded"
    INVALID_REQUEST = "invalid_request"


_HTTP_STATUS = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.AUTHENTICATION_REQUIRED: 401,
    ErrorKind.PROCESSOR_LOOKUP: 502,
    ErrorKind.PROCESSOR_OPERATION: 502,
    ErrorKind.PERMANENTLY_UNUSABLE: 410,
    ErrorKind.REMOTE_STORE: 502,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NO_CUSTOMER: 409,
    ErrorKind.NO_PAYMENT_METHOD: 409,
    ErrorKind.PAYMENT_NOT_SUCCEEDED: 402,
    ErrorKind.INVALID_REQUEST: 400,
}

_RETRYABLE_KINDS = {
    ErrorKind.PROCESSOR_LOOKUP,
    ErrorKind.PROCESSOR_OPERATION,
    ErrorKind.REMOTE_STORE,
}

# Remote store responses that will fail the same way on retry
_NON_RETRYABLE_STORE_STATUSES = {401, 403, 422}


class AuraError(Exception):
    """
    Base exception for all service errors.

    Attributes:
        kind: ErrorKind tag
        detail: Human-readable message shown at the boundary
        status: Upstream HTTP status (remote store errors only)
        body: Upstream response body (remote store errors only)
    """

    def __init__(self, kind: ErrorKind, detail: str, status: Optional[int] = None, body: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        self.status = status
        self.body = body
        super().__init__(detail)

    @property
    def retryable(self) -> bool:
        if self.kind not in _RETRYABLE_KINDS:
            return False
        if self.kind == ErrorKind.REMOTE_STORE and self.status in _NON_RETRYABLE_STORE_STATUSES:
            return False
        return True

    @property
    def http_status(self) -> int:
        if self.kind == ErrorKind.REMOTE_STORE and self.status in (401, 403):
            return 401
        return _HTTP_STATUS[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {"error": self.detail, "kind": self.kind.value}

    def __repr__(self):
        return f"AuraError({self.kind.value!r}, {self.detail!r})"


def configuration_error(detail: str) -> AuraError:
    return AuraError(ErrorKind.CONFIGURATION, detail)


def authentication_required(detail: str = "Authentication required") -> AuraError:
    return AuraError(ErrorKind.AUTHENTICATION_REQUIRED, detail)


def not_found(detail: str) -> AuraError:
    return AuraError(ErrorKind.NOT_FOUND, detail)


def invalid_request(detail: str) -> AuraError:
    return AuraError(ErrorKind.INVALID_REQUEST, detail)
