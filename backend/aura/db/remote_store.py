"""REST client for the relational backend (PostgREST-style /rest/v1 API)"""
import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

import httpx

from aura.core import otel
from aura.core.errors import AuraError, ErrorKind
from aura.core.metrics import remote_store_requests_counter

logger = logging.getLogger(__name__)

Filters = Dict[str, Any]


class Op(NamedTuple):
    """A filter value with an explicit PostgREST operator, e.g. Op("neq", "pm_1")"""
    operator: str
    value: Any


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def encode_filters(filters: Optional[Filters]) -> Dict[str, str]:
    """Turn {column: value} into PostgREST filters.

    Plain values always become equality filters, whatever their text; other
    operators must be passed as Op.
    """
    params = {}
    for column, value in (filters or {}).items():
        if isinstance(value, Op):
            params[column] = f"{value.operator}.{_encode_value(value.value)}"
        elif value is None:
            params[column] = "is.null"
        else:
            params[column] = f"eq.{_encode_value(value)}"
    return params


class RemoteStore:
    """
    Authenticated client for one user session against the relational backend.

    Every request carries the session's bearer token and the project's anon
    key; row-level security on the backend scopes what the token can see.
    """

    def __init__(self, base_url: str, anon_key: str, access_token: str, client: httpx.Client):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self.client = client

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "apikey": self.anon_key,
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(self, method: str, table: str, params=None, json=None, prefer: Optional[str] = None) -> Any:
        url = f"{self.base_url}/rest/v1/{table}"
        with otel.span(f"remote_store.{method}", table=table) as current:
            try:
                response = self.client.request(method, url, params=params, json=json, headers=self._headers(prefer))
            except httpx.HTTPError as e:
                remote_store_requests_counter.labels(method=method, status="transport_error").inc()
                logger.error(f"{method} {table} failed: {type(e).__name__}: {e}")
                raise AuraError(ErrorKind.REMOTE_STORE, f"Request to {table} failed: {e}")

            current.set_attribute("http.status_code", response.status_code)
            remote_store_requests_counter.labels(method=method, status=str(response.status_code)).inc()
            if response.status_code >= 400:
                body = response.text
                logger.error(f"{method} {table} returned HTTP {response.status_code}: {body}")
                reason = body or response.reason_phrase or "Unknown error"
                raise AuraError(
                    ErrorKind.REMOTE_STORE,
                    f"{method} {table} failed: HTTP {response.status_code} {reason}",
                    status=response.status_code,
                    body=body,
                )

        if not response.content:
            return None
        return response.json()

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        select: str = "*",
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": select, **encode_filters(filters)}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", table, params=params) or []

    def insert(
        self,
        table: str,
        rows: Union[Dict[str, Any], Sequence[Dict[str, Any]]],
        returning: bool = True,
        upsert: bool = False,
        on_conflict: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        prefer = ["return=representation" if returning else "return=minimal"]
        if upsert:
            prefer.append("resolution=merge-duplicates")
        params = {"on_conflict": on_conflict} if on_conflict else None
        payload = rows if isinstance(rows, dict) else list(rows)
        return self._request("POST", table, params=params, json=payload, prefer=",".join(prefer)) or []

    def update(
        self,
        table: str,
        filters: Filters,
        values: Dict[str, Any],
        returning: bool = False,
    ) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to update without filters")
        prefer = "return=representation" if returning else "return=minimal"
        return self._request("PATCH", table, params=encode_filters(filters), json=values, prefer=prefer) or []

    def delete(self, table: str, filters: Filters) -> None:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        self._request("DELETE", table, params=encode_filters(filters), prefer="return=minimal")
