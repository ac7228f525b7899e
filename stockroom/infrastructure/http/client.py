"""Thin wrapper over httpx.AsyncClient for the warehouse backend API."""

import logging
from typing import Any

import httpx

from stockroom.domain.shared.error import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StockroomError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, list):  # validation pipes return one message per field
            return "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return response.reason_phrase


def error_for_response(response: httpx.Response) -> StockroomError:
    """Translate a non-2xx response into a domain or infrastructure error."""
    status = response.status_code
    message = _error_message(response)
    if status == 404:
        return NotFoundError(message, code="not_found")
    if status == 409:
        return ConflictError(message, code="conflict")
    if status in (400, 422):
        return ValidationError(message, code="rejected_by_backend")
    if status in (401, 403):
        return AuthorizationError(message, code="access_denied" if status == 403 else "missing_token")
    return TransportError(f"Backend responded {status}: {message}", status_code=status)


def unwrap(body: Any) -> Any:
    """Lists may arrive bare or wrapped as ``{"data": [...]}``."""
    if isinstance(body, dict) and "data" in body and not {"page", "total"} & body.keys():
        return body["data"]
    return body


class ApiClient:
    """Issues JSON requests and maps failures onto the Stockroom error hierarchy.

    Adapters never see httpx exceptions: status errors become the matching
    DomainError, timeouts and connection problems become TransportError.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._http.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.warning("Backend request timed out: %s %s", method, path)
            raise TransportError(f"Timed out: {method} {path}") from e
        except httpx.RequestError as e:
            logger.warning("Backend request failed: %s %s: %s", method, path, e)
            raise TransportError(f"Request failed: {method} {path}: {e}") from e

        if response.is_error:
            error = error_for_response(response)
            logger.debug(
                "Backend error: %s %s -> %d (%s)", method, path, response.status_code, error.code
            )
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {method} {path}") from e

    async def get(self, path: str, **params: Any) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
