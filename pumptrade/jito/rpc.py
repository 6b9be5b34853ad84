# pumptrade/jito/rpc.py
"""
Minimal JSON-RPC 2.0 over HTTP, just enough for the Jito block engine.
"""

import itertools
from typing import Any, List, Optional

import httpx

from ..core.constants import JITO_BUNDLES_PATH
from ..core.exceptions import RelayError, TransportError
from ..utils.logger import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 10.0  # seconds
PARSE_ERROR_CODE = -32700
AUTH_HEADER = "x-jito-auth"


def _error_code(error: dict, status_code: int) -> int:
    """Numeric code of a JSON-RPC error object, or the HTTP status when it has none usable."""
    code = error.get("code")
    if isinstance(code, bool) or code is None:
        return status_code
    try:
        return int(code)
    except (TypeError, ValueError):
        logger.warning(f"Relay sent a non-numeric error code {code!r}")
        return PARSE_ERROR_CODE


class JsonRpcTransport:
    """POSTs {jsonrpc, id, method, params} and unwraps {result} or {error}."""

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        path: str = JITO_BUNDLES_PATH,
        timeout: float = REQUEST_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.path = path
        self.timeout = timeout
        self.url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if auth_token:
            headers[AUTH_HEADER] = auth_token
        self.headers = headers
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def close(self) -> None:
        await self._client.aclose()

    def build_request(self, method: str, params: Optional[List[Any]] = None) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params if params is not None else [],
        }

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = self.build_request(method, params)
        logger.debug(f"Relay call {method} -> {self.url}")
        try:
            response = await self._client.post(self.url, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Relay {method} request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            raise RelayError(_error_code(error, response.status_code), str(error.get("message", "")), error.get("data"))
        if response.status_code < 200 or response.status_code >= 300:
            raise RelayError(response.status_code, response.text or response.reason_phrase)
        if not isinstance(body, dict) or "result" not in body:
            raise RelayError(PARSE_ERROR_CODE, f"Malformed relay response to {method}: {response.text[:200]}")
        return body["result"]
