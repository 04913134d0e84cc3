"""Shared httpx plumbing for the API clients."""

from typing import Any, Optional

import httpx
import structlog

from aitwy.clients.errors import ApiError, error_from_exception, error_from_response
from aitwy.clients.token_store import MemoryTokenStore

logger = structlog.get_logger(__name__)


class BaseApiClient:
    """Async JSON client that attaches the stored bearer token.

    No retries: every failure surfaces as an ApiError.
    """

    default_headers: dict = {"Content-Type": "application/json"}

    def __init__(
        self,
        base_url: str,
        token_store=None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store if token_store is not None else MemoryTokenStore()
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.default_headers,
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    def _auth_headers(self) -> dict:
        token = self.token_store.get_token()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict] = None,
        endpoint: Optional[str] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            endpoint: Unsubstituted path template; logged in place of the
                real path, which may embed a verification token

        Raises:
            ApiError: On non-2xx responses or transport failures
        """
        client = await self._get_client()
        log_path = endpoint or path
        if params is not None:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await client.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._auth_headers(),
            )
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", method=method, endpoint=log_path, error=str(e))
            raise error_from_exception(e) from e

        if response.is_error:
            error = error_from_response(response)
            logger.warning(
                "api_request_rejected",
                method=method,
                endpoint=log_path,
                status=error.status,
            )
            raise error

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                "Invalid JSON in response", status=response.status_code, details=response.text
            ) from e
