"""Client for the AITWY account service."""

from typing import Optional

import httpx
import structlog
from pydantic import ValidationError

from aitwy.clients.base import BaseApiClient
from aitwy.clients.endpoints import AUTH_ENDPOINTS, replace_params
from aitwy.clients.errors import ApiError
from aitwy.models.response import ApiResponse

logger = structlog.get_logger(__name__)


class AuthApiClient(BaseApiClient):
    """Wrapper around ``/api/auth``.

    A successful login stores the token and user in the token store; logout
    clears them even when the server call fails.
    """

    async def _call(
        self, method: str, name: str, json: Optional[dict] = None, **path_params: str
    ) -> ApiResponse:
        endpoint = AUTH_ENDPOINTS[name]
        body = await self.request(
            method,
            replace_params(endpoint, **path_params),
            json=json,
            endpoint=endpoint,
        )
        try:
            return ApiResponse.model_validate(body or {"success": True})
        except ValidationError:
            raise ApiError("Unexpected response from account service", details=body)

    async def signup(self, name: str, email: str, password: str) -> ApiResponse:
        return await self._call(
            "POST", "signup", json={"name": name, "email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> ApiResponse:
        """Login and persist the returned token and user."""
        response = await self._call(
            "POST", "login", json={"email": email, "password": password}
        )
        data = response.data or {}
        token = data.get("token")
        if not token:
            raise ApiError("Login response did not include a token", details=data)
        self.token_store.save(token, data.get("user"))
        logger.info("session_saved", user_id=(data.get("user") or {}).get("id"))
        return response

    async def get_current_user(self) -> ApiResponse:
        return await self._call("GET", "me")

    async def logout(self) -> ApiResponse:
        """Tell the server, then drop the local session regardless of outcome."""
        try:
            return await self._call("POST", "logout")
        finally:
            self.token_store.clear()

    async def verify_email(self, token: str) -> ApiResponse:
        return await self._call("GET", "verify_email", token=token)

    async def resend_verification(self, email: str) -> ApiResponse:
        return await self._call("POST", "resend_verification", json={"email": email})

    async def health_check(self) -> dict:
        """Query ``/health`` at the service root (the base URL minus ``/api``)."""
        root = self.base_url[: -len("/api")] if self.base_url.endswith("/api") else self.base_url
        try:
            client = await self._get_client()
            response = await client.get(f"{root}/health")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ApiError("Server is not reachable", details=str(e)) from e
