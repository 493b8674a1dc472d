"""
YooKassa REST API client (https://yookassa.ru/developers/api).

Thin aiohttp wrapper: it knows the endpoints, authentication and
idempotence headers, and returns decoded JSON. It knows nothing about
orders.
"""
import asyncio
import uuid
from typing import Any, Dict, Optional

import aiohttp

from storefront_sdk.logging import get_logger

logger = get_logger("YooKassaAPI")


class YooKassaError(Exception):
    """Base error of the YooKassa client."""


class YooKassaConnectionError(YooKassaError):
    """Network failure or timeout; the request may be retried."""


class YooKassaHTTPError(YooKassaError):
    """YooKassa answered with a non-2xx status."""

    def __init__(self, status: int, body: Any):
        self.status = status
        self.body = body
        description = body.get("description") if isinstance(body, dict) else body
        super().__init__(f"YooKassa API error {status}: {description}")

    @property
    def is_retryable(self) -> bool:
        return self.status >= 500 or self.status == 429


class YooKassaClient:
    """
    YooKassa API v3 client.

    Usage:
        async with YooKassaClient(shop_id, secret_key) as client:
            payment = await client.create_payment({...})
    """

    def __init__(
        self,
        shop_id: str,
        secret_key: str,
        api_url: str = "https://api.yookassa.ru/v3",
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._auth = aiohttp.BasicAuth(shop_id, secret_key)
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "YooKassaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(auth=self._auth, timeout=self._timeout)
            self._owns_session = True
        return self._session

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def create_payment(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/payments", json=body, idempotent=True)

    async def get_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/payments/{payment_id}")

    async def capture_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/payments/{payment_id}/capture", json={}, idempotent=True)

    async def cancel_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/payments/{payment_id}/cancel", json={}, idempotent=True)

    # ------------------------------------------------------------------
    # Refunds
    # ------------------------------------------------------------------

    async def create_refund(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/refunds", json=body, idempotent=True)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        idempotent: bool = False,
    ) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if idempotent:
            headers["Idempotence-Key"] = str(uuid.uuid4())

        url = f"{self.api_url}{path}"
        session = self._get_session()
        try:
            async with session.request(
                method, url, json=json, headers=headers, auth=self._auth, timeout=self._timeout
            ) as response:
                if response.status >= 400:
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        body = await response.text()
                    logger.warning(f"{method} {path} -> {response.status}")
                    raise YooKassaHTTPError(response.status, body)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise YooKassaConnectionError(f"{method} {path} failed: {e!r}") from e
