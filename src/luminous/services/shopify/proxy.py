from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from luminous.contracts.errors import ShopifyError, ShopifyNotConfigured

log = logging.getLogger("luminous.shopify")


class ShopifyProxy:
    """
    Thin pass-through to the Shopify Admin REST API, used by the store-metrics card.

    The dashboard names an Admin API path (e.g. "products/count.json"); the
    server adds the store host, API version and access token so the token never
    reaches the browser.
    """

    def __init__(
        self,
        store_url: str | None,
        admin_api_token: str | None,
        *,
        api_version: str = "2024-07",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.store_url = (store_url or "").removeprefix("https://").removeprefix("http://").rstrip("/")
        self._token = admin_api_token
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.store_url and self._token)

    def url_for(self, endpoint: str) -> str:
        return f"https://{self.store_url}/admin/api/{self.api_version}/{endpoint.lstrip('/')}"

    async def fetch(self, endpoint: str) -> dict[str, Any]:
        if not self.configured:
            raise ShopifyNotConfigured("Shopify credentials are not configured on the server.")

        url = self.url_for(endpoint)
        headers = {"X-Shopify-Access-Token": self._token, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise ShopifyError(f"Shopify request failed: {exc!r}") from exc

        body = resp.text
        if not resp.is_success:
            raise ShopifyError(
                f"Shopify API Error: {resp.status_code} - {body}", status_code=resp.status_code
            )
        # Shopify sometimes returns an empty body with 200 OK
        if not body:
            return {}
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ShopifyError("Shopify API returned a non-JSON body") from exc
