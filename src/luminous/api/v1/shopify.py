# /shopify: store-metrics proxy

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from luminous.contracts.errors import ShopifyError, ShopifyNotConfigured
from luminous.services.shopify.proxy import ShopifyProxy

from .deps import get_api_logger, get_shopify
from .schemas import ShopifyProxyRequest

router = APIRouter(tags=["shopify"])


@router.post("/shopify")
async def proxy_shopify(
    req: ShopifyProxyRequest,
    shopify: Annotated[ShopifyProxy, Depends(get_shopify)],
    log: Annotated[logging.Logger, Depends(get_api_logger)],
) -> Any:
    if not shopify.configured:
        log.error("Shopify credentials missing on server")
        return JSONResponse(
            status_code=500,
            content={"error": "Shopify credentials are not configured on the server."},
        )
    if not req.endpoint or not isinstance(req.endpoint, str):
        return JSONResponse(
            status_code=400, content={"error": "Endpoint is required in the request body."}
        )
    try:
        return await shopify.fetch(req.endpoint)
    except (ShopifyError, ShopifyNotConfigured) as exc:
        log.error("Error proxying to Shopify: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})
