from .errors import (
    KVError,
    KVNotConfigured,
    KVResponseError,
    KVTransportError,
    ShopifyError,
    ShopifyNotConfigured,
    UnsupportedMediaType,
)

__all__ = [
    "KVError",
    "KVNotConfigured",
    "KVResponseError",
    "KVTransportError",
    "ShopifyError",
    "ShopifyNotConfigured",
    "UnsupportedMediaType",
]
