# Error taxonomy for the persistence layer.
#
# None of these are fatal: callers degrade to defaults, log and retry on the
# next natural trigger (coalesced write or scheduled pass).


class KVError(Exception):
    """Base class for key-value store failures."""


class KVNotConfigured(KVError):
    """Raised when an operation needs the remote store but no endpoint/credentials are set."""


class KVTransportError(KVError):
    """Network failure, timeout, non-2xx status or an error reply from the store."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class KVResponseError(KVError):
    """The store answered, but the payload does not have the expected shape."""


class UnsupportedMediaType(ValueError):
    """Raised by the memory library for uploads it cannot store as text."""

    def __init__(self, media_type: str | None, name: str):
        super().__init__(f"Unsupported media type {media_type!r} for {name!r}")
        self.media_type = media_type
        self.name = name


class ShopifyNotConfigured(RuntimeError):
    """Shopify credentials are not configured on the server."""


class ShopifyError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
