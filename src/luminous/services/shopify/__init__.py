from .proxy import ShopifyProxy

__all__ = ["ShopifyProxy"]
