"""Ordering domain API package."""

from ordering.api.routes import customer_router, order_router, status_router, subscription_router

__all__ = ["order_router", "status_router", "customer_router", "subscription_router"]
