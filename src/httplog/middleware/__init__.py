"""Framework adapters for httplog."""

from httplog.middleware.asgi import HTTPLogMiddleware

__all__ = ["HTTPLogMiddleware"]
