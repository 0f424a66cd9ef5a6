"""HTTP job server."""

from .server import JobStore, WebServer, create_app

__all__ = ["JobStore", "WebServer", "create_app"]
