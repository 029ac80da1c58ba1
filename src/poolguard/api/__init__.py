"""HTTP surface: FastAPI app factory and health endpoints."""

from poolguard.api.app import create_app

__all__ = ["create_app"]
