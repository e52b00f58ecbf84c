"""FastAPI integration for the relay."""

from mediarelay.fastapi.app import create_app

__all__ = ["create_app"]
