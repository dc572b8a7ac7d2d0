"""Web application entry point for the voice assistant."""

from .app import create_app

app = create_app()

__all__ = ["create_app", "app"]
