"""HTTP API for Pressroom."""

from .app import create_app

__all__ = ["create_app"]
