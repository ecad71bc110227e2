"""HTTP relay module for modelchat.

Exposes the dispatcher and model catalog as JSON and SSE endpoints.
"""

from .app import create_app

__all__ = ["create_app"]
