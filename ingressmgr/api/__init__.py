"""Health, status and metrics HTTP API for ingressmgr.

Exposes:
    create_app -- FastAPI application factory.
"""

from ingressmgr.api.app import create_app

__all__ = ["create_app"]
