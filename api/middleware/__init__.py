"""
API Middleware Package
======================
Middleware components for FastAPI application.
"""

from .cron_auth import CronSecretMiddleware

__all__ = ["CronSecretMiddleware"]
