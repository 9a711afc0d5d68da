"""
HTTP surface for the arbitrage executor.

Provides:
- Public profitability estimate
- Owner-only route execution (JWT bearer token)
- State, event log and Prometheus metrics
"""

from .auth import TokenService, token_service
from .dependencies import get_caller, get_authenticated_caller, get_engine
from .routes import router

__all__ = [
    "TokenService",
    "token_service",
    "get_caller",
    "get_authenticated_caller",
    "get_engine",
    "router",
]
