"""Middleware package."""
from app.middleware.rate_limit import limiter, setup_rate_limiting, get_rate_limit_key

__all__ = ["limiter", "setup_rate_limiting", "get_rate_limit_key"]
