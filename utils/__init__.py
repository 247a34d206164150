"""Utils module - configuration and request pacing.

This module contains:
- Central configuration (config.py)
- Fixed-interval rate limiter (rate_limiter.py)
"""

from .rate_limiter import RateLimiter
