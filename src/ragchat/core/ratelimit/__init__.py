"""Per-session rate limiting.

Two concrete backends are provided:

* Redis -- distributed sliding window on a sorted set, one pipeline
  round-trip per check.
* Local -- in-process sliding window, used when Redis is unavailable.
"""

from .base import Ratelimiter, RatelimitResponse
from .local_backend import LocalRatelimiter
from .redis_backend import RedisRatelimiter
from .service import RateLimitService

__all__ = [
    "LocalRatelimiter",
    "RateLimitService",
    "Ratelimiter",
    "RatelimitResponse",
    "RedisRatelimiter",
]
