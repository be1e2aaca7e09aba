"""Per-session chat history.

Two concrete backends:

* Redis -- durable, one list per session with a TTL.
* In-memory -- process-local, used automatically when Redis is not
  configured.
"""

from .base import HistoryStore, Message
from .memory import InMemoryHistory
from .redis_backend import RedisHistory
from .service import HistoryService

__all__ = [
    "HistoryService",
    "HistoryStore",
    "InMemoryHistory",
    "Message",
    "RedisHistory",
]
