"""
Sessions Package - in-process session cache.
"""

from chat_cache.sessions.cache import SessionCache

__all__ = [
    "SessionCache",
]
