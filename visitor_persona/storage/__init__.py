"""Session storage backends."""

from .session_store import (
    InMemorySessionStore,
    PostgresSessionStore,
    SessionStore,
    connect,
)

__all__ = [
    'InMemorySessionStore',
    'PostgresSessionStore',
    'SessionStore',
    'connect',
]
