"""In-memory session storage: reusable parameter values and navigator state.

Nothing is persisted; state lasts for the life of the process or until a
session expires.
"""

from storage.parameter_store import ParameterStore
from storage.sessions import SessionState, SessionStore, get_session_store

__all__ = [
    "ParameterStore",
    "SessionState",
    "SessionStore",
    "get_session_store",
]
