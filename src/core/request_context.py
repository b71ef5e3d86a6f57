"""Request context management using contextvars.

Holds the request_id used to trace every log line of a single HTTP request,
and the id of the calling user once it has been resolved.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context.

    Returns
    -------
    Optional[str]
        The current request ID, or None outside of a request
    """
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> Optional[str]:
    return user_id_var.get()


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    """Generate a new unique request ID (UUID v4)."""
    return str(uuid.uuid4())
