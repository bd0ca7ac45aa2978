"""Dashboard session ID propagation for log correlation.

Every dashboard page (one browser tab) runs its own session controller. The
session ID set here is attached to every log record emitted from that
controller's tasks so all logs for one tab can be grouped together.

Session IDs are short hex strings derived from UUIDv4.

Example:
    >>> from libs.common.logging.context import generate_session_id, set_session_id
    >>> session_id = generate_session_id()
    >>> set_session_id(session_id)
    >>> get_session_id() == session_id
    True
"""

import contextvars
import uuid
from types import TracebackType

# Context variable for the session ID; asyncio tasks copy it on creation
_session_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)


def generate_session_id() -> str:
    """Generate a new dashboard session ID.

    Returns:
        A 12-character hex string

    Example:
        >>> len(generate_session_id())
        12
    """
    return uuid.uuid4().hex[:12]


def get_session_id() -> str | None:
    """Get the session ID for the current context, or None if unset."""
    return _session_id_var.get()


def set_session_id(session_id: str) -> None:
    """Set the session ID for the current context.

    Args:
        session_id: The session ID to set

    Raises:
        ValueError: If session_id is empty
    """
    if not session_id:
        raise ValueError("Session ID cannot be empty")
    _session_id_var.set(session_id)


def clear_session_id() -> None:
    """Clear the session ID from the current context."""
    _session_id_var.set(None)


class SessionLogContext:
    """Context manager for scoped session ID management.

    Sets a session ID for a block of code and restores the previous value
    when done. Tasks created inside the block inherit the session ID.

    Example:
        >>> with SessionLogContext("abc123") as session_id:
        ...     get_session_id()
        'abc123'
    """

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id or generate_session_id()
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> str:
        self._token = _session_id_var.set(self.session_id)
        return self.session_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _session_id_var.reset(self._token)
            self._token = None
