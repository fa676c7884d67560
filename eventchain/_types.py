"""Shared type definitions for eventchain.

All type aliases use PEP 695 ``type`` statement syntax.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from eventchain.context import EventContext

type EventMode = Literal["sync", "async"]
"""Execution contract shared by every subscriber of one event."""

type Handler = Callable[["EventContext"], Any]
"""Subscriber of either mode.

Returning a value other than ``None`` replaces the context result.  For
``async`` events an awaitable return value is awaited before the next
subscriber runs; for ``sync`` events it is a contract violation.
"""
