"""Invocation context carried through a subscriber chain."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from eventchain.events import EventDefinition

_EMPTY_METADATA: Mapping[str, Any] = MappingProxyType({})


class EventContext:
    """Mutable per-trigger state shared by every subscriber of one call.

    A fresh context is built by :meth:`EventBus.trigger` for each call and
    handed back to the caller once the chain finishes.  The bus keeps no
    reference to it afterwards.

    Invariants:
        - ``stopped`` never reverts to False once set.
        - ``stopped_for_error`` implies ``stopped``.
        - ``error`` holds the recorded error if and only if
          ``stopped_for_error``; otherwise it is None.

    The error value is opaque: any object, None included, may be passed to
    :meth:`stop_for_error`.  Check ``stopped_for_error``, not ``error``, to
    tell whether the chain failed.

    None of the methods raise.
    """

    def __init__(
        self,
        event: EventDefinition,
        payload: Any,
        initial_result: Any = None,
        metadata: Mapping[str, Any] | None = None,
        has_subscribers: bool = False,
    ) -> None:
        self._event = event
        self._payload = payload
        self._result = initial_result
        self._metadata = (
            MappingProxyType(dict(metadata)) if metadata else _EMPTY_METADATA
        )
        self._has_subscribers = has_subscribers
        self._stopped = False
        self._stopped_reason: str | None = None
        self._stopped_for_error = False
        self._error: Any = None

    @property
    def event(self) -> EventDefinition:
        return self._event

    @property
    def payload(self) -> Any:
        return self._payload

    @property
    def result(self) -> Any:
        return self._result

    @result.setter
    def result(self, value: Any) -> None:
        self._result = value

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def stopped_reason(self) -> str | None:
        return self._stopped_reason

    @property
    def stopped_for_error(self) -> bool:
        return self._stopped_for_error

    @property
    def error(self) -> Any:
        return self._error

    @property
    def has_subscribers(self) -> bool:
        """Whether the event had subscribers when the trigger started."""
        return self._has_subscribers

    def set_result(self, value: Any) -> None:
        """Replace the result; does not affect the stop state."""
        self._result = value

    def stop(self, reason: str | None = None) -> None:
        """Stop the chain after the current subscriber.

        Idempotent.  The first reason recorded is kept; later calls leave it
        untouched.

        Args:
            reason: Optional human readable reason.
        """
        if self._stopped:
            return
        self._stopped = True
        self._stopped_reason = reason

    def stop_for_error(self, error: Any, reason: str | None = None) -> None:
        """Record *error* and stop the chain.

        The first error recorded is kept, mirroring :meth:`stop`.

        Args:
            error: Usually the exception raised by a subscriber.  Any
                value is accepted, None included; ``stopped_for_error``
                is set regardless.
            reason: Optional human readable reason.
        """
        if not self._stopped_for_error:
            self._stopped_for_error = True
            self._error = error
        self.stop(reason)

    def __repr__(self) -> str:
        state = "running"
        if self._stopped_for_error:
            state = f"error={self._error!r}"
        elif self._stopped:
            state = f"stopped={self._stopped_reason!r}"
        return (
            f"<EventContext event={self._event.name!r} "
            f"result={self._result!r} {state}>"
        )
