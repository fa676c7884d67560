"""Exception hierarchy for eventchain.

All custom exceptions inherit from EventError base class.
"""

from typing import Any


class EventError(Exception):
    """Base exception for all eventchain errors.

    All custom exceptions in the eventchain package inherit from this class,
    allowing users to catch all framework-specific errors with a single except clause.
    """


class EventValidationError(EventError, ValueError):
    """Event definition or trigger options failed validation.

    This wraps pydantic.ValidationError to provide a framework-specific exception type.
    """


class EventConfigurationError(EventError, ValueError):
    """Registry misuse detected by an EventBus.

    Raised synchronously from registry operations; never captured into an
    invocation context.
    """


class EventConflictError(EventConfigurationError):
    """An event name is already registered with a different mode.

    A name, once registered, stays bound to one mode for the lifetime of
    the bus.
    """


class ProtectedEventError(EventConfigurationError):
    """Attempt to remove an internal (lifecycle) event."""


class SubscriberContractError(EventError, TypeError):
    """A subscriber of a synchronous event returned an awaitable.

    Captured on the invocation context and reported through the
    subscriber-error lifecycle event, like any other subscriber failure.
    """


class SubscriberError(EventError):
    """A subscriber stopped the chain with a non-exception error value.

    Raised by ``throw_on_error`` so callers always receive an exception.

    Attributes:
        error: The value passed to ``stop_for_error``.
    """

    def __init__(self, error: Any) -> None:
        super().__init__(f"Subscriber stopped with error: {error!r}")
        self.error = error
