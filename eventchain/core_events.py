"""Built-in lifecycle events.

The bus reports its own activity through these definitions.  All of them
are ``internal``: triggering them never emits further lifecycle events and
errors raised by their subscribers are not reported through
:data:`SUBSCRIBER_ERROR`, so lifecycle reporting always terminates.

Example::

    @bus.on(SUBSCRIBER_ERROR)
    def report(ctx: EventContext) -> None:
        payload: SubscriberErrorPayload = ctx.payload
        sentry.capture(payload.error)
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict

from eventchain.context import EventContext
from eventchain.events import EventDefinition, TriggerOptions


class LifecyclePayload(BaseModel):
    """Base class for lifecycle event payloads."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event: EventDefinition


class BeforeTriggerPayload(LifecyclePayload):
    """Payload of :data:`BEFORE_TRIGGER`.

    Attributes:
        payload: Raw payload passed to ``trigger``.
        options: Options passed to ``trigger``.
    """

    payload: Any = None
    options: TriggerOptions


class AfterTriggerPayload(LifecyclePayload):
    """Payload of :data:`AFTER_TRIGGER`.

    Attributes:
        result: The completed invocation context.
    """

    result: EventContext


class SubscriberErrorPayload(LifecyclePayload):
    """Payload of :data:`SUBSCRIBER_ERROR`.

    Attributes:
        error: The captured error.
        context: The invocation context that was stopped.
    """

    error: Any = None
    context: EventContext


class SubscriberMutationPayload(LifecyclePayload):
    """Payload of :data:`SUBSCRIBER_REGISTERED` and :data:`SUBSCRIBER_REMOVED`."""

    handler: Callable[..., Any]


BEFORE_TRIGGER = EventDefinition(
    name="eventchain.core.before_trigger",
    description="Raised before an event starts iterating over subscribers.",
    internal=True,
)

AFTER_TRIGGER = EventDefinition(
    name="eventchain.core.after_trigger",
    description="Raised after an event finishes iterating over subscribers.",
    internal=True,
)

SUBSCRIBER_ERROR = EventDefinition(
    name="eventchain.core.subscriber_error",
    description="Raised when a subscriber fails while handling an event.",
    internal=True,
)

SUBSCRIBER_REGISTERED = EventDefinition(
    name="eventchain.core.subscriber_registered",
    description="Raised when a subscriber is added to an event.",
    internal=True,
)

SUBSCRIBER_REMOVED = EventDefinition(
    name="eventchain.core.subscriber_removed",
    description="Raised when a subscriber is removed from an event.",
    internal=True,
)

CORE_EVENTS: tuple[EventDefinition, ...] = (
    BEFORE_TRIGGER,
    AFTER_TRIGGER,
    SUBSCRIBER_ERROR,
    SUBSCRIBER_REGISTERED,
    SUBSCRIBER_REMOVED,
)
