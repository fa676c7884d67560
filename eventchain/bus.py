"""Event bus: registry operations and the trigger algorithm.

A trigger flows one :class:`EventContext` through the subscribers of an
event in registration order.  ``sync`` events run the chain inline and
return the context; ``async`` events return a coroutine that awaits each
subscriber before starting the next.  Both modes share the same stop and
error policy.
"""

import inspect
from collections.abc import Callable, Coroutine
from typing import Any

from loguru import logger

from eventchain._types import Handler
from eventchain.context import EventContext
from eventchain.core_events import (
    AFTER_TRIGGER,
    BEFORE_TRIGGER,
    CORE_EVENTS,
    SUBSCRIBER_ERROR,
    SUBSCRIBER_REGISTERED,
    SUBSCRIBER_REMOVED,
    AfterTriggerPayload,
    BeforeTriggerPayload,
    LifecyclePayload,
    SubscriberErrorPayload,
    SubscriberMutationPayload,
)
from eventchain.events import EventDefinition, TriggerOptions
from eventchain.exceptions import (
    ProtectedEventError,
    SubscriberContractError,
    SubscriberError,
)
from eventchain.registry import EventRecord, EventRegistry

log = logger.bind(source=__name__)

STOPPED_BY_ERROR = "Subscriber threw an error"


def callable_name(cb: Any) -> str:
    """Return a human-readable name for a subscriber, safe for logging.

    Falls back through ``__qualname__``, ``__name__``, and ``repr()``
    so that ``functools.partial`` and callable instances never raise.
    """
    return (
        getattr(cb, "__qualname__", None) or getattr(cb, "__name__", None) or repr(cb)
    )


def _event_name(event: EventDefinition | str) -> str:
    return event if isinstance(event, str) else event.name


class EventSubscription:
    """Handle returned by :meth:`EventBus.subscribe`.

    Bound to one handler/event pair.  ``unsubscribe()`` may be called any
    number of times; the handle also works as a context manager.
    """

    def __init__(
        self, bus: "EventBus", definition: EventDefinition, handler: Handler
    ) -> None:
        self._bus = bus
        self._definition = definition
        self._handler = handler

    @property
    def event(self) -> str:
        """Name of the subscribed event."""
        return self._definition.name

    def unsubscribe(self) -> None:
        self._bus.unsubscribe(self._definition, self._handler)

    def __enter__(self) -> "EventSubscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        return (
            f"<EventSubscription event={self.event!r} "
            f"handler={callable_name(self._handler)}>"
        )


class EventBus:
    """In-process typed publish/subscribe dispatcher.

    Each bus owns an independent registry.  The bus is not thread-safe:
    registry mutations and triggers are expected to come from one thread
    (or one event loop).

    Lifecycle activity is reported through the internal events of
    :mod:`eventchain.core_events`.  Failures of lifecycle subscribers are
    logged and never affect the trigger that caused them.
    """

    def __init__(self, *, include_core_events: bool = True) -> None:
        """Initialize bus.

        Args:
            include_core_events: Pre-register the lifecycle events.  When
                False, lifecycle events are not registered implicitly:
                notifications never auto-register them, unlike triggering
                a user event.  A lifecycle event starts being emitted once
                something subscribes to (and so registers) it.
        """
        self._registry = EventRegistry()
        if include_core_events:
            for definition in CORE_EVENTS:
                self._registry.register(definition)

    # -- registry -------------------------------------------------------------

    def register_event(self, definition: EventDefinition) -> EventDefinition:
        """Register *definition* if its name is unseen.

        Args:
            definition: Event to register.

        Returns:
            The canonical definition stored for the name.  Registering a
            different object with the same name and mode returns the one
            registered first.

        Raises:
            EventConflictError: If the name is registered with another mode.
        """
        known = definition.name in self._registry
        record = self._registry.register(definition)
        if not known:
            log.debug("Registered event {} (mode={})", definition.name, definition.mode)
        return record.definition

    def has_event(self, event: EventDefinition | str) -> bool:
        return _event_name(event) in self._registry

    def get_event(self, name: str) -> EventDefinition | None:
        record = self._registry.get(name)
        return record.definition if record is not None else None

    def list_events(self) -> list[EventDefinition]:
        return self._registry.definitions()

    def get_subscriber_count(self, event: EventDefinition | str) -> int:
        """Return the number of subscribers; 0 for unknown events."""
        return self._registry.subscriber_count(_event_name(event))

    def remove_event(self, event: EventDefinition | str) -> bool:
        """Remove an event together with all of its subscribers.

        Args:
            event: Definition or name of the event.

        Returns:
            True if the event was removed, False if it was unknown.

        Raises:
            ProtectedEventError: If the event is internal.
        """
        name = _event_name(event)
        record = self._registry.get(name)
        if record is None:
            return False
        if record.definition.internal:
            raise ProtectedEventError(f'Internal event "{name}" cannot be removed.')
        self._registry.remove(name)
        log.debug("Removed event {}", name)
        return True

    # -- subscriptions --------------------------------------------------------

    def on[F: Callable[..., Any]](
        self, definition: EventDefinition
    ) -> Callable[[F], F]:
        """Decorator form of :meth:`subscribe`.

        Returns:
            Decorator function that returns the original function unchanged.
        """

        def decorator(func: F) -> F:
            self.subscribe(definition, func)
            return func

        return decorator

    def subscribe(
        self, definition: EventDefinition, handler: Handler
    ) -> EventSubscription:
        """Append *handler* to the chain of *definition*.

        Unknown events are registered on the fly.  Subscribing a handler
        twice keeps its original position and emits no second
        :data:`SUBSCRIBER_REGISTERED` notification.

        Args:
            definition: Event to subscribe to.
            handler: Called with the :class:`EventContext` on every trigger.

        Returns:
            Subscription handle bound to this handler/event pair.

        Raises:
            EventConflictError: If the name is registered with another mode.
        """
        record = self._ensure_record(definition)
        added = self._registry.add_subscriber(record, handler)
        if added:
            log.debug(
                "Subscribed {} to {}", callable_name(handler), record.definition.name
            )
            if not record.definition.internal:
                self._notify(
                    SUBSCRIBER_REGISTERED,
                    SubscriberMutationPayload(event=record.definition, handler=handler),
                )
        return EventSubscription(self, record.definition, handler)

    def unsubscribe(self, event: EventDefinition | str, handler: Handler) -> bool:
        """Remove *handler* from the chain of *event*.

        Returns:
            True if the handler was removed; False for unknown events or
            handlers that are not subscribed.
        """
        record = self._registry.get(_event_name(event))
        if record is None:
            return False
        removed = self._registry.remove_subscriber(record, handler)
        if removed:
            log.debug(
                "Unsubscribed {} from {}",
                callable_name(handler),
                record.definition.name,
            )
            if not record.definition.internal:
                self._notify(
                    SUBSCRIBER_REMOVED,
                    SubscriberMutationPayload(event=record.definition, handler=handler),
                )
        return removed

    # -- trigger --------------------------------------------------------------

    def trigger(
        self,
        definition: EventDefinition,
        payload: Any = None,
        options: TriggerOptions | None = None,
        **option_fields: Any,
    ) -> EventContext | Coroutine[Any, Any, EventContext]:
        """Run the subscriber chain of *definition*.

        The before-trigger notification and the initial result are computed
        at call time for both modes.  Subscribers run in registration order
        until one stops the context or fails.  A failure is captured on the
        context with reason ``"Subscriber threw an error"``.

        Example::

            ctx = bus.trigger(price_event, order, initial_result=0)
            ctx = await bus.trigger(async_event, order, throw_on_error=True)

        Args:
            definition: Event to trigger; registered on the fly if unknown.
            payload: Value exposed as ``context.payload``.
            options: Trigger options.
            **option_fields: Fields of :class:`TriggerOptions`, as an
                alternative to *options*.

        Returns:
            The completed context for ``sync`` events, or a coroutine
            resolving to it for ``async`` events.

        Raises:
            TypeError: If both *options* and option keywords are given.
            EventValidationError: If option keywords fail validation.
            EventConflictError: If the name is registered with another mode.
            Exception: The captured subscriber error, when
                ``throw_on_error`` is set.  Raised after the after-trigger
                notification.
        """
        options = self._resolve_options(options, option_fields)
        record = self._ensure_record(definition)
        definition = record.definition
        context = EventContext(
            definition,
            payload,
            self._resolve_initial_result(definition, options),
            options.metadata,
            has_subscribers=bool(record.subscribers),
        )
        log.debug(
            "Trigger {} (mode={}, subscribers={})",
            definition.name,
            definition.mode,
            len(record.subscribers),
        )

        if not definition.internal:
            self._notify(
                BEFORE_TRIGGER,
                BeforeTriggerPayload(
                    event=definition, payload=payload, options=options
                ),
            )

        handlers = self._registry.snapshot(record)
        if definition.is_async:
            return self._complete_async(handlers, context, options)

        self._run_sync(handlers, context)
        return self._complete(context, options)

    async def _complete_async(
        self,
        handlers: tuple[Handler, ...],
        context: EventContext,
        options: TriggerOptions,
    ) -> EventContext:
        await self._run_async(handlers, context)
        return self._complete(context, options)

    def _complete(self, context: EventContext, options: TriggerOptions) -> EventContext:
        """Emit the after-trigger notification and apply ``throw_on_error``."""
        if not context.event.internal:
            self._notify(
                AFTER_TRIGGER, AfterTriggerPayload(event=context.event, result=context)
            )
        if options.throw_on_error and context.stopped_for_error:
            error = context.error
            if isinstance(error, BaseException):
                raise error
            raise SubscriberError(error)
        return context

    def _run_sync(self, handlers: tuple[Handler, ...], context: EventContext) -> None:
        for handler in handlers:
            if context.stopped:
                break
            try:
                result = handler(context)
            except Exception as exc:
                self._capture_error(handler, context, exc)
                break
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                self._capture_error(
                    handler,
                    context,
                    SubscriberContractError(
                        f'Event "{context.event.name}" is synchronous but subscriber '
                        f"{callable_name(handler)} returned an awaitable."
                    ),
                )
                break
            if result is not None:
                context.set_result(result)

    async def _run_async(
        self, handlers: tuple[Handler, ...], context: EventContext
    ) -> None:
        for handler in handlers:
            if context.stopped:
                break
            try:
                result = handler(context)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                self._capture_error(handler, context, exc)
                break
            if result is not None:
                context.set_result(result)

    def _capture_error(
        self, handler: Handler, context: EventContext, error: Exception
    ) -> None:
        """Stop *context* for *error* and report it unless the event is internal."""
        context.stop_for_error(error, STOPPED_BY_ERROR)
        log.debug(
            "Subscriber {} of {} failed: {!r}",
            callable_name(handler),
            context.event.name,
            error,
        )
        if context.event.internal:
            return
        self._notify(
            SUBSCRIBER_ERROR,
            SubscriberErrorPayload(
                event=context.event, error=context.error, context=context
            ),
        )

    def _notify(self, definition: EventDefinition, payload: LifecyclePayload) -> None:
        """Run a lifecycle event's chain without emitting further lifecycle events.

        Lifecycle events are not auto-registered: when *definition* is not
        registered nobody can be listening.  A failing lifecycle subscriber
        is logged and otherwise ignored.
        """
        record = self._registry.get(definition.name)
        if record is None:
            return
        context = EventContext(
            record.definition, payload, has_subscribers=bool(record.subscribers)
        )
        self._run_sync(self._registry.snapshot(record), context)
        if context.stopped_for_error:
            error = context.error
            exception = error if isinstance(error, BaseException) else None
            log.opt(exception=exception).warning(
                "Lifecycle subscriber of {} failed: {!r}", definition.name, error
            )

    # -- helpers --------------------------------------------------------------

    def _ensure_record(self, definition: EventDefinition) -> EventRecord:
        if definition.name not in self._registry:
            log.debug("Auto-registering event {}", definition.name)
        return self._registry.register(definition)

    @staticmethod
    def _resolve_options(
        options: TriggerOptions | None, option_fields: dict[str, Any]
    ) -> TriggerOptions:
        if option_fields:
            if options is not None:
                raise TypeError("pass either options or option keywords, not both")
            return TriggerOptions(**option_fields)
        return options if options is not None else TriggerOptions()

    @staticmethod
    def _resolve_initial_result(
        definition: EventDefinition, options: TriggerOptions
    ) -> Any:
        """Pick the initial result: explicit option > factory > None."""
        if options.has_initial_result:
            return options.initial_result
        if definition.create_initial_result is not None:
            return definition.create_initial_result()
        return None
