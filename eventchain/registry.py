"""Registry for event definitions and their subscriber chains.

This module provides EventRegistry, the name-keyed table owned by a single
EventBus.  Registries are never shared between buses.
"""

import inspect
from collections.abc import Hashable
from dataclasses import dataclass, field

from eventchain._types import Handler
from eventchain.events import EventDefinition
from eventchain.exceptions import EventConflictError


@dataclass(slots=True)
class EventRecord:
    """One registered event and its ordered subscribers.

    ``subscribers`` maps :func:`handler_key` to the handler, in insertion
    order: insertion order is invocation order and re-adding the same
    handler keeps its position.  The stored handler keeps the objects whose
    ids make up the key alive.
    """

    definition: EventDefinition
    subscribers: dict[Hashable, Handler] = field(default_factory=dict)


def handler_key(handler: Handler) -> Hashable:
    """Return the identity key of *handler*.

    Handlers are matched by identity, never by ``__eq__``, so unhashable
    callables can subscribe and equal-but-distinct callables stay separate.
    Bound methods are recreated on every attribute access; they match when
    they bind the same function to the same instance.
    """
    if inspect.ismethod(handler):
        return (id(handler.__self__), id(handler.__func__))
    return id(handler)


class EventRegistry:
    """Registry table for events.

    Maps event names to :class:`EventRecord` entries and enforces the
    one-name-one-mode rule.
    """

    def __init__(self) -> None:
        """Initialize empty registry.

        Post:
            _records is an empty dict mapping names to EventRecord.
        """
        self._records: dict[str, EventRecord] = {}

    def register(self, definition: EventDefinition) -> EventRecord:
        """Insert *definition* unless its name is already known.

        Args:
            definition: Event definition to store.

        Returns:
            The record holding the canonical definition for the name.  When
            the name is known, that is the previously stored definition.

        Raises:
            EventConflictError: If the name is registered with another mode.
        """
        existing = self._records.get(definition.name)
        if existing is None:
            record = EventRecord(definition)
            self._records[definition.name] = record
            return record
        if (
            existing.definition is not definition
            and existing.definition.mode != definition.mode
        ):
            raise EventConflictError(
                f'Event "{definition.name}" already registered with mode '
                f'"{existing.definition.mode}".'
            )
        return existing

    def get(self, name: str) -> EventRecord | None:
        return self._records.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def definitions(self) -> list[EventDefinition]:
        """Return registered definitions in registration order."""
        return [record.definition for record in self._records.values()]

    def remove(self, name: str) -> bool:
        """Delete the record for *name* together with its subscribers.

        Returns:
            True if a record was deleted.
        """
        return self._records.pop(name, None) is not None

    @staticmethod
    def add_subscriber(record: EventRecord, handler: Handler) -> bool:
        """Append *handler* to the chain.

        Returns:
            True if the handler was not subscribed before.
        """
        key = handler_key(handler)
        if key in record.subscribers:
            return False
        record.subscribers[key] = handler
        return True

    @staticmethod
    def remove_subscriber(record: EventRecord, handler: Handler) -> bool:
        """Remove *handler* from the chain.

        Returns:
            True if the handler was subscribed.
        """
        return record.subscribers.pop(handler_key(handler), None) is not None

    def subscriber_count(self, name: str) -> int:
        record = self._records.get(name)
        return len(record.subscribers) if record is not None else 0

    @staticmethod
    def snapshot(record: EventRecord) -> tuple[Handler, ...]:
        """Freeze the chain for one trigger.

        Subscriptions changed while the chain runs apply to the next trigger.
        """
        return tuple(record.subscribers.values())
