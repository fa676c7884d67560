"""Event definitions and trigger options for eventchain.

An :class:`EventDefinition` is a pure declaration: constructing one has no
side effects.  The bus stores it the first time it is registered, subscribed
to or triggered.
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from eventchain._types import EventMode
from eventchain.exceptions import EventValidationError


class _ValidatedModel(BaseModel):
    """Frozen model that wraps pydantic validation errors."""

    model_config = ConfigDict(
        frozen=True, extra="forbid", arbitrary_types_allowed=True
    )

    def __init__(self, **data: Any) -> None:
        """Wrap pydantic ValidationError into EventValidationError."""
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise EventValidationError(str(exc)) from exc


class EventDefinition(_ValidatedModel):
    """Immutable declaration of an event.

    Two definitions with the same ``name`` denote the same event for the
    bus, regardless of object identity.  A mode mismatch between them is
    reported when the second one reaches the bus, not here.

    Example:
        >>> user_created = EventDefinition(name="users.created", mode="async")

    Attributes:
        name: Unique event name, used as the registry key.
        mode: ``"sync"`` or ``"async"``; fixed for the lifetime of a bus.
        description: Optional human readable description.
        metadata: Optional diagnostics/discovery data.
        internal: Internal events emit no lifecycle events and cannot be
            removed from a bus.
        create_initial_result: Factory for the result value seen by the
            first subscriber.

    Raises:
        EventValidationError: If fields fail pydantic validation.
    """

    name: str
    mode: EventMode = "sync"
    description: str | None = None
    metadata: dict[str, Any] | None = None
    internal: bool = False
    create_initial_result: Callable[[], Any] | None = None

    @property
    def is_async(self) -> bool:
        return self.mode == "async"

    def __repr__(self) -> str:
        return f"EventDefinition(name={self.name!r}, mode={self.mode!r})"


class TriggerOptions(_ValidatedModel):
    """Per-call options of :meth:`EventBus.trigger`.

    ``initial_result`` is honoured whenever it was passed explicitly, even
    as ``None`` or another falsy value; see :attr:`has_initial_result`.

    Attributes:
        initial_result: Overrides the definition's initial-result factory.
        throw_on_error: Re-raise the captured subscriber error after the
            after-trigger lifecycle event.
        metadata: Read-only data attached to the invocation context.
    """

    initial_result: Any = None
    throw_on_error: bool = False
    metadata: dict[str, Any] | None = None

    @property
    def has_initial_result(self) -> bool:
        return "initial_result" in self.model_fields_set
