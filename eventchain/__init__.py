"""eventchain - A typed in-process publish/subscribe dispatcher.

Events are declared with :class:`EventDefinition`, subscribers form an
ordered chain per event, and each trigger flows one mutable
:class:`EventContext` through that chain in either synchronous or
asynchronous mode.
"""

__version__ = "0.1.0"

from loguru import logger

# Disable all eventchain logging by default.  Users opt in with:
#     from loguru import logger
#     logger.enable("eventchain")
logger.disable("eventchain")

from eventchain.bus import EventBus, EventSubscription
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
    EventConfigurationError,
    EventConflictError,
    EventError,
    EventValidationError,
    ProtectedEventError,
    SubscriberContractError,
    SubscriberError,
)

# Module-level default bus instance
default_bus = EventBus()

__all__ = [
    # Version
    "__version__",
    # Definitions
    "EventDefinition",
    "TriggerOptions",
    "EventContext",
    # Bus
    "EventBus",
    "EventSubscription",
    "default_bus",
    # Lifecycle events
    "CORE_EVENTS",
    "BEFORE_TRIGGER",
    "AFTER_TRIGGER",
    "SUBSCRIBER_ERROR",
    "SUBSCRIBER_REGISTERED",
    "SUBSCRIBER_REMOVED",
    "LifecyclePayload",
    "BeforeTriggerPayload",
    "AfterTriggerPayload",
    "SubscriberErrorPayload",
    "SubscriberMutationPayload",
    # Exception classes
    "EventError",
    "EventValidationError",
    "EventConfigurationError",
    "EventConflictError",
    "ProtectedEventError",
    "SubscriberContractError",
    "SubscriberError",
]
