"""Shared test fixtures for all eventchain tests."""

import pytest
from loguru import logger

from eventchain import EventBus, EventDefinition

Ping = EventDefinition(name="test.ping", description="Sync test event.")
Pong = EventDefinition(name="test.pong", mode="async", description="Async test event.")
Counter = EventDefinition(name="test.counter", create_initial_result=lambda: 5)
AsyncCounter = EventDefinition(
    name="test.async_counter", mode="async", create_initial_result=lambda: 5
)


@pytest.fixture
def bus() -> EventBus:
    """Bus with lifecycle events pre-registered."""
    return EventBus()


@pytest.fixture
def bare_bus() -> EventBus:
    """Bus without lifecycle events."""
    return EventBus(include_core_events=False)


@pytest.fixture
def log_messages():
    """Capture eventchain log records at WARNING and above."""
    messages: list[str] = []
    logger.enable("eventchain")
    sink_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(sink_id)
    logger.disable("eventchain")
