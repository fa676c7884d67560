"""Tests for triggering synchronous events."""

import pytest

from conftest import Counter, Ping
from eventchain import (
    EventBus,
    EventContext,
    SubscriberContractError,
    SubscriberError,
    TriggerOptions,
)
from eventchain.bus import STOPPED_BY_ERROR


class TestSyncChain:
    def test_results_flow_sequentially(self, bus: EventBus):
        """Each subscriber sees the result of the previous one."""
        order = []

        def first(ctx: EventContext) -> str:
            order.append("first")
            return f"{ctx.payload}-a"

        def second(ctx: EventContext) -> None:
            order.append("second")
            ctx.set_result(f"{ctx.result}-b")

        def third(ctx: EventContext) -> str:
            order.append("third")
            return f"{ctx.result}-c"

        for handler in (first, second, third):
            bus.subscribe(Ping, handler)

        ctx = bus.trigger(Ping, "x")
        assert order == ["first", "second", "third"]
        assert ctx.result == "x-a-b-c"
        assert ctx.payload == "x"
        assert ctx.has_subscribers is True
        assert ctx.stopped is False

    def test_none_return_keeps_result(self, bus: EventBus):
        bus.subscribe(Ping, lambda ctx: 1)
        bus.subscribe(Ping, lambda ctx: None)
        assert bus.trigger(Ping).result == 1

    def test_no_subscribers(self, bus: EventBus):
        """Zero subscribers: has_subscribers False, initial result kept."""
        ctx = bus.trigger(Counter)
        assert ctx.has_subscribers is False
        assert ctx.result == 5
        assert ctx.stopped is False

    def test_trigger_auto_registers(self, bus: EventBus):
        bus.trigger(Ping)
        assert bus.has_event(Ping)


class TestInitialResult:
    def test_factory_applies(self, bus: EventBus):
        bus.subscribe(Counter, lambda ctx: ctx.result + 1)
        assert bus.trigger(Counter).result == 6

    def test_option_overrides_factory(self, bus: EventBus):
        bus.subscribe(Counter, lambda ctx: ctx.result + 1)
        assert bus.trigger(Counter, initial_result=7).result == 8

    def test_options_object(self, bus: EventBus):
        bus.subscribe(Counter, lambda ctx: ctx.result + 1)
        ctx = bus.trigger(Counter, None, TriggerOptions(initial_result=0))
        assert ctx.result == 1

    def test_explicit_none_overrides_factory(self, bus: EventBus):
        assert bus.trigger(Counter, initial_result=None).result is None

    def test_default_is_none(self, bus: EventBus):
        assert bus.trigger(Ping).result is None

    def test_options_and_keywords_are_exclusive(self, bus: EventBus):
        with pytest.raises(TypeError):
            bus.trigger(Ping, None, TriggerOptions(), throw_on_error=True)

    def test_metadata_reaches_context(self, bus: EventBus):
        seen = {}
        bus.subscribe(Ping, lambda ctx: seen.update(ctx.metadata))
        ctx = bus.trigger(Ping, metadata={"request_id": "r1"})
        assert seen == {"request_id": "r1"}
        assert ctx.metadata["request_id"] == "r1"


class TestStop:
    def test_stop_halts_chain(self, bus: EventBus):
        calls = []

        def first(ctx: EventContext) -> None:
            calls.append("first")
            ctx.stop("done")

        def second(ctx: EventContext) -> None:
            calls.append("second")

        bus.subscribe(Ping, first)
        bus.subscribe(Ping, second)

        ctx = bus.trigger(Ping)
        assert calls == ["first"]
        assert ctx.stopped is True
        assert ctx.stopped_reason == "done"
        assert ctx.stopped_for_error is False

    def test_result_returned_with_stop_is_kept(self, bus: EventBus):
        def first(ctx: EventContext) -> int:
            ctx.stop()
            return 42

        bus.subscribe(Ping, first)
        assert bus.trigger(Ping).result == 42


class TestSyncErrors:
    def test_error_is_captured(self, bus: EventBus):
        """A raising subscriber halts the chain and is recorded on the context."""
        calls = []
        boom = ValueError("boom")

        def bad(ctx: EventContext) -> None:
            raise boom

        bus.subscribe(Ping, bad)
        bus.subscribe(Ping, lambda ctx: calls.append("after"))

        ctx = bus.trigger(Ping)
        assert calls == []
        assert ctx.stopped is True
        assert ctx.stopped_for_error is True
        assert ctx.stopped_reason == STOPPED_BY_ERROR
        assert ctx.error is boom

    def test_throw_on_error_reraises(self, bus: EventBus):
        def bad(ctx: EventContext) -> None:
            raise ValueError("boom")

        bus.subscribe(Ping, bad)
        with pytest.raises(ValueError, match="boom"):
            bus.trigger(Ping, throw_on_error=True)

    def test_throw_on_error_without_error(self, bus: EventBus):
        bus.subscribe(Ping, lambda ctx: 1)
        assert bus.trigger(Ping, throw_on_error=True).result == 1

    def test_throw_on_error_wraps_non_exception(self, bus: EventBus):
        """A non-exception error value is raised as SubscriberError."""
        bus.subscribe(Ping, lambda ctx: ctx.stop_for_error("bad input"))
        with pytest.raises(SubscriberError) as exc_info:
            bus.trigger(Ping, throw_on_error=True)
        assert exc_info.value.error == "bad input"

    def test_throw_on_error_with_none_error(self, bus: EventBus):
        """A None error value still fails the trigger."""
        bus.subscribe(Ping, lambda ctx: ctx.stop_for_error(None))
        assert bus.trigger(Ping).stopped_for_error is True
        with pytest.raises(SubscriberError) as exc_info:
            bus.trigger(Ping, throw_on_error=True)
        assert exc_info.value.error is None

    def test_async_subscriber_on_sync_event(self, bus: EventBus):
        """Awaitable return value is captured as SubscriberContractError."""

        async def handler(ctx: EventContext) -> int:
            return 1

        calls = []
        bus.subscribe(Ping, handler)
        bus.subscribe(Ping, lambda ctx: calls.append(1))

        ctx = bus.trigger(Ping)
        assert calls == []
        assert ctx.stopped_for_error is True
        assert isinstance(ctx.error, SubscriberContractError)
        assert isinstance(ctx.error, TypeError)
        assert ctx.result is None

    def test_async_subscriber_on_sync_event_throw_on_error(self, bus: EventBus):
        async def handler(ctx: EventContext) -> None: ...

        bus.subscribe(Ping, handler)
        with pytest.raises(SubscriberContractError, match="synchronous"):
            bus.trigger(Ping, throw_on_error=True)


class TestMutationDuringTrigger:
    def test_unsubscribe_during_trigger_applies_next_time(self, bus: EventBus):
        calls = []

        def once(ctx: EventContext) -> None:
            calls.append("once")
            bus.unsubscribe(Ping, once)

        def always(ctx: EventContext) -> None:
            calls.append("always")

        bus.subscribe(Ping, once)
        bus.subscribe(Ping, always)

        bus.trigger(Ping)
        bus.trigger(Ping)
        assert calls == ["once", "always", "always"]
