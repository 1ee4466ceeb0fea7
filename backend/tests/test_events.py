"""Tests for the in-process event dispatcher."""

import pytest

from lockbox.core import events


class TestEvents:

    def test_dispatch_calls_listeners_in_order(self):
        calls = []
        events.listen("thing.done", lambda **kw: calls.append(("first", kw["value"])))
        events.listen("thing.done", lambda **kw: calls.append(("second", kw["value"])))

        assert events.dispatch("thing.done", value=1) == 2
        assert calls == [("first", 1), ("second", 1)]

    def test_forget(self):
        calls = []

        def listener(**kw):
            calls.append(kw)

        events.listen("thing.done", listener)
        events.forget("thing.done", listener)
        assert events.dispatch("thing.done") == 0
        assert calls == []

    def test_listener_errors_propagate(self):
        def explode(**kw):
            raise RuntimeError("listener failed")

        events.listen("thing.done", explode)
        with pytest.raises(RuntimeError):
            events.dispatch("thing.done")
