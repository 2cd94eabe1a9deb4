from __future__ import annotations

from event_source import EventSource


def test_off_during_dispatch_is_deferred(compaction: str) -> None:
    source = EventSource(compaction=compaction)
    calls: list[str] = []

    def second() -> None:
        calls.append("second")

    def first() -> None:
        calls.append("first")
        source.off(second)

    source.on(first)
    source.on(second)

    source.dispatch()
    source.dispatch()

    assert calls == ["first", "second", "first"]


def test_self_removal_does_not_skip_or_repeat_others(compaction: str) -> None:
    source = EventSource(compaction=compaction)
    calls: list[str] = []

    def make(name: str):
        def listener() -> None:
            calls.append(name)

        return listener

    a, c = make("a"), make("c")
    source.on(a)
    source.once(make("b"))
    source.on(c)

    source.dispatch()
    assert calls == ["a", "b", "c"]

    calls.clear()
    source.dispatch()
    assert sorted(calls) == ["a", "c"]


def test_listener_added_during_dispatch_fires_next_time() -> None:
    source = EventSource()
    calls: list[str] = []

    def late() -> None:
        calls.append("late")

    def early() -> None:
        calls.append("early")
        source.on(late)

    source.on(early)

    source.dispatch()
    assert calls == ["early"]

    source.dispatch()
    assert calls == ["early", "early", "late"]


def test_clear_during_dispatch_stops_later_listeners() -> None:
    source = EventSource()
    calls: list[str] = []

    source.on(lambda: calls.append("first"))
    source.on(lambda: source.clear())
    source.on(lambda: calls.append("third"))

    source.dispatch()
    source.dispatch()

    assert calls == ["first"]


def test_once_fires_once_under_reentrant_dispatch(compaction: str) -> None:
    source = EventSource(compaction=compaction)
    once_calls: list[int] = []
    depth = {"value": 0}

    def reenter(value: int) -> None:
        if depth["value"] == 0:
            depth["value"] += 1
            source.dispatch(value + 1)

    source.on(reenter)
    source.once(once_calls.append)

    source.dispatch(1)
    source.dispatch(3)

    assert once_calls == [2]


def test_reentrant_dispatch_compacts_without_corrupting_outer_iteration(compaction: str) -> None:
    source = EventSource(compaction=compaction)
    calls: list[str] = []
    state = {"reentered": False}

    def removed() -> None:
        calls.append("removed")

    def trigger() -> None:
        calls.append("trigger")
        if not state["reentered"]:
            state["reentered"] = True
            source.off(removed)
            source.dispatch()

    def tail() -> None:
        calls.append("tail")

    source.on(trigger)
    source.on(removed)
    source.on(tail)

    source.dispatch()

    # The inner dispatch compacted ``removed`` away, so the outer one skips it.
    assert calls.count("removed") == 0
    assert calls.count("tail") == 2
    assert calls.count("trigger") == 2
    assert not source.has_listener(removed)


def test_unregister_from_inside_listener() -> None:
    source = EventSource()
    calls: list[int] = []
    handles = {}

    def listener(value: int) -> None:
        calls.append(value)
        if value >= 2:
            handles["unregister"]()

    handles["unregister"] = source.on(listener)

    for value in range(1, 5):
        source.dispatch(value)

    assert calls == [1, 2]


class Ticker:
    def __init__(self) -> None:
        self.tick = EventSource(name="tick")
        self.count = 0

    def increment(self) -> None:
        self.count += 1
        self.tick.dispatch(self.count)


def test_event_sources_compose_onto_objects() -> None:
    ticker = Ticker()
    every: list[int] = []
    first: list[int] = []
    even: list[int] = []

    ticker.tick.on(every.append)
    ticker.tick.once(first.append)
    ticker.tick.on(even.append, lambda count: count % 2 == 0)

    for _ in range(4):
        ticker.increment()

    assert every == [1, 2, 3, 4]
    assert first == [1]
    assert even == [2, 4]
