"""Event sources which add events to objects through composition.

An :class:`EventSource` is a single event channel. Objects expose the events
they may trigger as plain attributes, so inspecting a constructor shows every
event an instance can dispatch::

    class Ticker:
        def __init__(self) -> None:
            self.tick = EventSource()
            self.count = 0

        def increment(self) -> None:
            self.count += 1
            self.tick.dispatch(self.count)

    ticker = Ticker()
    ticker.tick.on(print)    # -> 1, 2, 3, ...
    ticker.tick.once(print)  # -> 1
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from types import BuiltinMethodType, MethodType
from typing import Any, Callable, Iterable, MutableSequence, Set, Tuple

from .compaction import CompactionStrategy, resolve_compaction, strategy_name
from .configuration import EventSourceSettings
from .exceptions import InvalidListenerError
from .logging import get_logger, log_event
from .telemetry import MetricsCollector

LOGGER = get_logger("events")

Listener = Callable[..., Any]
Filter = Callable[..., Any]
Unregister = Callable[[], None]


class ListenerState(str, Enum):
    """Lifecycle of a registry entry."""

    ACTIVE = "active"
    PENDING = "pending"
    GONE = "gone"


@dataclass(slots=True, eq=False)
class ListenerEntry:
    """A registered listener together with its identity and filters."""

    identity: Any
    callback: Listener
    filters: Tuple[Filter, ...] = ()
    state: ListenerState = ListenerState.ACTIVE

    @property
    def active(self) -> bool:
        return self.state is ListenerState.ACTIVE

    def accepts(self, args: Tuple[Any, ...]) -> bool:
        """Return ``True`` when every filter passes for ``args``."""

        for predicate in self.filters:
            if not predicate(*args):
                return False
        return True


class _OnceListener:
    """Wrapper which unregisters itself before calling the wrapped listener."""

    __slots__ = ("listener", "unregister", "fired")

    def __init__(self, listener: Listener) -> None:
        self.listener = listener
        self.unregister: Unregister | None = None
        self.fired = False

    def __call__(self, *args: Any) -> Any:
        if self.fired:
            return None
        self.fired = True
        if self.unregister is not None:
            self.unregister()
        return self.listener(*args)

    def __repr__(self) -> str:
        return f"once({_describe(self.listener)})"


def same_listener(left: Any, right: Any) -> bool:
    """Return ``True`` when ``left`` and ``right`` are the same listener.

    Listeners match by identity. Bound methods are recreated on every
    attribute access, so two of them match when they bind the same function
    to the same object.
    """

    if left is right:
        return True
    if isinstance(left, MethodType) and isinstance(right, MethodType):
        return left.__self__ is right.__self__ and left.__func__ is right.__func__
    if isinstance(left, BuiltinMethodType) and isinstance(right, BuiltinMethodType):
        return left.__self__ is right.__self__ and left.__name__ == right.__name__
    return False


def _describe(value: Any) -> str:
    return getattr(value, "__qualname__", None) or repr(value)


def _ensure_callable(value: Any, role: str) -> None:
    if not callable(value):
        raise InvalidListenerError(
            f"Only callables can be used as {role}s, the provided {role} was a "
            f"{type(value).__name__}"
        )


class EventSource:
    """A synchronous event channel with filterable, removable listeners.

    Listeners are called in registration order with the positional arguments
    given to :meth:`dispatch`. Removal is deferred: :meth:`off` only marks an
    entry, and the marked entries are compacted away at the start of the next
    dispatch using the configured strategy (``"stable"`` keeps the order of
    the survivors, ``"unstable"`` swaps the tail into the freed slot).

    Each dispatch iterates a snapshot of the registry taken after compaction,
    so listeners added while a dispatch is running fire from the next
    dispatch on, and entries marked for removal mid-dispatch still fire in
    the current one. :meth:`clear` during a dispatch stops every listener the
    running dispatch has not reached yet.

    Exceptions raised by listeners or filters propagate to the caller of
    :meth:`dispatch` and abort the remaining listeners of that call.

    ``listeners`` may be a pre-seeded or custom mutable sequence used as the
    backing storage. Plain values in it are wrapped into entries keyed on
    themselves, and only the first entry per listener is kept.
    """

    def __init__(
        self,
        listeners: MutableSequence[Any] | None = None,
        *,
        compaction: str | CompactionStrategy = "stable",
        filters: bool = True,
        name: str | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._listeners: MutableSequence[Any] = [] if listeners is None else listeners
        self._pending: Set[int] = set()
        self._compaction = resolve_compaction(compaction)
        self._filters_enabled = filters
        self.name = name
        self.metrics = metrics
        self._seed()

    @classmethod
    def from_settings(
        cls,
        settings: EventSourceSettings,
        listeners: MutableSequence[Any] | None = None,
        metrics: MetricsCollector | None = None,
    ) -> "EventSource":
        """Create an event source configured by ``settings``."""

        if metrics is None and settings.track_metrics:
            metrics = MetricsCollector()
        return cls(
            listeners,
            compaction=settings.compaction,
            filters=settings.filters,
            name=settings.name,
            metrics=metrics,
        )

    @property
    def compaction(self) -> str:
        return strategy_name(self._compaction)

    @property
    def filters_enabled(self) -> bool:
        return self._filters_enabled

    def on(self, listener: Listener, *filters: Filter) -> Unregister:
        """Register ``listener``, optionally gated by ``filters``.

        Registering an identity which is already active is a no-op, even when
        the filters differ. The returned function unregisters the entry when
        called without arguments, which allows anonymous listeners to be
        removed without keeping a reference to them.
        """

        _ensure_callable(listener, "listener")
        entry = self._register(listener, listener, filters)
        return self._unregister_for(entry)

    def once(self, listener: Listener, *filters: Filter) -> Unregister:
        """Register ``listener`` so it unregisters itself after its first call.

        The entry is keyed on ``listener`` itself, so ``off(listener)`` cancels
        it before it fires and registering the same listener twice is a no-op.
        """

        _ensure_callable(listener, "listener")
        wrapper = _OnceListener(listener)
        entry = self._register(listener, wrapper, filters)
        unregister = self._unregister_for(entry)
        if entry.callback is wrapper:
            wrapper.unregister = unregister
        return unregister

    def off(self, *listeners: Any) -> None:
        """Remove listeners by reference; unknown references are ignored."""

        for identity in listeners:
            if identity is None:
                continue
            entry = self._find(identity)
            if entry is not None:
                self._mark(entry)

    def clear(self) -> None:
        """Remove every listener and discard pending removals."""

        entries = list(self._entries())
        self._listeners.clear()
        self._pending.clear()
        for entry in entries:
            entry.state = ListenerState.GONE
        if entries:
            self._count("listeners_removed", len(entries))
        self._trace("listeners_cleared", count=len(entries))

    def dispatch(self, *args: Any) -> None:
        """Call every active listener whose filters pass with ``args``."""

        self._compact()
        snapshot = tuple(self._entries())
        self._count("dispatches")
        timer = self.metrics.time("dispatch") if self.metrics is not None else nullcontext()
        with timer:
            for entry in snapshot:
                if entry.state is ListenerState.GONE:
                    continue
                if not entry.accepts(args):
                    self._count("filtered")
                    continue
                callback = entry.callback
                if not callable(callback):
                    raise InvalidListenerError(
                        f"Stored listener {_describe(entry.identity)} is not callable"
                    )
                callback(*args)
                self._count("invocations")

    def has_listener(self, listener: Any) -> bool:
        """Return ``True`` when ``listener`` is registered and not removed."""

        return listener is not None and self._find(listener) is not None

    def has_listeners(self) -> bool:
        return any(entry.active for entry in self._entries())

    def listeners(self) -> Tuple[Any, ...]:
        """Return the identities of the active listeners in storage order."""

        return tuple(entry.identity for entry in self._entries() if entry.active)

    def __len__(self) -> int:
        return sum(1 for entry in self._entries() if entry.active)

    def __contains__(self, listener: Any) -> bool:
        return self.has_listener(listener)

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<EventSource{label} compaction={self.compaction} listeners={len(self)}>"

    # Registry helpers

    def _adopt(self) -> None:
        """Wrap foreign values placed directly into the backing sequence."""

        for index, item in enumerate(self._listeners):
            if not isinstance(item, ListenerEntry):
                self._listeners[index] = ListenerEntry(identity=item, callback=item)

    def _seed(self) -> None:
        """Adopt pre-seeded storage, keeping the first entry per identity."""

        self._adopt()
        kept: list = []
        duplicates = []
        for index, entry in enumerate(self._listeners):
            if any(same_listener(entry.identity, identity) for identity in kept):
                duplicates.append(index)
            else:
                kept.append(entry.identity)
        for index in reversed(duplicates):
            del self._listeners[index]

    def _entries(self) -> MutableSequence[ListenerEntry]:
        self._adopt()
        return self._listeners

    def _find(self, identity: Any) -> ListenerEntry | None:
        for entry in self._entries():
            if entry.active and same_listener(entry.identity, identity):
                return entry
        return None

    def _position(self, entry: ListenerEntry) -> int:
        for index, candidate in enumerate(self._listeners):
            if candidate is entry:
                return index
        return -1

    def _register(
        self, identity: Any, callback: Listener, filters: Iterable[Filter]
    ) -> ListenerEntry:
        filters = tuple(filters)
        if filters and not self._filters_enabled:
            raise InvalidListenerError("Filters are disabled for this event source")
        for predicate in filters:
            _ensure_callable(predicate, "filter")

        existing = self._find(identity)
        if existing is not None:
            return existing

        entry = ListenerEntry(identity=identity, callback=callback, filters=filters)
        self._listeners.append(entry)
        self._count("listeners_added")
        self._trace("listener_added", listener=_describe(identity), filters=len(filters))
        return entry

    def _unregister_for(self, entry: ListenerEntry) -> Unregister:
        def unregister() -> None:
            self._mark(entry)

        return unregister

    def _mark(self, entry: ListenerEntry) -> None:
        if not entry.active:
            return
        index = self._position(entry)
        if index == -1:
            entry.state = ListenerState.GONE
            return
        entry.state = ListenerState.PENDING
        self._pending.add(index)
        self._trace("listener_marked", listener=_describe(entry.identity), index=index)

    def _compact(self) -> None:
        if not self._pending:
            return
        pending, self._pending = self._pending, set()
        removed = self._compaction(self._listeners, pending)
        for entry in removed:
            entry.state = ListenerState.GONE
        self._count("listeners_removed", len(removed))
        self._trace("listeners_compacted", removed=len(removed), remaining=len(self._listeners))

    def _count(self, name: str, value: int = 1) -> None:
        if self.metrics is not None:
            self.metrics.increment(name, value)

    def _trace(self, event: str, **payload: object) -> None:
        if LOGGER.isEnabledFor(logging.DEBUG):
            log_event(LOGGER, event, {"source": self.name, **payload}, level=logging.DEBUG)


__all__ = ["EventSource", "ListenerEntry", "ListenerState"]
