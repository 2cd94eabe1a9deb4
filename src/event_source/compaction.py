"""Removal strategies applied to a listener registry before each dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, MutableSequence, Protocol

from .exceptions import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .events import ListenerEntry


class CompactionStrategy(Protocol):
    """Signature of a compaction strategy.

    Receives the live listener sequence and the indices marked for removal,
    deletes those entries in place and returns the removed entries.
    """

    def __call__(
        self, listeners: MutableSequence["ListenerEntry"], pending: Iterable[int]
    ) -> List["ListenerEntry"]:  # pragma: no cover - interface only
        ...


def _descending(pending: Iterable[int], size: int) -> List[int]:
    return sorted({index for index in pending if 0 <= index < size}, reverse=True)


def stable_compaction(
    listeners: MutableSequence["ListenerEntry"], pending: Iterable[int]
) -> List["ListenerEntry"]:
    """Delete pending entries by position, keeping survivors in order."""

    removed: List["ListenerEntry"] = []
    for index in _descending(pending, len(listeners)):
        removed.append(listeners[index])
        del listeners[index]
    removed.reverse()
    return removed


def swap_pop_compaction(
    listeners: MutableSequence["ListenerEntry"], pending: Iterable[int]
) -> List["ListenerEntry"]:
    """Overwrite each pending slot with the tail entry and pop the tail.

    Runs in O(k) for k removals but reorders the surviving entries. Indices
    are processed highest first so the tail is never itself pending.
    """

    removed: List["ListenerEntry"] = []
    for index in _descending(pending, len(listeners)):
        removed.append(listeners[index])
        tail = len(listeners) - 1
        if index != tail:
            listeners[index] = listeners[tail]
        listeners.pop()
    return removed


COMPACTION_STRATEGIES: Dict[str, CompactionStrategy] = {
    "stable": stable_compaction,
    "unstable": swap_pop_compaction,
    "swap-pop": swap_pop_compaction,
}


def resolve_compaction(strategy: str | Callable[..., List["ListenerEntry"]]) -> CompactionStrategy:
    """Return the strategy registered under ``strategy`` or the callable itself."""

    if callable(strategy):
        return strategy
    try:
        return COMPACTION_STRATEGIES[str(strategy).lower()]
    except KeyError as exc:
        known = ", ".join(sorted(COMPACTION_STRATEGIES))
        raise ConfigurationError(
            f"Unknown compaction strategy {strategy!r}; expected one of: {known}"
        ) from exc


def strategy_name(strategy: CompactionStrategy) -> str:
    """Return the registered name of ``strategy`` or its qualified name."""

    for name, candidate in COMPACTION_STRATEGIES.items():
        if candidate is strategy:
            return name
    return getattr(strategy, "__qualname__", repr(strategy))
