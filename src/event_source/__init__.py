"""Composable, synchronous event sources."""

from .compaction import (
    COMPACTION_STRATEGIES,
    CompactionStrategy,
    resolve_compaction,
    stable_compaction,
    swap_pop_compaction,
)
from .configuration import EventSourceSettings, load_settings, settings_from_env
from .events import EventSource, ListenerEntry, ListenerState
from .exceptions import ConfigurationError, EventSourceError, InvalidListenerError
from .logging import configure_logging, get_logger
from .telemetry import MetricsCollector

__all__ = [
    "COMPACTION_STRATEGIES",
    "CompactionStrategy",
    "ConfigurationError",
    "EventSource",
    "EventSourceError",
    "EventSourceSettings",
    "InvalidListenerError",
    "configure_logging",
    "ListenerEntry",
    "ListenerState",
    "MetricsCollector",
    "get_logger",
    "load_settings",
    "resolve_compaction",
    "settings_from_env",
    "stable_compaction",
    "swap_pop_compaction",
]
