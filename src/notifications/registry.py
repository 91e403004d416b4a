"""Sink adapter registry.

``log`` writes structured log lines; ``fake`` records calls in memory. The
active sink is the one the notification handler calls; it defaults to ``log``
until ``use_sink`` installs another.
"""

from notifications.sink import NotificationSink

_sink_instances: dict[str, NotificationSink] = {}
_active_sink: NotificationSink | None = None


def get_sink(sink_type: str = "log") -> NotificationSink:
    """Return the configured sink adapter (singleton per sink type)."""
    if sink_type not in _sink_instances:
        if sink_type == "log":
            from notifications.logging_sink import LoggingSink

            _sink_instances[sink_type] = LoggingSink()
        elif sink_type == "fake":
            from notifications.fake_sink import FakeSink

            _sink_instances[sink_type] = FakeSink()
        else:
            raise ValueError(f"Unknown notification sink: {sink_type}")

    return _sink_instances[sink_type]


def use_sink(sink: NotificationSink | str) -> NotificationSink:
    """Make ``sink`` (an adapter or a sink type) the one notifications go to."""
    global _active_sink
    _active_sink = get_sink(sink) if isinstance(sink, str) else sink
    return _active_sink


def active_sink() -> NotificationSink:
    return _active_sink if _active_sink is not None else get_sink("log")


def reset_sinks() -> None:
    """Reset all sink singletons (useful for testing)."""
    global _active_sink
    _sink_instances.clear()
    _active_sink = None
