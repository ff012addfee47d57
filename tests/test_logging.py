"""Tests for the circular-buffer logger.

Verifies that:
- Entries format with time, level, state and class percentages
- The buffer keeps only the most recent entries
- A failing listener does not break logging
"""

from datetime import datetime

from colorwatch.core.logging import (
    LogBuffer,
    LogEntry,
    Logger,
    LogLevel,
    get_logger,
    set_logger,
)


class TestLogEntryFormat:
    """Test entry formatting."""

    def test_info_entry(self) -> None:
        """Info entries have no level tag."""
        entry = LogEntry(datetime(2024, 1, 1, 8, 5, 9), LogLevel.INFO, "开始监控")
        assert entry.format() == "[08:05:09] 开始监控"

    def test_warning_with_state_and_stats(self) -> None:
        """Level, state and stats are included."""
        entry = LogEntry(
            datetime(2024, 1, 1, 23, 59, 0),
            LogLevel.WARNING,
            "采样",
            state="Active",
            stats={"green": 3.0, "red": 0.123},
        )
        assert entry.format() == (
            "[23:59:00] [WARNING] [Active] 采样 green=3.00% red=0.12%"
        )


class TestLogBuffer:
    """Test the circular buffer."""

    def test_keeps_most_recent(self) -> None:
        """Old entries are discarded beyond max_size."""
        logger = Logger(LogBuffer(max_size=3))
        for i in range(5):
            logger.info(f"m{i}")

        assert [e.message for e in logger.buffer.get_all()] == ["m2", "m3", "m4"]
        assert [e.message for e in logger.buffer.get_recent(2)] == ["m3", "m4"]

    def test_listeners_receive_entries(self) -> None:
        """Listeners are notified for each entry."""
        buffer = LogBuffer()
        received: list[LogEntry] = []
        buffer.add_listener(received.append)

        Logger(buffer).warning("注意")

        assert len(received) == 1
        assert received[0].level == LogLevel.WARNING

        buffer.remove_listener(received.append)
        Logger(buffer).info("x")
        assert len(received) == 1

    def test_failing_listener_is_isolated(self) -> None:
        """A raising listener neither propagates nor blocks others."""
        buffer = LogBuffer()
        received: list[LogEntry] = []

        def broken(entry: LogEntry) -> None:
            raise RuntimeError("view closed")

        buffer.add_listener(broken)
        buffer.add_listener(received.append)

        Logger(buffer).error("失败")

        assert len(received) == 1
        assert len(buffer) == 1


class TestLogger:
    """Test logger helpers."""

    def test_state_change_sets_context(self) -> None:
        """Entries after a state change carry the new state."""
        logger = Logger()
        logger.state_change("Silent", "Active")
        entry = logger.info("next")

        assert entry.state == "Active"

        logger.clear_context()
        assert logger.info("after").state is None

    def test_sampling_is_debug(self) -> None:
        """Per-frame sampling entries are DEBUG with stats attached."""
        entry = Logger().sampling({"green": 12.5})
        assert entry.level == LogLevel.DEBUG
        assert entry.stats == {"green": 12.5}


class TestGlobalLogger:
    """Test the shared logger instance."""

    def test_set_logger_replaces_instance(self) -> None:
        previous = get_logger()
        replacement = Logger()
        try:
            set_logger(replacement)
            assert get_logger() is replacement

            get_logger().info("替换")
            assert replacement.buffer.get_all()[-1].message == "替换"
        finally:
            set_logger(previous)

    def test_get_logger_is_stable(self) -> None:
        assert get_logger() is get_logger()
