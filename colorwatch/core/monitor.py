"""Synchronous monitoring tick.

ColorMonitor chains one tick: frame -> aggregate -> alarm evaluation,
and exposes the latest FrameStats and AlarmState for display. It has
no threads or timers; the engine calls tick() periodically.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .aggregate import aggregate
from .alarm import AlarmStateMachine, PlaybackSink
from .logging import Logger, get_logger
from .model import AlarmState, AlarmTransition, FrameStats, PlaybackResult, ThresholdConfig


@dataclass(frozen=True)
class TickResult:
    """Outcome of one tick.

    Attributes:
        stats: Stats of the processed frame, None if no frame was processed
        state: Alarm state after the tick
        transition: State change caused by this tick, if any
    """

    stats: Optional[FrameStats]
    state: AlarmState
    transition: Optional[AlarmTransition] = None

    @property
    def processed(self) -> bool:
        """Whether a frame was aggregated this tick."""
        return self.stats is not None


class ColorMonitor:
    """Frame classification and alarm kernel for one run.

    The configuration is fixed for the monitor's lifetime; a new
    configuration means a new monitor.
    """

    def __init__(
        self,
        config: ThresholdConfig,
        sink: Optional[PlaybackSink] = None,
        logger: Optional[Logger] = None,
        validate_channels: bool = False,
    ) -> None:
        """Initialize the monitor.

        Args:
            config: Detection configuration
            sink: Playback sink driven on alarm edges
            logger: Logger instance (uses global if None)
            validate_channels: Check every frame for out-of-range values
        """
        self._config = config
        self._logger = logger or get_logger()
        self._alarm = AlarmStateMachine.from_config(config, sink, self._logger)
        self._validate = validate_channels
        self._latest_stats: Optional[FrameStats] = None
        self._stopped = False

        self._logger.config_loaded(config.name, config.class_names)

    @property
    def config(self) -> ThresholdConfig:
        """Detection configuration."""
        return self._config

    @property
    def state(self) -> AlarmState:
        """Current alarm state."""
        return self._alarm.state

    @property
    def latest_stats(self) -> Optional[FrameStats]:
        """Stats of the most recently processed frame."""
        return self._latest_stats

    @property
    def is_stopped(self) -> bool:
        """Whether stop() has been called since the last start()."""
        return self._stopped

    def start(self) -> None:
        """Re-arm the monitor after stop()."""
        self._stopped = False

    def tick(self, frame: Optional[np.ndarray]) -> TickResult:
        """Process one frame.

        Args:
            frame: RGBA/RGB pixel buffer, or None if no frame is ready

        Returns:
            TickResult for this tick

        Raises:
            EmptyFrameError: If the frame has no pixels
            InvalidChannelValueError: If channel validation is enabled and
                the frame holds out-of-range values
        """
        if self._stopped or frame is None:
            return TickResult(stats=None, state=self._alarm.state)

        stats = aggregate(frame, self._config, validate=self._validate)
        self._latest_stats = stats
        self._logger.sampling(stats.percentages)

        transition = self._alarm.evaluate(stats)
        return TickResult(stats=stats, state=self._alarm.state, transition=transition)

    def stop(self) -> Optional[AlarmTransition]:
        """Halt tick processing and force the alarm Silent.

        Idempotent: a second call emits no further stop signal.

        Returns:
            The Active -> Silent transition if the alarm was Active
        """
        if not self._stopped:
            self._logger.info("监控已停止")
        self._stopped = True
        return self._alarm.stop()

    def retry_playback(self) -> Optional[PlaybackResult]:
        """Retry blocked alarm playback (call from a user gesture)."""
        return self._alarm.retry_playback()
