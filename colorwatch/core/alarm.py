"""Alarm state machine.

Consumes FrameStats samples, decides Silent/Active through the configured
trigger predicate and signals the playback sink on state edges.
"""

from typing import Optional, Protocol

from .logging import Logger, get_logger
from .model import (
    AlarmState,
    AlarmTransition,
    FrameStats,
    PlaybackResult,
    ThresholdConfig,
    TriggerPredicate,
)


class PlaybackSink(Protocol):
    """Collaborator that plays the alarm sound."""

    def start_looping_playback(self) -> PlaybackResult:
        ...

    def stop_playback(self) -> None:
        ...


class NullPlaybackSink:
    """Playback sink that plays nothing (no alarm file loaded)."""

    def start_looping_playback(self) -> PlaybackResult:
        return PlaybackResult.NO_SOURCE

    def stop_playback(self) -> None:
        pass


def next_state(
    state: AlarmState,
    stats: FrameStats,
    trigger: TriggerPredicate,
) -> AlarmState:
    """Pure transition function.

    The alarm is Active exactly when the trigger predicate holds for the
    latest sample; the current state does not influence the target.

    Args:
        state: Current state
        stats: Latest frame statistics
        trigger: Alarm trigger predicate

    Returns:
        The state after this sample
    """
    return AlarmState.Active if trigger(stats) else AlarmState.Silent


class AlarmStateMachine:
    """Edge-triggered Silent/Active state machine.

    - Silent -> Active: start_looping_playback() once
    - Active -> Silent: stop_playback() once
    - Self transitions: no signal, unless resignal_steady_state is set,
      in which case the signal matching the current state is re-issued
      on every sample
    """

    def __init__(
        self,
        trigger: TriggerPredicate,
        sink: Optional[PlaybackSink] = None,
        resignal_steady_state: bool = False,
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize the state machine in the Silent state.

        Args:
            trigger: Alarm trigger predicate
            sink: Playback sink (NullPlaybackSink if None)
            resignal_steady_state: Re-signal on every sample
            logger: Logger instance (uses global if None)
        """
        self._trigger = trigger
        self._sink: PlaybackSink = sink or NullPlaybackSink()
        self._resignal = resignal_steady_state
        self._logger = logger or get_logger()
        self._state = AlarmState.Silent
        self._last_result: Optional[PlaybackResult] = None

    @classmethod
    def from_config(
        cls,
        config: ThresholdConfig,
        sink: Optional[PlaybackSink] = None,
        logger: Optional[Logger] = None,
    ) -> "AlarmStateMachine":
        """Create a state machine for a detection configuration."""
        return cls(
            config.trigger,
            sink=sink,
            resignal_steady_state=config.resignal_steady_state,
            logger=logger,
        )

    @property
    def state(self) -> AlarmState:
        """Current alarm state."""
        return self._state

    @property
    def is_active(self) -> bool:
        """True while the alarm is Active."""
        return self._state == AlarmState.Active

    @property
    def last_playback_result(self) -> Optional[PlaybackResult]:
        """Result of the most recent start-playback request."""
        return self._last_result

    def evaluate(self, stats: FrameStats) -> Optional[AlarmTransition]:
        """Evaluate one sample.

        Args:
            stats: Latest frame statistics

        Returns:
            The transition if the state changed, None otherwise
        """
        target = next_state(self._state, stats, self._trigger)

        if target == self._state:
            if self._resignal:
                if target == AlarmState.Active:
                    self._start_playback()
                else:
                    self._stop_playback()
            return None

        return self._transition(target)

    def stop(self) -> Optional[AlarmTransition]:
        """Force the Silent state.

        Emits one stop signal if the alarm was Active. Calling it again
        while Silent does nothing.

        Returns:
            The transition if the alarm was Active, None otherwise
        """
        if self._state == AlarmState.Silent:
            return None
        return self._transition(AlarmState.Silent)

    def retry_playback(self) -> Optional[PlaybackResult]:
        """Re-issue start playback after the sink reported BLOCKED.

        Intended to be called from a user gesture. Does nothing unless
        the alarm is Active and the last start attempt was blocked.

        Returns:
            The new playback result, or None if no retry was needed
        """
        if not self.is_active or self._last_result != PlaybackResult.BLOCKED:
            return None
        self._logger.info("重试播放警报音")
        return self._start_playback()

    def _transition(self, target: AlarmState) -> AlarmTransition:
        transition = AlarmTransition(previous=self._state, current=target)
        self._state = target
        self._logger.state_change(transition.previous.name, target.name)

        if target == AlarmState.Active:
            self._start_playback()
        else:
            self._stop_playback()

        return transition

    def _start_playback(self) -> PlaybackResult:
        try:
            result = self._sink.start_looping_playback()
        except Exception as e:
            self._logger.error(f"播放警报音失败: {e}")
            result = PlaybackResult.BLOCKED

        if result != self._last_result:
            if result == PlaybackResult.BLOCKED:
                self._logger.warning("警报音被阻止,需用户操作后重试")
            elif result == PlaybackResult.NO_SOURCE:
                self._logger.warning("未加载警报音文件")
        self._last_result = result
        return result

    def _stop_playback(self) -> None:
        try:
            self._sink.stop_playback()
        except Exception as e:
            self._logger.error(f"停止警报音失败: {e}")
