"""Alarm sound playback using Qt Multimedia.

QtPlaybackSink owns the media player and must live on the UI thread.
The engine's worker thread reaches it through queued signals
(see engine.SignalPlaybackSink).
"""

from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QObject, QUrl, Signal, Slot
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer

from .logging import Logger, get_logger
from .model import PlaybackResult

_LOOP_FOREVER = -1  # QMediaPlayer.Loops.Infinite


class QtPlaybackSink(QObject):
    """Loops a user-chosen audio file while the alarm is Active.

    Decode and device errors are reported through playback_blocked and
    never raised. A blocked start can be retried from a user gesture with
    retry_if_blocked().
    """

    playback_blocked = Signal(str)  # error message
    source_loaded = Signal(str)  # file path

    def __init__(
        self,
        parent: Optional[QObject] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(parent)

        self._logger = logger or get_logger()
        self._player = QMediaPlayer(self)
        self._audio_output = QAudioOutput(self)
        self._player.setAudioOutput(self._audio_output)
        self._player.setLoops(_LOOP_FOREVER)
        self._player.errorOccurred.connect(self._on_error)

        self._source: Optional[Path] = None
        self._blocked = False
        self._wants_playback = False

    @property
    def has_source(self) -> bool:
        """Whether an alarm file is loaded."""
        return self._source is not None

    @property
    def source(self) -> Optional[Path]:
        """Path of the loaded alarm file."""
        return self._source

    @property
    def is_blocked(self) -> bool:
        """Whether the last start attempt failed."""
        return self._blocked

    def load(self, path: Union[str, Path]) -> bool:
        """Load an alarm file.

        Args:
            path: Audio file path

        Returns:
            True if the file exists and was handed to the player
        """
        path = Path(path)
        if not path.is_file():
            self._logger.error(f"警报音文件不存在: {path}")
            return False

        was_playing = self._wants_playback
        self._player.stop()
        self._blocked = False
        self._player.setSource(QUrl.fromLocalFile(str(path.resolve())))
        self._source = path
        self._logger.info(f"警报音文件已加载: {path.name}")
        self.source_loaded.emit(str(path))

        if was_playing:
            self._player.play()
        return True

    @Slot()
    def start_looping_playback(self) -> PlaybackResult:
        """Start looping the alarm file."""
        self._wants_playback = True
        if self._source is None:
            return PlaybackResult.NO_SOURCE
        if self._player.error() != QMediaPlayer.Error.NoError:
            self._blocked = True
            return PlaybackResult.BLOCKED

        self._player.play()
        return PlaybackResult.STARTED

    @Slot()
    def stop_playback(self) -> None:
        """Stop playback and rewind to the start."""
        self._wants_playback = False
        self._player.stop()

    @Slot()
    def retry_if_blocked(self) -> Optional[PlaybackResult]:
        """Retry a blocked start.

        Returns:
            The new result, or None if nothing was blocked or the alarm
            is no longer active
        """
        if not (self._blocked and self._wants_playback) or self._source is None:
            return None

        self._logger.info("重试播放警报音")
        self._blocked = False
        # Reloading the source clears the player's error state
        self._player.setSource(QUrl())
        self._player.setSource(QUrl.fromLocalFile(str(self._source.resolve())))
        return self.start_looping_playback()

    @Slot(QMediaPlayer.Error, str)
    def _on_error(self, error: QMediaPlayer.Error, message: str) -> None:
        if error == QMediaPlayer.Error.NoError:
            return
        self._blocked = True
        self._logger.error(f"警报音播放失败: {message}")
        self.playback_blocked.emit(message)

