from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class Speaker(Protocol):
    def speak(self, text: str) -> None: ...


class CuePlayer(Protocol):
    def play(self) -> None: ...


class CueBoard:
    """Fire-and-forget speech/beep side effects for the engines.

    Each side effect is guarded by a user preference read at call time, and
    any failure from the underlying collaborator is swallowed: a blocked audio
    device or missing TTS backend never reaches engine state.
    """

    def __init__(
        self,
        *,
        speaker: Speaker | None = None,
        cue: CuePlayer | None = None,
        speech_enabled: Callable[[], bool] = lambda: False,
        beep_enabled: Callable[[], bool] = lambda: False,
    ) -> None:
        self._speaker = speaker
        self._cue = cue
        self._speech_enabled = speech_enabled
        self._beep_enabled = beep_enabled

    def speak(self, text: str) -> bool:
        """Speak text if speech is enabled. Returns True if handed off."""

        if self._speaker is None or not self._speech_enabled():
            return False
        try:
            self._speaker.speak(text)
        except Exception:
            logger.debug("speech collaborator failed", exc_info=True)
            return False
        return True

    def play_cue(self) -> bool:
        if self._cue is None or not self._beep_enabled():
            return False
        try:
            self._cue.play()
        except Exception:
            logger.debug("audio cue failed", exc_info=True)
            return False
        return True


SILENT = CueBoard()
