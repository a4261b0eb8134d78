"""Spoken turn-by-turn instructions.

Each utterance runs ``pyttsx3`` in a child interpreter so a long instruction
never blocks the position pipeline and can be cut off when the next
instruction arrives.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
from typing import Callable, List, Optional, Protocol, Sequence

from .config import VOICE_RATE
from .utils import strip_html

LOGGER = logging.getLogger(__name__)

PopenFactory = Callable[[Sequence[str]], "subprocess.Popen[bytes]"]

__all__ = ["VoiceAnnouncer", "SubprocessVoiceAnnouncer", "RecordingAnnouncer"]


class VoiceAnnouncer(Protocol):
    def speak(self, text: str) -> None: ...


def _speech_script(text: str, rate: int) -> str:
    return (
        "import pyttsx3\n"
        "engine = pyttsx3.init()\n"
        f"engine.setProperty('rate', {int(rate)})\n"
        f"engine.say({text!r})\n"
        "engine.runAndWait()\n"
    )


def _default_popen(args: Sequence[str]) -> "subprocess.Popen[bytes]":
    return subprocess.Popen(  # nosec B603 - fixed interpreter, no shell
        list(args),
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


class SubprocessVoiceAnnouncer:
    """Speak through ``pyttsx3``; at most one utterance is active at a time."""

    def __init__(
        self,
        *,
        rate: int = VOICE_RATE,
        python: str = sys.executable,
        popen: PopenFactory = _default_popen,
    ) -> None:
        self._rate = rate
        self._python = python
        self._popen = popen
        self._current: Optional["subprocess.Popen[bytes]"] = None
        self._lock = threading.Lock()

    def speak(self, text: str) -> None:
        plain = strip_html(text)
        if not plain:
            return
        with self._lock:
            self._cancel_locked()
            try:
                self._current = self._popen(
                    [self._python, "-c", _speech_script(plain, self._rate)]
                )
            except OSError as exc:
                self._current = None
                LOGGER.warning("Voice announcement failed: %s", exc)
                return
        LOGGER.debug("Speaking: %s", plain)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        proc = self._current
        self._current = None
        if proc is None or proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=1)
        except subprocess.TimeoutExpired:
            proc.kill()


class RecordingAnnouncer:
    """Collects announcements instead of speaking them (dry runs, tests)."""

    def __init__(self) -> None:
        self.spoken: List[str] = []

    def speak(self, text: str) -> None:
        plain = strip_html(text)
        if plain:
            LOGGER.info("[voice] %s", plain)
            self.spoken.append(plain)
