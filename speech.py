"""Text-to-speech via pyttsx3."""

from __future__ import annotations

import logging
import sys
from typing import Callable, Protocol

import pyttsx3

SPEECH_LOCALE = "en-US"
UNSUPPORTED_NOTICE = "Sorry, your system does not support speech synthesis."

LOGGER = logging.getLogger(__name__)


class SpeechEngine(Protocol):
    def speak(self, text: str, locale: str) -> None: ...


class Pyttsx3Engine:
    def __init__(self, engine: pyttsx3.Engine) -> None:
        self._engine = engine
        self._voice_locale: str | None = None

    def speak(self, text: str, locale: str) -> None:
        if self._voice_locale != locale:
            self._select_voice(locale)
        self._engine.say(text)
        self._engine.runAndWait()

    def _select_voice(self, locale: str) -> None:
        # Drivers report languages inconsistently ("en_US", b"\x05en-us", "en-US").
        wanted = {locale.lower(), locale.lower().replace("-", "_")}
        for voice in self._engine.getProperty("voices") or []:
            tags = [_as_tag(lang) for lang in getattr(voice, "languages", None) or []]
            tags.append(str(getattr(voice, "id", "")).lower())
            if any(w in tag for tag in tags for w in wanted):
                self._engine.setProperty("voice", voice.id)
                break
        else:
            LOGGER.debug("No %s voice found; keeping the default voice", locale)
        self._voice_locale = locale


def detect_speech_engine() -> SpeechEngine | None:
    """Return a pyttsx3-backed engine, or None when no speech driver initialises."""
    try:
        engine = pyttsx3.init()
    except (RuntimeError, OSError, ImportError) as exc:
        LOGGER.warning("Speech synthesis unavailable: %s", exc)
        return None
    return Pyttsx3Engine(engine)


def print_notice(message: str) -> None:
    print(message, file=sys.stderr)


class Speaker:
    """Speaks text in en-US, or tells the user when speech is unavailable."""

    def __init__(
        self,
        engine: SpeechEngine | None,
        notify: Callable[[str], None] = print_notice,
    ) -> None:
        self.engine = engine
        self.notify = notify

    def speak(self, text: str) -> None:
        if self.engine is None:
            self.notify(UNSUPPORTED_NOTICE)
            return
        self.engine.speak(text, SPEECH_LOCALE)


def speak_text(text: str) -> None:
    """Speak ``text`` with whatever engine this machine provides."""
    Speaker(detect_speech_engine()).speak(text)


def _as_tag(value: object) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    return str(value).strip("\x00\x05").lower()
