from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from speech import SPEECH_LOCALE, UNSUPPORTED_NOTICE, Pyttsx3Engine, Speaker, detect_speech_engine, speak_text


def test_speaker_uses_en_us_locale() -> None:
    engine = MagicMock()
    Speaker(engine).speak("Hello there")

    engine.speak.assert_called_once_with("Hello there", "en-US")
    assert SPEECH_LOCALE == "en-US"


def test_speaker_without_engine_notifies_once_and_stops() -> None:
    notify = MagicMock()
    Speaker(None, notify=notify).speak("Hello there")

    notify.assert_called_once_with(UNSUPPORTED_NOTICE)


def test_default_notice_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    Speaker(None).speak("Hello there")

    captured = capsys.readouterr()
    assert UNSUPPORTED_NOTICE in captured.err
    assert captured.out == ""


def test_detect_speech_engine_returns_none_when_driver_fails() -> None:
    with patch("speech.pyttsx3.init", side_effect=RuntimeError("no driver")):
        assert detect_speech_engine() is None


def test_detect_speech_engine_wraps_pyttsx3() -> None:
    with patch("speech.pyttsx3.init", return_value=MagicMock()):
        assert isinstance(detect_speech_engine(), Pyttsx3Engine)


def test_speak_text_notifies_when_unavailable(capsys: pytest.CaptureFixture[str]) -> None:
    with patch("speech.pyttsx3.init", side_effect=OSError("libespeak missing")):
        speak_text("Hi")

    assert UNSUPPORTED_NOTICE in capsys.readouterr().err


def _fake_pyttsx3(voices: list[SimpleNamespace]) -> MagicMock:
    engine = MagicMock()
    engine.getProperty.return_value = voices
    return engine


def test_pyttsx3_engine_selects_matching_voice_and_speaks() -> None:
    voices = [
        SimpleNamespace(id="fr", languages=["fr_FR"]),
        SimpleNamespace(id="us", languages=[b"\x05en-us"]),
    ]
    raw = _fake_pyttsx3(voices)

    Pyttsx3Engine(raw).speak("Hello", "en-US")

    raw.setProperty.assert_called_once_with("voice", "us")
    raw.say.assert_called_once_with("Hello")
    raw.runAndWait.assert_called_once()


def test_pyttsx3_engine_keeps_default_voice_without_match() -> None:
    raw = _fake_pyttsx3([SimpleNamespace(id="de", languages=["de_DE"])])

    Pyttsx3Engine(raw).speak("Hallo", "en-US")

    raw.setProperty.assert_not_called()
    raw.say.assert_called_once_with("Hallo")


def test_pyttsx3_engine_selects_voice_once_per_locale() -> None:
    raw = _fake_pyttsx3([SimpleNamespace(id="us", languages=["en_US"])])
    engine = Pyttsx3Engine(raw)

    engine.speak("One", "en-US")
    engine.speak("Two", "en-US")

    assert raw.getProperty.call_count == 1
    assert raw.say.call_count == 2
