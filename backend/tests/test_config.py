import pytest

from core.config import Settings


def test_defaults_follow_attempt_limits():
    settings = Settings.from_env()
    assert settings.turn_tts_max_attempts == 3
    assert settings.intro_tts_max_attempts == 2


@pytest.mark.parametrize("turn, intro, expected", [("10", "10", (3, 2)), ("0", "-4", (1, 1)), ("2", "1", (2, 1)), ("lots", "", (3, 2))])
def test_tts_attempts_are_clamped(monkeypatch: pytest.MonkeyPatch, turn, intro, expected):
    monkeypatch.setenv("TURN_TTS_MAX_ATTEMPTS", turn)
    monkeypatch.setenv("INTRO_TTS_MAX_ATTEMPTS", intro)

    settings = Settings.from_env()

    assert (settings.turn_tts_max_attempts, settings.intro_tts_max_attempts) == expected
