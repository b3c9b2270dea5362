from habitquest.config import Settings


def test_poll_timeout_is_a_plain_number(monkeypatch):
    monkeypatch.setenv("VIDEO_POLL_TIMEOUT", "0")

    settings = Settings()

    assert settings.video_poll_timeout == 0
    assert isinstance(settings.video_poll_timeout, float)


def test_poll_timeout_is_not_optional():
    assert Settings.model_fields["video_poll_timeout"].annotation is float
