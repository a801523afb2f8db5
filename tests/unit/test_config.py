import json

import pytest

from app.utils.config import (
    DEFAULT_FILE_TYPES,
    Settings,
    load_settings,
    write_default_config,
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WHOREAPEDWHAT_CONFIG", str(tmp_path / "config.json"))
    for name in ("WATCH_PATHS", "FILE_TYPES_TO_WATCH", "NOTIFICATION_MODE", "DIGEST_HOUR"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings()

    assert settings.notification_mode == "digest"
    assert settings.digest_hour == 18
    assert settings.send_cooldown_seconds == 5.0
    assert settings.file_types_to_watch == DEFAULT_FILE_TYPES


def test_comma_separated_lists_from_environment(monkeypatch):
    monkeypatch.setenv("WATCH_PATHS", "/srv/media, /srv/backup")
    monkeypatch.setenv("FILE_TYPES_TO_WATCH", "PDF,.mp4")

    settings = Settings()

    assert settings.watch_paths == ["/srv/media", "/srv/backup"]
    assert settings.get_watch_policy().extensions == frozenset({"pdf", "mp4"})


def test_json_lists_from_environment(monkeypatch):
    monkeypatch.setenv("WATCH_PATHS", '["/srv/a", "/srv/b"]')

    assert Settings().watch_paths == ["/srv/a", "/srv/b"]


def test_json_config_file_is_read(tmp_path):
    (tmp_path / "config.json").write_text(
        json.dumps({"watch_paths": ["/data"], "notification_mode": "immediate", "digest_hour": 7}),
        encoding="utf-8",
    )

    settings = Settings()

    assert settings.watch_paths == ["/data"]
    assert settings.notification_mode == "immediate"
    assert settings.get_watch_policy().digest_hour == 7


def test_invalid_digest_hour_is_rejected():
    with pytest.raises(ValueError):
        Settings(digest_hour=24)


def test_default_config_round_trip(tmp_path):
    path = write_default_config(tmp_path / "conf" / "config.json")

    settings = load_settings(path)

    assert settings.smtp_server == "smtp.gmail.com"
    assert settings.file_types_to_watch == DEFAULT_FILE_TYPES


def test_validate_runtime(tmp_path):
    settings = Settings(watch_paths=[str(tmp_path), str(tmp_path / "gone")], email_to="")

    problems = settings.validate_runtime()

    assert len(problems) == 2
    assert any("gone" in p for p in problems)
    assert any("email" in p for p in problems)


def test_empty_deletion_log_setting_disables_log():
    assert Settings(deletion_log_file="").get_deletion_log_path() is None
