import json
from pathlib import Path

import pytest

from adwatch import config
from adwatch.config import ConfigError, load_settings, parse_settings


def write_config(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_load_settings_reads_topics(tmp_path: Path):
    path = write_config(
        tmp_path / "config.json",
        {
            "telegramApiToken": "file-token",
            "chatId": "file-chat",
            "projects": [
                {"topic": "tel-aviv-2br", "url": "https://www.yad2.co.il/a"},
                {"topic": "haifa", "url": "https://www.yad2.co.il/b", "disabled": True},
            ],
        },
    )

    settings = load_settings(path, environ={})

    assert settings.telegram_api_token == "file-token"
    assert settings.chat_id == "file-chat"
    assert [topic.name for topic in settings.topics] == ["tel-aviv-2br", "haifa"]
    assert settings.topics[1].disabled is True
    assert [topic.name for topic in settings.enabled_topics] == ["tel-aviv-2br"]
    assert settings.has_credentials is True


def test_environment_overrides_file_values():
    data = {"telegramApiToken": "file-token", "chatId": None, "projects": []}
    settings = parse_settings(
        data, environ={config.TOKEN_ENV: "env-token", config.CHAT_ID_ENV: "123"}
    )
    assert settings.telegram_api_token == "env-token"
    assert settings.chat_id == "123"


def test_missing_credentials_are_reported():
    settings = parse_settings({"projects": []}, environ={})
    assert settings.telegram_api_token is None
    assert settings.has_credentials is False


def test_load_settings_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.json", environ={})


def test_load_settings_invalid_json(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path, environ={})


@pytest.mark.parametrize(
    "projects",
    [
        "nope",
        [{"url": "https://x"}],
        [{"topic": "a"}],
        [{"topic": "a", "url": "https://x"}, {"topic": "a", "url": "https://y"}],
    ],
)
def test_invalid_projects_raise(projects):
    with pytest.raises(ConfigError):
        parse_settings({"projects": projects}, environ={})


@pytest.mark.parametrize("value", ["false", 0, None])
def test_disabled_must_be_boolean(value):
    projects = [{"topic": "a", "url": "https://a", "disabled": value}]
    with pytest.raises(ConfigError):
        parse_settings({"projects": projects}, environ={})
