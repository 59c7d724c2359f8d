"""Configuration defaults and loading for the Yad2 watcher."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from .models import Topic

CONFIG_FILE = "config.json"
DATA_DIR = "data"
PUSH_FLAG_FILE = "push_me"
LOG_DIR = "log"
CONCURRENCY = 3
MAX_RETRIES = 3
MAX_ELAPSED = 10.0
BASE_URL = "https://www.yad2.co.il"
TELEGRAM_API_URL = "https://api.telegram.org"
NOTIFY_TIMEOUT = 30.0

TOKEN_ENV = "API_TOKEN"
CHAT_ID_ENV = "CHAT_ID"


class ConfigError(ValueError):
    """Raised when the configuration file is missing or invalid."""


@dataclass
class Settings:
    """Runtime configuration, built once at startup."""

    telegram_api_token: Optional[str] = None
    chat_id: Optional[str] = None
    topics: List[Topic] = field(default_factory=list)

    @property
    def has_credentials(self) -> bool:
        return bool(self.telegram_api_token and self.chat_id)

    @property
    def enabled_topics(self) -> List[Topic]:
        return [topic for topic in self.topics if not topic.disabled]


def _parse_topic(raw: object, index: int) -> Topic:
    if not isinstance(raw, dict):
        raise ConfigError(f"Projekt #{index + 1} ist kein Objekt.")

    name = raw.get("topic")
    url = raw.get("url")
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"Projekt #{index + 1} hat kein gültiges 'topic'.")
    if not isinstance(url, str) or not url.strip():
        raise ConfigError(f"Projekt '{name}' hat keine gültige 'url'.")

    disabled = raw.get("disabled", False)
    if not isinstance(disabled, bool):
        raise ConfigError(f"Projekt '{name}': 'disabled' muss true oder false sein.")

    return Topic(name=name, url=url, disabled=disabled)


def parse_settings(
    data: Mapping[str, object], environ: Mapping[str, str] | None = None
) -> Settings:
    """Build ``Settings`` from decoded JSON; environment values take precedence."""

    environ = os.environ if environ is None else environ

    projects = data.get("projects", [])
    if not isinstance(projects, list):
        raise ConfigError("'projects' muss eine Liste sein.")

    topics: List[Topic] = []
    seen_names = set()
    for index, raw in enumerate(projects):
        topic = _parse_topic(raw, index)
        if topic.name in seen_names:
            raise ConfigError(f"Topic '{topic.name}' ist mehrfach konfiguriert.")
        seen_names.add(topic.name)
        topics.append(topic)

    token = environ.get(TOKEN_ENV) or data.get("telegramApiToken") or None
    chat_id = environ.get(CHAT_ID_ENV) or data.get("chatId") or None

    return Settings(
        telegram_api_token=str(token) if token else None,
        chat_id=str(chat_id) if chat_id else None,
        topics=topics,
    )


def load_settings(
    path: str | Path = CONFIG_FILE, environ: Mapping[str, str] | None = None
) -> Settings:
    """Read the JSON configuration file at ``path``."""

    config_path = Path(path)
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Konfiguration {config_path} konnte nicht gelesen werden: {exc}") from exc

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Konfiguration {config_path} ist kein gültiges JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Konfiguration {config_path} muss ein JSON-Objekt sein.")

    return parse_settings(data, environ)
