"""Telegram delivery of new ads and failure reports."""

from __future__ import annotations

import logging
from typing import Dict

import requests

from .config import NOTIFY_TIMEOUT, TELEGRAM_API_URL
from .models import AdRecord

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024


class NotificationError(RuntimeError):
    """Raised when Telegram does not accept a message."""


def format_ad_message(ad: AdRecord) -> str:
    return (
        f"{ad.address}\n{ad.description}\n{ad.structure}\n{ad.price}\n\n{ad.full_link}"
    )


def format_failure_message(topic: str, error: object) -> str:
    message = str(error) or type(error).__name__
    return f"Scan für '{topic}' fehlgeschlagen... 😥\nFehler: {message}"


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


class TelegramNotifier:
    """Send plain and photo messages to one Telegram chat.

    Every call is a single request; there is no retry. A rejected or failed
    request raises ``NotificationError`` and the caller decides what to do.
    """

    def __init__(
        self,
        api_token: str,
        chat_id: str,
        *,
        timeout: float = NOTIFY_TIMEOUT,
        base_url: str = TELEGRAM_API_URL,
    ) -> None:
        self.api_token = api_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    def _post(self, method: str, payload: Dict[str, str]) -> bool:
        url = f"{self.base_url}/bot{self.api_token}/{method}"
        try:
            response = requests.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.error("Telegram-Aufruf %s fehlgeschlagen: %s", method, exc)
            raise NotificationError(f"{method} fehlgeschlagen: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.error(
                "Telegram-Aufruf %s abgelehnt (Status %s): %s",
                method,
                response.status_code,
                response.text,
            )
            raise NotificationError(
                f"{method} fehlgeschlagen: HTTP {response.status_code} {response.reason}"
            )
        return True

    def send_text(self, text: str) -> bool:
        self._post(
            "sendMessage",
            {"chat_id": self.chat_id, "text": _truncate(text, MAX_TEXT_LENGTH)},
        )
        logger.info("Nachricht an Chat %s gesendet", self.chat_id)
        return True

    def send_photo(self, photo_url: str, caption: str) -> bool:
        self._post(
            "sendPhoto",
            {
                "chat_id": self.chat_id,
                "photo": photo_url,
                "caption": _truncate(caption, MAX_CAPTION_LENGTH),
            },
        )
        logger.info("Foto-Nachricht an Chat %s gesendet", self.chat_id)
        return True

    def notify_ad(self, ad: AdRecord) -> bool:
        """Send ``ad`` as photo message if it has an image, otherwise as text."""

        message = format_ad_message(ad)
        if ad.image_url:
            return self.send_photo(ad.image_url, message)
        return self.send_text(message)
