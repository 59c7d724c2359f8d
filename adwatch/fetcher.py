"""HTTP access to the listing pages with retries and a wall-clock ceiling."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Callable, Dict

import requests

from .config import BASE_URL, MAX_ELAPSED, MAX_RETRIES

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/92.0.4515.107 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_6 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/14.0 Mobile/15E148 Safari/604.1",
]

ACCEPT_LANGUAGE = "en-US,en;q=0.9"
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8"


class FetchError(RuntimeError):
    """Raised when a listing page could not be downloaded."""


class FetchTimeoutError(FetchError):
    """The elapsed-time ceiling was hit before a successful response."""


class FetchRetriesExhaustedError(FetchError):
    """Every attempt failed."""


def build_headers() -> Dict[str, str]:
    """Return browser-like headers with a randomly chosen user agent."""

    return {
        "User-Agent": random.choice(USER_AGENTS),
        "Accept-Language": ACCEPT_LANGUAGE,
        "Referer": f"{BASE_URL}/",
        "Accept": ACCEPT,
    }


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retry number ``attempt`` (1-based)."""

    return float(2 ** attempt)


def _get(url: str, timeout: float) -> requests.Response:
    response = requests.get(
        url,
        headers=build_headers(),
        timeout=timeout,
        allow_redirects=True,
    )
    if not 200 <= response.status_code < 300:
        raise requests.exceptions.HTTPError(
            f"HTTP {response.status_code} {response.reason}", response=response
        )
    return response


async def fetch_listing_page(
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    max_elapsed: float = MAX_ELAPSED,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """Download ``url`` and return the document text.

    Non-2xx answers and network errors share one retry path. Between attempts
    the fetcher sleeps ``2 ** attempt`` seconds. Once more than ``max_elapsed``
    seconds have passed since the first attempt, no further attempt is made.
    """

    start = clock()

    for attempt in range(1, max_retries + 1):
        if attempt > 1:
            elapsed = clock() - start
            if elapsed > max_elapsed:
                logger.error(
                    "Zeitlimit von %.1fs überschritten (%.1fs), breche Abruf ab: %s",
                    max_elapsed,
                    elapsed,
                    url,
                )
                raise FetchTimeoutError(
                    f"Zeitlimit beim Abruf von {url} überschritten"
                )

        logger.info("Rufe %s ab (Versuch %s/%s)", url, attempt, max_retries)
        try:
            response = await asyncio.to_thread(_get, url, max_elapsed)
        except requests.exceptions.RequestException as exc:
            logger.warning("Abruf fehlgeschlagen: %s", exc)
            if attempt == max_retries:
                logger.error("Abruf nach %s Versuchen endgültig fehlgeschlagen", max_retries)
                raise FetchRetriesExhaustedError(
                    f"Netzwerkfehler nach {max_retries} Versuchen: {exc}"
                ) from exc

            delay = backoff_delay(attempt)
            logger.info(
                "Neuer Versuch in %.0fs (%s verbleibend)", delay, max_retries - attempt
            )
            await asyncio.sleep(delay)
            continue

        logger.info("Seite erfolgreich geladen: %s", url)
        return response.text

    raise FetchRetriesExhaustedError(f"Keine Versuche für {url} erlaubt")
