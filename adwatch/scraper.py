"""High-level orchestration of all configured topics."""

import asyncio
import logging
from typing import List, Optional

from .config import CONCURRENCY, Settings
from .fetcher import fetch_listing_page
from .models import Topic, TopicResult, TopicStage
from .notifier import TelegramNotifier, format_failure_message
from .parsers import extract_ads
from .store import SeenStore

logger = logging.getLogger(__name__)


async def _report_failure(
    notifier: TelegramNotifier, topic: Topic, exc: BaseException
) -> None:
    try:
        await asyncio.to_thread(
            notifier.send_text, format_failure_message(topic.name, exc)
        )
    except Exception:  # noqa: BLE001
        logger.exception("Fehlermeldung für Topic %s konnte nicht gesendet werden", topic.name)


async def scrape_topic(
    topic: Topic,
    *,
    store: SeenStore,
    notifier: Optional[TelegramNotifier],
    semaphore: asyncio.Semaphore,
) -> TopicResult:
    """Run fetch, extraction, detection and notification for one topic."""

    result = TopicResult(topic=topic.name)

    if notifier is None:
        result.stage = TopicStage.FAILED
        result.error = "API_TOKEN oder CHAT_ID fehlt"
        logger.error("Topic %s übersprungen: %s", topic.name, result.error)
        return result

    async with semaphore:
        logger.info("Starte Scan für Topic %s", topic.name)
        try:
            result.stage = TopicStage.FETCHING
            html = await fetch_listing_page(topic.url)

            result.stage = TopicStage.EXTRACTING
            ads = extract_ads(html)

            result.stage = TopicStage.DETECTING
            new_items = store.detect_new(topic.name, ads)
            result.new_items = new_items

            result.stage = TopicStage.NOTIFYING
            if not new_items:
                logger.info("Keine neuen Anzeigen für Topic %s", topic.name)
            for ad in new_items:
                await asyncio.to_thread(notifier.notify_ad, ad)
                logger.info("Neue Anzeige für %s gesendet: %s", topic.name, ad.full_link)

            result.stage = TopicStage.DONE
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Scan für Topic %s in Phase %s fehlgeschlagen: %s",
                topic.name,
                result.stage.value,
                exc,
                exc_info=True,
            )
            result.stage = TopicStage.FAILED
            result.error = str(exc) or type(exc).__name__
            await _report_failure(notifier, topic, exc)

    return result


async def run(
    settings: Settings,
    *,
    store: Optional[SeenStore] = None,
    notifier: Optional[TelegramNotifier] = None,
    concurrency: int = CONCURRENCY,
) -> List[TopicResult]:
    """Scan every enabled topic with at most ``concurrency`` running at once."""

    if concurrency < 1:
        raise ValueError(f"concurrency muss mindestens 1 sein, nicht {concurrency}")

    store = store or SeenStore()
    if notifier is None and settings.has_credentials:
        notifier = TelegramNotifier(settings.telegram_api_token, settings.chat_id)

    logger.info("Starte Scan aller Topics")
    topics: List[Topic] = []
    for topic in settings.topics:
        if topic.disabled:
            logger.info('Topic "%s" ist deaktiviert, überspringe.', topic.name)
            continue
        logger.info('Topic "%s" zur Warteschlange hinzugefügt', topic.name)
        topics.append(topic)

    semaphore = asyncio.Semaphore(concurrency)
    results = await asyncio.gather(
        *(
            scrape_topic(topic, store=store, notifier=notifier, semaphore=semaphore)
            for topic in topics
        )
    )

    failed = sum(1 for result in results if result.failed)
    logger.info(
        "Alle Scans abgeschlossen: %s Topics, %s fehlgeschlagen, %s neue Anzeigen.",
        len(results),
        failed,
        sum(len(result.new_items) for result in results),
    )
    return list(results)
