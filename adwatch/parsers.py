"""Parsing helpers for Yad2 listing pages."""

import logging
from typing import Callable, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .config import BASE_URL
from .models import AdRecord

logger = logging.getLogger(__name__)

BOT_CHALLENGE_TITLES = ("ShieldSquare Captcha",)

ItemStrategy = Callable[[BeautifulSoup], List[Tag]]


class ExtractionError(RuntimeError):
    """Raised when no ads can be read from a document."""


class BotBlockedError(ExtractionError):
    """The site answered with a bot-challenge page instead of listings."""


class NoItemsFoundError(ExtractionError):
    """None of the known item selectors matched."""


def css_strategy(selector: str) -> ItemStrategy:
    """Return a strategy selecting item nodes by CSS ``selector``."""

    def _select(soup: BeautifulSoup) -> List[Tag]:
        return soup.select(selector)

    _select.__name__ = f"css({selector})"
    return _select


# Tried in order; the first one yielding nodes wins.
ITEM_STRATEGIES: List[ItemStrategy] = [
    css_strategy("[data-testid='item-basic']"),
]


def page_title(soup: BeautifulSoup) -> str:
    title = soup.find("title")
    return title.get_text().strip() if title else ""


def is_bot_challenge(soup: BeautifulSoup) -> bool:
    return page_title(soup) in BOT_CHALLENGE_TITLES


def find_items(
    soup: BeautifulSoup, strategies: Sequence[ItemStrategy] = ITEM_STRATEGIES
) -> List[Tag]:
    """Return item nodes from the first strategy that finds any."""

    for strategy in strategies:
        nodes = strategy(soup)
        if nodes:
            logger.info(
                "%s Anzeigen gefunden mit %s",
                len(nodes),
                getattr(strategy, "__name__", strategy),
            )
            return nodes
    raise NoItemsFoundError("Keine Anzeigen auf der Seite gefunden")


def _nth_text(node: Tag, selector: str, index: int) -> str:
    matches = node.select(selector)
    if len(matches) <= index:
        return ""
    return matches[index].get_text().strip()


def _attr(node: Tag, selector: str, name: str) -> Optional[str]:
    match = node.select_one(selector)
    if match is None:
        return None
    value = match.get(name)
    return value if isinstance(value, str) else None


def parse_ad(node: Tag) -> AdRecord:
    """Map one item node to an ``AdRecord``; absent parts become empty strings."""

    relative_link = _attr(node, 'a[class^="item-layout_itemLink"]', "href")
    full_link = urljoin(BASE_URL, relative_link) if relative_link else ""

    price = "".join(
        match.get_text() for match in node.select("[class^=price_price]")
    )

    return AdRecord(
        full_link=full_link,
        image_url=_attr(node, "img[data-testid='image']", "src") or "",
        address=_nth_text(node, "[class^=item-data-content_heading]", 1),
        description=_nth_text(node, "[class^=item-data-content_itemInfoLine]", 0),
        structure=_nth_text(node, "[class^=item-data-content_itemInfoLine]", 1),
        price=price,
    )


def extract_ads(
    html: str, strategies: Sequence[ItemStrategy] = ITEM_STRATEGIES
) -> List[AdRecord]:
    """Parse all ads on a listing page in document order."""

    soup = BeautifulSoup(html, "html.parser")

    title = page_title(soup)
    logger.info("Seitentitel: %s", title)
    if is_bot_challenge(soup):
        logger.error("Bot-Erkennung ausgelöst (%s), Abbruch", title)
        raise BotBlockedError("Bot-Erkennung ausgelöst, Seite konnte nicht gelesen werden")

    ads = [parse_ad(node) for node in find_items(soup, strategies)]
    logger.info("Details für %s Anzeigen extrahiert", len(ads))
    return ads
