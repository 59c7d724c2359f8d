import pytest

from adwatch import parsers
from adwatch.models import AdRecord

FULL_ITEM = """
<div data-testid="item-basic">
  <a class="item-layout_itemLink__abc" href="/realestate/item/tel-aviv/xyz1">
    <img data-testid="image" src="https://img.yad2.co.il/Pic/a.jpg" />
    <span class="item-data-content_heading__1">3 חדרים</span>
    <span class="item-data-content_heading__2"> דיזנגוף 100 </span>
    <span class="item-data-content_itemInfoLine__1">דירה, לב העיר</span>
    <span class="item-data-content_itemInfoLine__2">3 חדרים • קומה 2 • 70 מ״ר</span>
    <span class="price_price__x">8,500 ₪</span>
  </a>
</div>
"""

BARE_ITEM = """
<div data-testid="item-basic">
  <span class="item-data-content_heading__1">x</span>
  <span class="item-data-content_heading__2">הרצל 5</span>
  <span class="item-data-content_itemInfoLine__1">דירה</span>
</div>
"""


def page(body, title="יד2"):
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


def test_extract_ads_reads_all_fields():
    ads = parsers.extract_ads(page(FULL_ITEM))

    assert ads == [
        AdRecord(
            full_link="https://www.yad2.co.il/realestate/item/tel-aviv/xyz1",
            image_url="https://img.yad2.co.il/Pic/a.jpg",
            address="דיזנגוף 100",
            description="דירה, לב העיר",
            structure="3 חדרים • קומה 2 • 70 מ״ר",
            price="8,500 ₪",
        )
    ]


def test_partial_item_keeps_record_with_empty_fields():
    ads = parsers.extract_ads(page(BARE_ITEM))

    assert len(ads) == 1
    ad = ads[0]
    assert ad.image_url == ""
    assert ad.price == ""
    assert ad.full_link == ""
    assert ad.structure == ""
    assert ad.address == "הרצל 5"
    assert ad.description == "דירה"


def test_extract_ads_preserves_document_order():
    second = FULL_ITEM.replace("a.jpg", "b.jpg")
    ads = parsers.extract_ads(page(FULL_ITEM + BARE_ITEM + second))
    assert [ad.image_url for ad in ads] == [
        "https://img.yad2.co.il/Pic/a.jpg",
        "",
        "https://img.yad2.co.il/Pic/b.jpg",
    ]


def test_bot_challenge_raises_bot_blocked():
    html = page("<p>Please verify</p>", title="ShieldSquare Captcha")
    with pytest.raises(parsers.BotBlockedError):
        parsers.extract_ads(html)


def test_bot_challenge_wins_over_missing_items():
    html = page("", title=" ShieldSquare Captcha ")
    with pytest.raises(parsers.ExtractionError) as exc_info:
        parsers.extract_ads(html)
    assert isinstance(exc_info.value, parsers.BotBlockedError)
    assert not isinstance(exc_info.value, parsers.NoItemsFoundError)


def test_no_items_raises():
    with pytest.raises(parsers.NoItemsFoundError):
        parsers.extract_ads(page("<div class='feed'></div>"))


def test_strategies_are_tried_in_order():
    calls = []

    def empty(soup):
        calls.append("empty")
        return []

    fallback = parsers.css_strategy("li.feed-item")

    html = page("<ul><li class='feed-item'><img data-testid='image' src='img1'/></li></ul>")
    ads = parsers.extract_ads(html, strategies=[empty, fallback])

    assert calls == ["empty"]
    assert [ad.image_url for ad in ads] == ["img1"]


def test_first_matching_strategy_stops_search():
    def never(soup):  # pragma: no cover - must not be reached
        raise AssertionError("should not be called")

    ads = parsers.extract_ads(page(FULL_ITEM), strategies=[parsers.ITEM_STRATEGIES[0], never])
    assert len(ads) == 1
