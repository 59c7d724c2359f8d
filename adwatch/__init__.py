"""Watcher for new Yad2 listings with Telegram notifications."""

__all__ = [
    "config",
    "models",
    "fetcher",
    "parsers",
    "store",
    "notifier",
    "scraper",
    "cli",
]
