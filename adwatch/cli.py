"""Command-line entry point for scanning Yad2 topics."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from . import config
from .config import ConfigError, load_settings
from .scraper import run
from .store import SeenStore

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"muss mindestens 1 sein, nicht {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Yad2 Anzeigen-Watcher")
    parser.add_argument(
        "--config",
        default=config.CONFIG_FILE,
        help="Pfad zur JSON-Konfiguration mit den Topics",
    )
    parser.add_argument(
        "--data-dir",
        default=config.DATA_DIR,
        help="Verzeichnis für bereits gesehene Anzeigen",
    )
    parser.add_argument(
        "--push-flag",
        default=config.PUSH_FLAG_FILE,
        help="Markierungsdatei, die bei neuen Anzeigen angelegt wird",
    )
    parser.add_argument(
        "--concurrency",
        type=positive_int,
        default=config.CONCURRENCY,
        help="Anzahl gleichzeitig gescannter Topics",
    )
    parser.add_argument(
        "--log-dir",
        default=config.LOG_DIR,
        help="Verzeichnis für Logdateien",
    )
    return parser


def parse_args() -> argparse.Namespace:
    return build_parser().parse_args()


def configure_utf8_output() -> None:
    """Ensure stdout/stderr use UTF-8 encoding.

    Hebrew ad texts and emojis otherwise raise ``UnicodeEncodeError`` on
    consoles with a legacy code page.
    """

    for stream in (sys.stdout, sys.stderr):
        try:
            stream.reconfigure(encoding="utf-8")  # type: ignore[attr-defined]
        except AttributeError:
            # ``reconfigure`` not available (e.g., when stream is replaced).
            pass


def configure_logging(log_dir: Path) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_dir / "adwatch.log", encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )


def main() -> None:
    args = parse_args()

    configure_utf8_output()
    configure_logging(Path(args.log_dir))
    load_dotenv()

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        logger.error("Ungültige Konfiguration: %s", exc)
        sys.exit(1)

    store = SeenStore(args.data_dir, args.push_flag)
    asyncio.run(run(settings, store=store, concurrency=args.concurrency))


if __name__ == "__main__":  # pragma: no cover - entrypoint
    main()
