"""Per-topic persistence of already seen ads."""

from __future__ import annotations

import json
import logging
import re
import warnings
from pathlib import Path
from typing import Iterable, List

from .config import DATA_DIR, PUSH_FLAG_FILE
from .models import AdRecord

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w.-]")


class StateAccessError(RuntimeError):
    """Raised when the state file can neither be read nor created."""


class StateCorruptionRecovered(UserWarning):
    """A state file could not be parsed and was reset after taking a backup."""


class SeenStore:
    """Keep the set of seen ad keys for every topic in ``data_dir``.

    Each topic owns one JSON file holding an array of keys. The set only grows.
    Whenever a run finds new ads, an empty marker file is written to
    ``flag_path`` so an outside job knows that fresh data exists.
    """

    def __init__(
        self,
        data_dir: str | Path = DATA_DIR,
        flag_path: str | Path = PUSH_FLAG_FILE,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.flag_path = Path(flag_path)

    def state_path(self, topic: str) -> Path:
        safe_name = _UNSAFE_CHARS.sub("_", topic.strip()) or "_"
        return self.data_dir / f"{safe_name}.json"

    def _backup_path(self, path: Path) -> Path:
        candidate = path.with_name(f"{path.name}.backup")
        counter = 1
        while candidate.exists():
            candidate = path.with_name(f"{path.name}.backup.{counter}")
            counter += 1
        return candidate

    def load(self, topic: str) -> List[str]:
        """Return the seen keys for ``topic`` in stored order."""

        path = self.state_path(topic)
        try:
            if not path.exists():
                logger.info(
                    "Keine Daten für Topic %s vorhanden, lege %s an", topic, path
                )
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text("[]", encoding="utf-8")
                return []
            raw = path.read_bytes()
        except OSError as exc:
            raise StateAccessError(f"{path} konnte nicht gelesen oder angelegt werden") from exc

        try:
            data = json.loads(raw.decode("utf-8"))
            if not isinstance(data, list) or not all(isinstance(k, str) for k in data):
                raise ValueError("kein JSON-Array aus Strings")
        except ValueError as exc:
            backup = self._backup_path(path)
            try:
                backup.write_bytes(raw)
            except OSError as backup_exc:
                raise StateAccessError(
                    f"Sicherung von {path} nach {backup} fehlgeschlagen"
                ) from backup_exc
            logger.warning(
                "Gespeicherte Anzeigen für %s unlesbar (%s), Sicherung unter %s",
                topic,
                exc,
                backup,
            )
            warnings.warn(
                f"state for {topic!r} was corrupted, backup written to {backup}",
                StateCorruptionRecovered,
                stacklevel=2,
            )
            return []

        logger.info("%s gespeicherte Anzeigen für %s geladen", len(data), topic)
        return data

    def save(self, topic: str, keys: Iterable[str]) -> Path:
        path = self.state_path(topic)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(list(keys), ensure_ascii=False, indent=2), encoding="utf-8"
        )
        return path

    def mark_updated(self) -> None:
        """Create the marker file for the downstream commit job."""

        logger.info("Setze Markierung %s für den Workflow", self.flag_path)
        self.flag_path.parent.mkdir(parents=True, exist_ok=True)
        self.flag_path.write_text("", encoding="utf-8")

    def detect_new(self, topic: str, ads: Iterable[AdRecord]) -> List[AdRecord]:
        """Return ads of ``topic`` not seen before and remember them."""

        logger.info("Prüfe auf neue Anzeigen für Topic %s", topic)
        seen_keys = self.load(topic)
        seen = set(seen_keys)

        new_items = [ad for ad in ads if ad.dedup_key not in seen]
        for ad in new_items:
            if ad.dedup_key not in seen:
                seen.add(ad.dedup_key)
                seen_keys.append(ad.dedup_key)

        logger.info("%s neue Anzeigen für Topic %s", len(new_items), topic)
        if new_items:
            try:
                self.save(topic, seen_keys)
            except OSError as exc:
                raise StateAccessError(
                    f"{self.state_path(topic)} konnte nicht geschrieben werden"
                ) from exc
            logger.info("Gespeicherte Anzeigen für %s aktualisiert", topic)
            self.mark_updated()

        return new_items
