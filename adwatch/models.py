"""Data models used by the watcher."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass
class Topic:
    """A configured search page that is polled for new ads."""

    name: str
    url: str
    disabled: bool = False

    def __post_init__(self) -> None:
        self.name = self.name.strip()
        self.url = self.url.strip()


@dataclass
class AdRecord:
    """Represents a single ad extracted from a listing page."""

    full_link: str = ""
    image_url: str = ""
    address: str = ""
    description: str = ""
    structure: str = ""
    price: str = ""

    def __post_init__(self) -> None:
        self.full_link = (self.full_link or "").strip()
        self.image_url = (self.image_url or "").strip()
        self.address = (self.address or "").strip()
        self.description = (self.description or "").strip()
        self.structure = (self.structure or "").strip()
        self.price = (self.price or "").strip()

    @property
    def dedup_key(self) -> str:
        # Ads without an image all share the empty key.
        return self.image_url


class TopicStage(str, Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    DETECTING = "detecting"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TopicResult:
    """Outcome of one topic pipeline run."""

    topic: str
    stage: TopicStage = TopicStage.PENDING
    new_items: List[AdRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.stage is TopicStage.FAILED
