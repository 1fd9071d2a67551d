"""
Recently used destinations
A small most-recently-used list kept in a local JSON store
"""

import json
import logging
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Deque, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError

STORAGE_KEY = "recent_destinations"
MAX_RECENT = 5


class StorageError(Exception):
    """Local storage could not be read or written"""
    pass


class Destination(BaseModel):
    """A place travel times are measured to"""

    name: str = Field(..., min_length=1, description="Label shown to the user")
    address: Optional[str] = Field(None, description="Resolved address")
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    last_used: datetime = Field(default_factory=datetime.now)

    @property
    def key(self) -> str:
        """Identity of a destination is its coordinate pair"""
        return f"{self.lat}-{self.lng}"


class RecentDestinations:
    """
    Bounded most-recently-used list of destinations

    The newest entry is first; adding an existing coordinate pair moves it to
    the front, and the oldest entry is evicted beyond capacity.
    """

    def __init__(self, items: Iterable[Destination] = (), capacity: int = MAX_RECENT):
        self.capacity = capacity
        self._items: Deque[Destination] = deque(maxlen=capacity)
        for item in items:
            if len(self._items) == capacity:
                break
            if self.get(item.key) is None:
                self._items.append(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def get(self, key: str) -> Optional[Destination]:
        for item in self._items:
            if item.key == key:
                return item
        return None

    def add(self, destination: Destination) -> Destination:
        """Record a destination as the most recent one"""
        self.remove(destination.key)
        destination = destination.model_copy(update={"last_used": datetime.now()})
        self._items.appendleft(destination)
        return destination

    def remove(self, key: str) -> bool:
        item = self.get(key)
        if item is None:
            return False
        self._items.remove(item)
        return True

    def items(self) -> List[Destination]:
        return list(self._items)


class DestinationStore:
    """
    JSON file holding the recent destinations under a fixed key
    """

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            path = Path.home() / ".aptracker" / "storage.json"
        self.path = path
        self.logger = logging.getLogger(__name__)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}")
        return data

    def load(self) -> RecentDestinations:
        """Load the recent list, dropping entries that no longer validate"""
        raw_items = self._read_all().get(STORAGE_KEY, [])
        items = []
        for raw in raw_items:
            try:
                items.append(Destination.model_validate(raw))
            except ValidationError as e:
                self.logger.warning(f"Skipping invalid stored destination: {e}")
        return RecentDestinations(items)

    def save(self, recent: RecentDestinations) -> None:
        data = self._read_all()
        data[STORAGE_KEY] = [item.model_dump(mode="json") for item in recent]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}")

    def remember(self, destination: Destination) -> RecentDestinations:
        """Add a destination to the stored list and persist it"""
        recent = self.load()
        recent.add(destination)
        self.save(recent)
        return recent

    def forget(self, key: str) -> bool:
        recent = self.load()
        removed = recent.remove(key)
        if removed:
            self.save(recent)
        return removed
