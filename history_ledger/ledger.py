"""Capacity-bounded ledger of completed distributions."""

import json
import logging
from typing import List, Tuple

from .models import HistoryEntry
from .store import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "multisender_history"
DEFAULT_CAPACITY = 10


class HistoryLedger:
    """Append-only history, oldest first, evicting by insertion order."""

    def __init__(
        self, store: KeyValueStore, capacity: int = DEFAULT_CAPACITY, key: str = HISTORY_KEY
    ) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1.")
        self._store = store
        self._capacity = capacity
        self._key = key

    @property
    def capacity(self) -> int:
        return self._capacity

    def load(self) -> Tuple[HistoryEntry, ...]:
        raw = self._store.get(self._key)
        if not raw:
            return ()
        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError("History payload must be a list.")
            entries = tuple(HistoryEntry.from_dict(item) for item in payload)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable history under %r: %s", self._key, exc)
            return ()
        return entries[-self._capacity:]

    def append(self, entry: HistoryEntry) -> Tuple[HistoryEntry, ...]:
        entries: List[HistoryEntry] = list(self.load())
        entries.append(entry)
        entries = entries[-self._capacity:]
        self._store.set(self._key, json.dumps([item.to_dict() for item in entries]))
        logger.info(
            "Recorded distribution %s (%d recipients, %s %s)",
            entry.reference_id,
            entry.recipient_count,
            entry.total_amount_decimal,
            entry.asset_label,
        )
        return tuple(entries)
