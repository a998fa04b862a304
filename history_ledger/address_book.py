"""Labelled recipient bookmarks."""

import json
import logging
import time
from typing import Callable, List, Optional, Tuple

from distribution_engine.addresses import is_valid_address

from .models import AddressBookEntry
from .store import KeyValueStore

logger = logging.getLogger(__name__)

ADDRESS_BOOK_KEY = "multisender_addressbook"


def _now_ms() -> int:
    return int(time.time() * 1000)


class AddressBook:
    def __init__(
        self,
        store: KeyValueStore,
        time_provider: Optional[Callable[[], int]] = None,
        key: str = ADDRESS_BOOK_KEY,
    ) -> None:
        self._store = store
        self._time_provider = time_provider or _now_ms
        self._key = key

    def entries(self) -> Tuple[AddressBookEntry, ...]:
        raw = self._store.get(self._key)
        if not raw:
            return ()
        try:
            return tuple(AddressBookEntry.from_dict(item) for item in json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable address book: %s", exc)
            return ()

    def save(self, address: str, label: str) -> bool:
        """Add or relabel an address; returns False for invalid addresses."""

        if not is_valid_address(address):
            return False
        entries: List[AddressBookEntry] = list(self.entries())
        for index, entry in enumerate(entries):
            if entry.address.lower() == address.lower():
                entries[index] = AddressBookEntry(entry.address, label, entry.timestamp)
                break
        else:
            entries.append(AddressBookEntry(address, label, self._time_provider()))
        self._store.set(self._key, json.dumps([entry.to_dict() for entry in entries]))
        return True

    def label_for(self, address: str) -> Optional[str]:
        for entry in self.entries():
            if entry.address.lower() == address.lower():
                return entry.label
        return None
