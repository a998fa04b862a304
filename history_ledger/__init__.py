from .address_book import AddressBook
from .ledger import HistoryLedger
from .models import AddressBookEntry, HistoryEntry
from .store import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "AddressBook",
    "AddressBookEntry",
    "FileKeyValueStore",
    "HistoryEntry",
    "HistoryLedger",
    "KeyValueStore",
    "MemoryKeyValueStore",
]
