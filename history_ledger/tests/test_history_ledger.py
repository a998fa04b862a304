"""Eviction, persistence and corruption tests for the history ledger."""

import json
import tempfile
import unittest
from pathlib import Path

from distribution_engine.models import DistributionMode
from history_ledger.address_book import AddressBook
from history_ledger.ledger import HISTORY_KEY, HistoryLedger
from history_ledger.models import HistoryEntry
from history_ledger.store import FileKeyValueStore, MemoryKeyValueStore

ALICE = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"


def _entry(index: int) -> HistoryEntry:
    return HistoryEntry(
        id=f"entry-{index}",
        timestamp=1_700_000_000_000 - index,
        asset_label="USDC",
        is_native=False,
        recipient_count=2,
        total_amount_decimal="3",
        fee_decimal="0.075",
        sample_recipients=(ALICE,),
        mode=DistributionMode.CUSTOM,
        reference_id=f"0xref{index}",
    )


class HistoryLedgerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryKeyValueStore()
        self.ledger = HistoryLedger(self.store)

    def test_eleventh_append_evicts_first(self) -> None:
        for index in range(1, 12):
            entries = self.ledger.append(_entry(index))

        self.assertEqual(len(entries), 10)
        ids = [entry.id for entry in self.ledger.load()]
        self.assertNotIn("entry-1", ids)
        self.assertEqual(ids[-1], "entry-11")
        self.assertEqual(ids[0], "entry-2")

    def test_eviction_ignores_timestamps(self) -> None:
        # Later entries carry older timestamps; insertion order still wins.
        ledger = HistoryLedger(self.store, capacity=2)
        for index in range(3):
            ledger.append(_entry(index))
        self.assertEqual([entry.id for entry in ledger.load()], ["entry-1", "entry-2"])

    def test_corrupt_history_is_empty(self) -> None:
        for payload in ("not json", json.dumps({"a": 1}), json.dumps([{"id": "x"}])):
            with self.subTest(payload=payload):
                store = MemoryKeyValueStore({HISTORY_KEY: payload})
                ledger = HistoryLedger(store)
                self.assertEqual(ledger.load(), ())
                self.assertEqual(len(ledger.append(_entry(1))), 1)

    def test_entry_round_trips_through_dict(self) -> None:
        entry = _entry(7)
        self.assertEqual(HistoryEntry.from_dict(entry.to_dict()), entry)

    def test_sample_recipients_bounded(self) -> None:
        with self.assertRaises(ValueError):
            HistoryEntry(
                id="x",
                timestamp=0,
                asset_label="ETH",
                is_native=True,
                recipient_count=4,
                total_amount_decimal="4",
                fee_decimal="0",
                sample_recipients=(ALICE,) * 4,
                mode=DistributionMode.EQUAL,
                reference_id="0x",
            )

    def test_file_store_persists_between_instances(self) -> None:
        with tempfile.TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "store.json"
            HistoryLedger(FileKeyValueStore(path)).append(_entry(1))
            reloaded = HistoryLedger(FileKeyValueStore(path)).load()
            self.assertEqual([entry.id for entry in reloaded], ["entry-1"])

            path.write_text("{broken")
            self.assertEqual(HistoryLedger(FileKeyValueStore(path)).load(), ())

    def test_undecodable_file_is_empty_history(self) -> None:
        with tempfile.TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "store.json"
            path.write_bytes(b"\xff\xfe\x00garbage")
            ledger = HistoryLedger(FileKeyValueStore(path))

            self.assertEqual(ledger.load(), ())
            self.assertEqual([entry.id for entry in ledger.append(_entry(1))], ["entry-1"])
            self.assertEqual(len(HistoryLedger(FileKeyValueStore(path)).load()), 1)


class AddressBookTests(unittest.TestCase):
    def test_save_and_relabel_case_insensitive(self) -> None:
        book = AddressBook(MemoryKeyValueStore(), time_provider=lambda: 42)
        self.assertTrue(book.save(ALICE, "alice"))
        self.assertTrue(book.save(ALICE.lower(), "alice-2"))

        entries = book.entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].address, ALICE)
        self.assertEqual(entries[0].label, "alice-2")
        self.assertEqual(entries[0].timestamp, 42)
        self.assertEqual(book.label_for(ALICE.upper().replace("0X", "0x")), "alice-2")

    def test_invalid_address_not_saved(self) -> None:
        book = AddressBook(MemoryKeyValueStore())
        self.assertFalse(book.save("0x123", "bad"))
        self.assertEqual(book.entries(), ())
        self.assertIsNone(book.label_for(ALICE))


if __name__ == "__main__":
    unittest.main()
