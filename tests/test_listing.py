import unittest
import os
import shutil
from pathlib import Path

from crash_diagnostics.core.listing import dump_listing


class TestDirectoryListing(unittest.TestCase):
    def setUp(self):
        self.base = Path(__file__).resolve().parent / "_tmp_listing"
        if self.base.exists():
            shutil.rmtree(self.base)
        (self.base / "sub" / "deeper").mkdir(parents=True, exist_ok=True)
        (self.base / "a.txt").write_text("a", encoding="utf-8")
        (self.base / "b.bin").write_bytes(b"\x00")
        (self.base / "sub" / "inner.txt").write_text("x", encoding="utf-8")

    def tearDown(self):
        if self.base.exists():
            shutil.rmtree(self.base)

    def test_top_level_only_in_enumeration_order(self):
        listing = dump_listing(self.base)
        expected = [e.path for e in os.scandir(self.base)]
        self.assertEqual(listing.entries, expected)
        self.assertEqual(len(listing.entries), 3)
        self.assertFalse(any("inner.txt" in p for p in listing.entries))

    def test_entries_are_full_paths(self):
        listing = dump_listing(self.base)
        for p in listing.entries:
            self.assertTrue(p.startswith(str(self.base)))

    def test_render_joins_with_crlf(self):
        listing = dump_listing(self.base)
        data = listing.to_bytes()
        self.assertEqual(data, "\r\n".join(listing.entries).encode("utf-8"))
        self.assertFalse(data.endswith(b"\r\n"))

    def test_empty_directory(self):
        empty = self.base / "sub" / "deeper"
        self.assertEqual(dump_listing(empty).to_bytes(), b"")

    def test_missing_directory_raises(self):
        with self.assertRaises(FileNotFoundError):
            dump_listing(self.base / "nope")


if __name__ == "__main__":
    unittest.main()
