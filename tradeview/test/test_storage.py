import json
import os
import tempfile
import unittest

from tradeview.core.storage import LocalStorage


class LocalStorageTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "nested", "storage.json")
        self.storage = LocalStorage(self.path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_file_reads_as_empty(self):
        self.assertIsNone(self.storage.get_item("anything"))

    def test_set_get_survives_reopen(self):
        self.storage.set_item("a", "1")
        self.storage.set_item("b", "[\"x\"]")
        self.assertEqual(self.storage.get_item("a"), "1")
        self.assertEqual(LocalStorage(self.path).get_item("b"), "[\"x\"]")

        self.storage.set_item("a", "2")
        self.assertEqual(self.storage.get_item("a"), "2")
        self.assertEqual(self.storage.get_item("b"), "[\"x\"]")
        self.assertFalse(os.path.exists(self.path + ".tmp"))

    def test_corrupt_file_reads_as_empty_and_is_replaced_on_write(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write("not json at all")
        self.assertIsNone(self.storage.get_item("a"))

        self.storage.set_item("a", "1")
        with open(self.path, encoding="utf-8") as fh:
            self.assertEqual(json.load(fh), {"a": "1"})

    def test_non_string_values_are_ignored(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump({"a": 1, "b": "ok"}, fh)
        self.assertIsNone(self.storage.get_item("a"))
        self.assertEqual(self.storage.get_item("b"), "ok")


if __name__ == "__main__":
    unittest.main()
