import logging
import unittest

from changed_objects.grouping.change_classifier import (
    ClassificationError,
    classify_change,
    classify_changes,
)
from changed_objects.grouping.group_model import Change, Kind
from changed_objects.vcs.git_client import DELETE, INSERT, MODIFY, RawChange


class TestChangeClassifier(unittest.TestCase):
    def test_classify_change_cases(self) -> None:
        cases = [
            (RawChange(DELETE, old_path="a/old.txt"), Change("a/old.txt", Kind.DELETION)),
            (RawChange(INSERT, new_path="a/new.txt"), Change("a/new.txt", Kind.ADDITION)),
            (RawChange(MODIFY, old_path="a/m.txt", new_path="a/m.txt"), Change("a/m.txt", Kind.MODIFICATION)),
            (RawChange("U", old_path="c.txt", new_path="c.txt"), Change("c.txt", Kind.UNKNOWN)),
            (RawChange("X", old_path="only-old.txt"), Change("only-old.txt", Kind.UNKNOWN)),
        ]
        for raw, expected in cases:
            with self.subTest(raw=raw):
                self.assertEqual(classify_change(raw), expected)

    def test_deletion_uses_base_path(self) -> None:
        raw = RawChange(DELETE, old_path="old.txt", new_path="new.txt")
        self.assertEqual(classify_change(raw).path, "old.txt")

    def test_record_without_required_path_raises(self) -> None:
        for raw in (RawChange(INSERT), RawChange(DELETE, new_path="x"), RawChange("U")):
            with self.subTest(raw=raw):
                with self.assertRaises(ClassificationError):
                    classify_change(raw)

    def test_classify_changes_skips_bad_records(self) -> None:
        log = logging.getLogger("test.classifier.skip")
        raws = [
            RawChange(INSERT, new_path="a.txt"),
            RawChange(INSERT),
            RawChange(DELETE, old_path="b.txt"),
        ]
        with self.assertLogs(log, level="WARNING") as captured:
            changes = classify_changes(raws, log=log)
        self.assertEqual(changes, [Change("a.txt", Kind.ADDITION), Change("b.txt", Kind.DELETION)])
        self.assertTrue(any("Skipping change" in line for line in captured.output))

    def test_classify_changes_keeps_unknown(self) -> None:
        changes = classify_changes([RawChange("U", old_path="c.txt", new_path="c.txt")])
        self.assertEqual(changes, [Change("c.txt", Kind.UNKNOWN)])

    def test_duplicate_path_last_wins(self) -> None:
        log = logging.getLogger("test.classifier.duplicate")
        raws = [
            RawChange(INSERT, new_path="a.txt"),
            RawChange(MODIFY, old_path="b.txt", new_path="b.txt"),
            RawChange(DELETE, old_path="a.txt"),
        ]
        with self.assertLogs(log, level="WARNING"):
            changes = classify_changes(raws, log=log)
        self.assertEqual(changes, [Change("a.txt", Kind.DELETION), Change("b.txt", Kind.MODIFICATION)])

    def test_order_follows_input(self) -> None:
        raws = [RawChange(INSERT, new_path=p) for p in ("z.txt", "a.txt", "m/x.txt")]
        self.assertEqual([c.path for c in classify_changes(raws)], ["z.txt", "a.txt", "m/x.txt"])


if __name__ == "__main__":
    unittest.main()
