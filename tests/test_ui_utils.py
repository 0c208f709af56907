import unittest
from datetime import datetime, timezone

from bucket_brigade.migration import ObjectOutcome, OperationReport
from bucket_brigade.models import GLACIER, STANDARD, ObjectRecord, RestoreState
from bucket_brigade.ui_utils import (
    format_last_modified,
    format_record,
    format_size,
    restore_badge,
    summarize_report,
)


class RestoreBadgeTests(unittest.TestCase):
    def test_badges_follow_restore_state(self):
        expiry = datetime(2024, 7, 4, tzinfo=timezone.utc)
        cases = [
            (ObjectRecord(key="k", storage_tier=GLACIER), "Archived"),
            (ObjectRecord(key="k", storage_tier=STANDARD), "-"),
            (ObjectRecord(key="k", storage_tier=GLACIER, restore_state=RestoreState.in_progress()), "Restoring"),
            (
                ObjectRecord(key="k", storage_tier=GLACIER, restore_state=RestoreState.in_progress(expiry)),
                "Restored until 2024-07-04",
            ),
            (ObjectRecord(key="k", storage_tier=GLACIER, restore_state=RestoreState.available()), "Restored"),
            (ObjectRecord(key="k", storage_tier=GLACIER, restore_state=RestoreState.expired()), "Expired"),
        ]
        for record, expected in cases:
            with self.subTest(expected=expected):
                self.assertEqual(expected, restore_badge(record))

    def test_unconfirmed_state_is_marked(self):
        record = ObjectRecord(
            key="k",
            storage_tier=GLACIER,
            restore_state=RestoreState.in_progress(),
            unconfirmed=True,
        )

        self.assertEqual("Restoring*", restore_badge(record))


class FormattingTests(unittest.TestCase):
    def test_format_size_picks_unit(self):
        self.assertEqual("-", format_size(None))
        self.assertEqual("512 B", format_size(512))
        self.assertEqual("2.0 KB", format_size(2048))
        self.assertEqual("1.5 MB", format_size(int(1.5 * 1024 * 1024)))

    def test_format_last_modified(self):
        self.assertEqual("-", format_last_modified(None))
        self.assertEqual(
            "2024-01-02 03:04:05 UTC",
            format_last_modified(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
        )

    def test_format_record_ends_with_key(self):
        line = format_record(ObjectRecord(key="dir/file.bin", size=10, storage_tier=GLACIER))

        self.assertTrue(line.endswith("dir/file.bin"))
        self.assertIn("GLACIER", line)
        self.assertIn("Archived", line)

    def test_summarize_report(self):
        refused = OperationReport(operation="transition", refused="Select a bucket first")
        self.assertEqual("transition refused: Select a bucket first", summarize_report(refused))

        report = OperationReport(
            operation="restore",
            outcomes=[ObjectOutcome(key="a", succeeded=True), ObjectOutcome(key="b", succeeded=False)],
            skipped_restoring=2,
        )
        self.assertEqual("restore: 1 succeeded, 1 failed, 2 already restoring", summarize_report(report))


if __name__ == "__main__":
    unittest.main()
