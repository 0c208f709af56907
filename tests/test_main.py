import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from botocore.exceptions import ClientError

from bucket_brigade import __main__ as cli
from bucket_brigade.models import GLACIER, ObjectRecord
from bucket_brigade.settings import SettingsStorage
from bucket_brigade.tracker import RestoreTracker

from fakes import FakeStoreService, make_records


class MainTests(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        tmp = Path(self._tmpdir.name)
        self.service = FakeStoreService(
            {
                "bucket": make_records(["a/1", "a/2", "b/1"])
                + [ObjectRecord(key="cold/1", storage_tier=GLACIER)],
            }
        )
        patches = [
            mock.patch("bucket_brigade.controller.S3StoreService", return_value=self.service),
            mock.patch.object(cli, "SettingsStorage", return_value=SettingsStorage(tmp / "settings.json")),
            mock.patch.object(cli, "RestoreTracker", return_value=RestoreTracker(tmp / "restores.json")),
            mock.patch.object(cli, "configure_logging"),
        ]
        for patcher in patches:
            patcher.start()
            self.addCleanup(patcher.stop)

    def run_main(self, *argv):
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            code = cli.main(list(argv))
        return code, output.getvalue()

    def test_plan_only_makes_no_changes(self):
        code, output = self.run_main("bucket", "--mask", "a/", "--transition", "STANDARD_IA", "--list")

        self.assertEqual(0, code)
        self.assertIn("4 objects loaded, 2 targeted", output)
        self.assertIn("Confirm transition to STANDARD_IA for 2 objects", output)
        self.assertEqual([], self.service.transition_calls)

    def test_yes_executes_transition(self):
        code, output = self.run_main("bucket", "--mask", "a/", "--transition", "STANDARD_IA", "--yes")

        self.assertEqual(0, code)
        self.assertIn("transition: 2 succeeded, 0 failed", output)
        self.assertEqual(["a/1", "a/2"], [call[1] for call in self.service.transition_calls])

    def test_refused_transition_exits_non_zero(self):
        code, output = self.run_main("bucket", "--mask", "cold/", "--transition", "STANDARD", "--yes")

        self.assertEqual(1, code)
        self.assertIn("1 objects require restore before transition", output)
        self.assertEqual([], self.service.transition_calls)

    def test_every_failure_is_listed_and_exit_code_is_non_zero(self):
        self.service.objects["bucket"] = make_records([f"a/{index:02d}" for index in range(25)])
        self.service.transition_errors["a/00"] = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Denied"}},
            "CopyObject",
        )

        code, output = self.run_main("bucket", "--mask", "a/", "--transition", "STANDARD_IA", "--yes")

        self.assertEqual(1, code)
        self.assertIn("transition: 24 succeeded, 1 failed", output)
        self.assertIn("failed: a/00: AccessDenied: Denied", output)

    def test_connection_errors_are_reported_without_traceback(self):
        def denied():
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "Denied"}}, "ListBuckets")

        self.service.list_containers = denied
        errors = io.StringIO()

        with contextlib.redirect_stderr(errors):
            code, output = self.run_main("bucket")

        self.assertEqual(2, code)
        self.assertIn("AccessDenied", errors.getvalue())
        self.assertEqual("", output)

    def test_lowercase_tier_input_is_accepted(self):
        code, _ = self.run_main("bucket", "--mask", "a/", "--transition", "standard_ia", "--yes")

        self.assertEqual(0, code)
        self.assertEqual({"STANDARD_IA"}, {call[2].label for call in self.service.transition_calls})

    def test_restore_with_yes(self):
        code, output = self.run_main("bucket", "--mask", "cold/", "--restore", "2", "--yes")

        self.assertEqual(0, code)
        self.assertEqual([("bucket", "cold/1", 2)], self.service.restore_calls)
        self.assertIn("Restore requested for cold/1", output)


if __name__ == "__main__":
    unittest.main()
