import tempfile
import unittest
from pathlib import Path

from botocore.exceptions import ClientError

from bucket_brigade.controller import BrigadeController
from bucket_brigade.mask import MASK_PREFIX, ObjectMask
from bucket_brigade.models import STANDARD_IA
from bucket_brigade.presenter import BrigadePresenter
from bucket_brigade.settings import AppSettings, SettingsStorage
from bucket_brigade.templates import TemplateStorage

from fakes import FakeStoreService, make_records


class FailingService(FakeStoreService):
    def list_containers(self):
        raise ClientError({"Error": {"Code": "InvalidAccessKeyId", "Message": "bad key"}}, "ListBuckets")


class BrigadePresenterTests(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.tmp = Path(self._tmpdir.name)
        self.dispatched = []

    def build(self, service):
        controller = BrigadeController(
            service,
            settings=AppSettings(refresh_restore_on_load=False),
            template_storage=TemplateStorage(self.tmp / "templates.json"),
        )
        self.settings_storage = SettingsStorage(self.tmp / "settings.json")
        return BrigadePresenter(
            controller=controller,
            settings_storage=self.settings_storage,
            dispatch=self.dispatch,
            spawn=lambda task: task(),
        )

    def dispatch(self, func):
        self.dispatched.append(func)
        func()

    def test_connect_reports_containers(self):
        presenter = self.build(FakeStoreService({"bucket": make_records(["a"])}))
        results = []
        done = []

        presenter.connect(on_success=results.append, on_error=self.fail, on_done=lambda: done.append(True))

        self.assertEqual(["bucket"], [info.name for info in results[0]])
        self.assertEqual([True], done)
        self.assertEqual(2, len(self.dispatched))

    def test_connect_error_is_reported_through_dispatch(self):
        presenter = self.build(FailingService())
        errors = []

        with self.assertLogs("bucket_brigade.presenter", level="ERROR"):
            presenter.connect(on_success=lambda _: self.fail("unexpected success"), on_error=errors.append)

        self.assertEqual(1, len(errors))
        self.assertIn("InvalidAccessKeyId", errors[0])

    def test_select_container_remembers_last_container(self):
        presenter = self.build(FakeStoreService({"bucket": make_records(["a", "b"])}))
        presenter.connect(on_success=lambda _: None, on_error=self.fail)
        results = []

        presenter.select_container("bucket", on_success=results.append, on_error=self.fail)

        self.assertEqual([True], results)
        self.assertEqual("bucket", presenter.settings.last_container)
        self.assertEqual("bucket", self.settings_storage.load().last_container)
        self.assertEqual("Loaded 2 of 2 objects", presenter.status_entries()[-1])

    def test_unexpected_errors_are_reported(self):
        presenter = self.build(FakeStoreService({"bucket": make_records(["a"])}))
        errors = []

        # Selecting before connecting raises NotConnectedError.
        with self.assertLogs("bucket_brigade.presenter", level="ERROR"):
            presenter.select_container("bucket", on_success=lambda _: self.fail("unexpected"), on_error=errors.append)

        self.assertEqual(["Not connected to S3"], errors)

    def test_transition_returns_report(self):
        service = FakeStoreService({"bucket": make_records(["a/1", "a/2", "b/1"])})
        presenter = self.build(service)
        presenter.connect(on_success=lambda _: None, on_error=self.fail)
        presenter.select_container("bucket", on_success=lambda _: None, on_error=self.fail)
        presenter.controller.apply_mask(ObjectMask("a", "a/", MASK_PREFIX))
        reports = []

        presenter.transition(STANDARD_IA, on_success=reports.append, on_error=self.fail)

        self.assertEqual(["a/1", "a/2"], reports[0].succeeded_keys)
        self.assertEqual(["a/1", "a/2"], [call[1] for call in service.transition_calls])


if __name__ == "__main__":
    unittest.main()
