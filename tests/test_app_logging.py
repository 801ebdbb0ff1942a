import json
import logging
from pathlib import Path
from tempfile import TemporaryDirectory
import unittest
from unittest import mock

from vdadeploy.app_logging import log_with_fields, setup_logger


class RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


class AppLoggingTest(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        logger = logging.getLogger("vdadeploy")
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        self.temp_dir.cleanup()

    def _logger(self, log_path: Path) -> logging.Logger:
        logger = setup_logger(log_path)
        for handler in logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.CRITICAL)
        return logger

    def _records(self, log_path: Path) -> list[dict]:
        return [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]

    def test_log_file_and_parents_created_on_first_record(self) -> None:
        log_path = self.root / "shares" / "vda01" / "Temp" / "vdadeploy.log"
        logger = self._logger(log_path)
        self.assertFalse(log_path.parent.exists())

        log_with_fields(logger, logging.INFO, "file_staged", host="vda01", attempt=2)

        payload = self._records(log_path)[-1]
        self.assertEqual(payload["message"], "file_staged")
        self.assertEqual(payload["host"], "vda01")
        self.assertEqual(payload["attempt"], 2)
        self.assertEqual(payload["level"], "INFO")
        self.assertIn("timestamp", payload)

    def test_file_is_not_held_open_between_records(self) -> None:
        log_path = self.root / "share" / "vdadeploy.log"
        logger = self._logger(log_path)

        log_with_fields(logger, logging.INFO, "reboot_issued", host="vda01")
        # the share disappears during a reboot and comes back empty
        log_path.unlink()
        log_path.parent.rmdir()
        log_with_fields(logger, logging.INFO, "winrm_available", host="vda01")

        self.assertEqual([record["message"] for record in self._records(log_path)], ["winrm_available"])
        file_handler = next(h for h in logger.handlers if isinstance(h, logging.FileHandler))
        self.assertIsNone(file_handler.stream)

    def test_unwritable_log_path_does_not_interrupt_logging(self) -> None:
        blocker = self.root / "share"
        blocker.write_text("not a directory", encoding="utf-8")
        logger = self._logger(blocker / "Temp" / "vdadeploy.log")
        seen = RecordingHandler()
        logger.addHandler(seen)

        with mock.patch.object(logging, "raiseExceptions", False):
            log_with_fields(logger, logging.WARNING, "file_channel_probe", host="vda01", reachable=False)
            log_with_fields(logger, logging.ERROR, "run_failed", host="vda01")

        self.assertTrue(blocker.is_file())
        self.assertEqual(seen.messages, ["file_channel_probe", "run_failed"])


if __name__ == "__main__":
    unittest.main()
