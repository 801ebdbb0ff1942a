from __future__ import annotations

import logging
import unittest

from vdadeploy.errors import RebootError
from vdadeploy.models import InstallerOutcome
from vdadeploy.results import RetryController, classify_exit_code


class FakeReboot:
    def __init__(self, succeeds: bool = True) -> None:
        self.succeeds = succeeds
        self.calls: list[tuple[str, float]] = []

    def reboot_and_wait(self, host: str, timeout_seconds: float) -> bool:
        self.calls.append((host, timeout_seconds))
        return self.succeeds


def _logger() -> logging.Logger:
    logger = logging.getLogger("test_vdadeploy.results")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    return logger


class ClassifyExitCodeTest(unittest.TestCase):
    def test_success_codes(self) -> None:
        for code in (0, 8, 3010):
            with self.subTest(code=code):
                self.assertIs(classify_exit_code(code), InstallerOutcome.SUCCESS)

    def test_retry_code(self) -> None:
        self.assertIs(classify_exit_code(3), InstallerOutcome.RETRY_NEEDED)

    def test_everything_else_is_fatal(self) -> None:
        for code in (-3010, -8, -3, 1, 2, 4, 1603, 1618, 3011):
            with self.subTest(code=code):
                self.assertIs(classify_exit_code(code), InstallerOutcome.FATAL)


class RetryControllerTest(unittest.TestCase):
    def test_success_reboots_once(self) -> None:
        for code in (0, 8, 3010):
            with self.subTest(code=code):
                reboot = FakeReboot()
                controller = RetryController(reboot, _logger())
                self.assertIs(controller.classify_and_act(code, "vda01"), InstallerOutcome.SUCCESS)
                self.assertEqual(reboot.calls, [("vda01", 300)])
                self.assertEqual(controller.reboots, 1)

    def test_retry_reboots_once(self) -> None:
        reboot = FakeReboot()
        controller = RetryController(reboot, _logger())
        self.assertIs(controller.classify_and_act(3, "vda01"), InstallerOutcome.RETRY_NEEDED)
        self.assertEqual(reboot.calls, [("vda01", 300)])

    def test_fatal_does_not_reboot(self) -> None:
        reboot = FakeReboot()
        controller = RetryController(reboot, _logger())
        self.assertIs(controller.classify_and_act(1603, "vda01"), InstallerOutcome.FATAL)
        self.assertEqual(reboot.calls, [])
        self.assertEqual(controller.reboots, 0)

    def test_failed_reboot_raises(self) -> None:
        controller = RetryController(FakeReboot(succeeds=False), _logger(), reboot_timeout_seconds=60)
        with self.assertRaises(RebootError):
            controller.classify_and_act(0, "vda01")


if __name__ == "__main__":
    unittest.main()
