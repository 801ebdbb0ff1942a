from __future__ import annotations

import logging
import unittest

from vdadeploy.errors import RebootError
from vdadeploy.reboot import RebootCoordinator
from vdadeploy.remote import RemoteError


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedAnswers:
    """Returns scripted answers in order, then repeats the last one forever."""

    def __init__(self, answers: list[bool]) -> None:
        self.answers = list(answers)
        self.calls = 0

    def __call__(self, host: str) -> bool:
        _ = host
        self.calls += 1
        if len(self.answers) > 1:
            return self.answers.pop(0)
        return self.answers[0]


class FakeCommand:
    def __init__(self, winrm_answers: list[bool], restart_error: RemoteError | None = None) -> None:
        self.available = ScriptedAnswers(winrm_answers)
        self.restart_error = restart_error
        self.restarts: list[str] = []

    def restart(self, host: str) -> None:
        if self.restart_error is not None:
            raise self.restart_error
        self.restarts.append(host)

    def is_available(self, host: str) -> bool:
        return self.available(host)


def _logger() -> logging.Logger:
    logger = logging.getLogger("test_vdadeploy.reboot")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    return logger


class RebootCoordinatorTest(unittest.TestCase):
    def _coordinator(self, command: FakeCommand, ping: ScriptedAnswers, clock: FakeClock) -> RebootCoordinator:
        return RebootCoordinator(command, ping, _logger(), interval_seconds=10, clock=clock, sleep=clock.sleep)

    def test_full_cycle(self) -> None:
        clock = FakeClock()
        command = FakeCommand([False, True])
        # still up, down, still down, up
        ping = ScriptedAnswers([True, False, False, True])
        coordinator = self._coordinator(command, ping, clock)

        self.assertTrue(coordinator.reboot_and_wait("vda01", 300))
        self.assertEqual(command.restarts, ["vda01"])
        self.assertEqual(clock.sleeps, [10, 10, 10])
        self.assertEqual(ping.calls, 4)
        self.assertEqual(command.available.calls, 2)

    def test_host_that_never_shuts_down(self) -> None:
        clock = FakeClock()
        command = FakeCommand([True])
        ping = ScriptedAnswers([True])
        coordinator = self._coordinator(command, ping, clock)

        self.assertFalse(coordinator.reboot_and_wait("vda01", 300))
        self.assertEqual(clock.now, 300)
        self.assertEqual(command.available.calls, 0)

    def test_host_that_never_comes_back(self) -> None:
        clock = FakeClock()
        command = FakeCommand([True])
        ping = ScriptedAnswers([False])
        coordinator = self._coordinator(command, ping, clock)

        self.assertFalse(coordinator.reboot_and_wait("vda01", 120))
        self.assertEqual(clock.now, 120)
        self.assertEqual(command.available.calls, 0)

    def test_winrm_never_available(self) -> None:
        clock = FakeClock()
        command = FakeCommand([False])
        ping = ScriptedAnswers([True, False, True])
        coordinator = self._coordinator(command, ping, clock)

        self.assertFalse(coordinator.reboot_and_wait("vda01", 300))
        # one interval to go down, then the WinRM phase uses its whole budget
        self.assertEqual(clock.now, 310)

    def test_ping_failure_during_polling_is_fatal(self) -> None:
        clock = FakeClock()
        command = FakeCommand([True])

        def broken_ping(host: str) -> bool:
            raise RemoteError(f"ping {host} failed: [Errno 2] No such file or directory: 'ping'")

        coordinator = RebootCoordinator(
            command, broken_ping, _logger(), interval_seconds=10, clock=clock, sleep=clock.sleep
        )
        with self.assertRaises(RebootError):
            coordinator.reboot_and_wait("vda01", 300)
        self.assertEqual(command.restarts, ["vda01"])

    def test_restart_failure_is_fatal(self) -> None:
        clock = FakeClock()
        command = FakeCommand([True], restart_error=RemoteError("restart vda01 failed: access denied"))
        ping = ScriptedAnswers([False])
        coordinator = self._coordinator(command, ping, clock)

        with self.assertRaises(RebootError):
            coordinator.reboot_and_wait("vda01", 300)
        self.assertEqual(ping.calls, 0)


if __name__ == "__main__":
    unittest.main()
