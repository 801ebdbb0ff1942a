from __future__ import annotations

import logging
import time
from typing import Callable

from .app_logging import log_with_fields
from .errors import RebootError
from .remote import CommandChannel, RemoteError
from .utils import Clock, Sleeper, wait_until


class RebootCoordinator:
    """Restart a host and block until it is back and accepting WinRM commands.

    Each of the three waits (down, up, WinRM) gets its own ``timeout_seconds``
    budget and polls at a fixed ``interval_seconds``.
    """

    def __init__(
        self,
        command: CommandChannel,
        ping: Callable[[str], bool],
        logger: logging.Logger,
        *,
        interval_seconds: float = 10,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self.command = command
        self.ping = ping
        self.logger = logger
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.sleep = sleep

    def _wait(self, condition: Callable[[], bool], timeout_seconds: float) -> bool:
        try:
            return wait_until(
                condition,
                timeout_seconds,
                self.interval_seconds,
                clock=self.clock,
                sleep=self.sleep,
            )
        except RemoteError as exc:
            raise RebootError(str(exc)) from exc

    def reboot_and_wait(self, host: str, timeout_seconds: float) -> bool:
        try:
            self.command.restart(host)
        except RemoteError as exc:
            raise RebootError(str(exc)) from exc
        log_with_fields(self.logger, logging.INFO, "reboot_issued", host=host)

        if not self._wait(lambda: not self.ping(host), timeout_seconds):
            log_with_fields(
                self.logger,
                logging.ERROR,
                "reboot_timeout",
                host=host,
                reason="did not shut down in time",
                timeout_seconds=timeout_seconds,
            )
            return False
        log_with_fields(self.logger, logging.INFO, "host_down", host=host)

        if not self._wait(lambda: self.ping(host), timeout_seconds):
            log_with_fields(
                self.logger,
                logging.ERROR,
                "reboot_timeout",
                host=host,
                reason="did not come back online in time",
                timeout_seconds=timeout_seconds,
            )
            return False
        log_with_fields(self.logger, logging.INFO, "host_up", host=host)

        if not self._wait(lambda: self.command.is_available(host), timeout_seconds):
            log_with_fields(
                self.logger,
                logging.ERROR,
                "reboot_timeout",
                host=host,
                reason="WinRM did not become available in time",
                timeout_seconds=timeout_seconds,
            )
            return False
        log_with_fields(self.logger, logging.INFO, "winrm_available", host=host)
        return True
