from __future__ import annotations

import logging

from .app_logging import log_with_fields
from .errors import RebootError
from .models import InstallerOutcome
from .reboot import RebootCoordinator

SUCCESS_CODES = frozenset({0, 8, 3010})
RETRY_CODE = 3
VALID_CODES = SUCCESS_CODES | {RETRY_CODE}


def classify_exit_code(exit_code: int) -> InstallerOutcome:
    if exit_code in SUCCESS_CODES:
        return InstallerOutcome.SUCCESS
    if exit_code == RETRY_CODE:
        return InstallerOutcome.RETRY_NEEDED
    return InstallerOutcome.FATAL


class RetryController:
    def __init__(self, reboot: RebootCoordinator, logger: logging.Logger, *, reboot_timeout_seconds: float = 300) -> None:
        self.reboot = reboot
        self.logger = logger
        self.reboot_timeout_seconds = reboot_timeout_seconds
        self.reboots = 0

    def reboot_host(self, host: str) -> None:
        self.reboots += 1
        if not self.reboot.reboot_and_wait(host, self.reboot_timeout_seconds):
            raise RebootError(f"{host} did not complete its reboot within {self.reboot_timeout_seconds}s")

    def classify_and_act(self, exit_code: int, host: str) -> InstallerOutcome:
        outcome = classify_exit_code(exit_code)
        log_with_fields(
            self.logger,
            logging.ERROR if outcome is InstallerOutcome.FATAL else logging.INFO,
            "exit_code_classified",
            host=host,
            exit_code=exit_code,
            outcome=outcome.value,
        )
        if outcome is not InstallerOutcome.FATAL:
            self.reboot_host(host)
        return outcome
