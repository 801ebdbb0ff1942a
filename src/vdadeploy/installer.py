from __future__ import annotations

import logging

from .app_logging import log_with_fields
from .errors import LaunchError
from .models import InstallerJob
from .remote import CommandChannel, RemoteError


class InstallerRunner:
    def __init__(self, command: CommandChannel, logger: logging.Logger) -> None:
        self.command = command
        self.logger = logger

    def run_installer(self, host: str, installer_path: str, arguments: str | None = None) -> int:
        log_with_fields(
            self.logger,
            logging.INFO,
            "installer_started",
            host=host,
            installer=installer_path,
            arguments=arguments,
        )
        try:
            exit_code = self.command.start_process(host, installer_path, arguments)
        except RemoteError as exc:
            raise LaunchError(str(exc)) from exc
        log_with_fields(
            self.logger,
            logging.INFO,
            "installer_exited",
            host=host,
            installer=installer_path,
            exit_code=exit_code,
        )
        return exit_code

    def run_job(self, job: InstallerJob) -> int:
        log_with_fields(
            self.logger,
            logging.INFO,
            "installer_pass",
            host=job.host,
            product=job.product.value,
            attempt=job.attempt,
        )
        return self.run_installer(job.host, job.installer_path, job.arguments)
