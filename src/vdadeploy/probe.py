from __future__ import annotations

import logging

from .app_logging import log_with_fields
from .errors import AuthenticationFailedError
from .models import ProbeReport
from .remote import CommandChannel, CredentialsError, ShareChannel


class ConnectivityProber:
    def __init__(self, share: ShareChannel, command: CommandChannel, logger: logging.Logger) -> None:
        self.share = share
        self.command = command
        self.logger = logger

    def probe_file_channel(self, host: str) -> bool:
        reachable = self.share.is_available(host)
        log_with_fields(
            self.logger,
            logging.INFO if reachable else logging.WARNING,
            "file_channel_probe",
            host=host,
            reachable=reachable,
        )
        return reachable

    def probe_command_channel(self, host: str) -> bool:
        try:
            reachable = self.command.is_available(host)
        except CredentialsError as exc:
            raise AuthenticationFailedError(str(exc)) from exc
        log_with_fields(
            self.logger,
            logging.INFO if reachable else logging.WARNING,
            "command_channel_probe",
            host=host,
            reachable=reachable,
        )
        return reachable

    def probe(self, host: str) -> ProbeReport:
        return ProbeReport(
            host=host,
            file_channel=self.probe_file_channel(host),
            command_channel=self.probe_command_channel(host),
        )
