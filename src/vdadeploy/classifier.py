from __future__ import annotations

import logging

from .app_logging import log_with_fields
from .errors import ClassificationError
from .models import HostClassification, OSVariant
from .remote import CommandChannel, RemoteError

# Get-CimInstance is missing from the PowerShell 2.0 shipped with legacy hosts.
OS_VERSION_SCRIPT = "(Get-WmiObject -Class Win32_OperatingSystem).Version"


class HostClassifier:
    def __init__(self, command: CommandChannel, legacy_os_version: str, logger: logging.Logger) -> None:
        self.command = command
        self.legacy_os_version = legacy_os_version
        self.logger = logger

    def classify(self, host: str) -> HostClassification:
        try:
            output = self.command.run_powershell(host, OS_VERSION_SCRIPT, f"query OS version of {host}")
        except RemoteError as exc:
            raise ClassificationError(str(exc)) from exc

        os_version = output.strip()
        if not os_version:
            raise ClassificationError(f"query OS version of {host} returned nothing")

        variant = OSVariant.LEGACY if os_version == self.legacy_os_version else OSVariant.CURRENT
        log_with_fields(
            self.logger,
            logging.INFO,
            "host_classified",
            host=host,
            os_version=os_version,
            variant=variant.value,
        )
        return HostClassification(variant=variant, os_version=os_version)
