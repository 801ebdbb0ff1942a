from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNREACHABLE = "unreachable"
    AUTHENTICATION = "authentication"
    CLASSIFICATION = "classification"
    TRANSFER = "transfer"
    REBOOT = "reboot"
    LAUNCH = "launch"
    INSTALLER_EXIT = "installer_exit"


class ProvisionError(RuntimeError):
    kind: ErrorKind

    @property
    def label(self) -> str:
        return self.kind.value.replace("_", " ").upper()


class UnreachableError(ProvisionError):
    kind = ErrorKind.UNREACHABLE


class AuthenticationFailedError(ProvisionError):
    kind = ErrorKind.AUTHENTICATION


class ClassificationError(ProvisionError):
    kind = ErrorKind.CLASSIFICATION


class TransferError(ProvisionError):
    kind = ErrorKind.TRANSFER


class RebootError(ProvisionError):
    kind = ErrorKind.REBOOT


class LaunchError(ProvisionError):
    kind = ErrorKind.LAUNCH


class InstallerExitError(ProvisionError):
    kind = ErrorKind.INSTALLER_EXIT

    def __init__(self, product: str, exit_code: int) -> None:
        super().__init__(f"{product} installer exited with unexpected code {exit_code}")
        self.product = product
        self.exit_code = exit_code
