from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PureWindowsPath


class OSVariant(str, Enum):
    LEGACY = "legacy"
    CURRENT = "current"


class InstallerOutcome(str, Enum):
    SUCCESS = "success"
    RETRY_NEEDED = "retry_needed"
    FATAL = "fatal"


class Product(str, Enum):
    VDA = "vda"
    WEM = "wem"


class RunState(str, Enum):
    INIT = "init"
    PROBING = "probing"
    CLASSIFYING = "classifying"
    STAGING = "staging"
    PRE_INSTALL_REBOOT = "pre_install_reboot"
    INSTALL_LOOP = "install_loop"
    SECOND_PRODUCT = "second_product"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in {RunState.DONE, RunState.FAILED}


@dataclass(slots=True)
class HostClassification:
    variant: OSVariant
    os_version: str


@dataclass(slots=True)
class ProbeReport:
    host: str
    file_channel: bool
    command_channel: bool

    @property
    def reachable(self) -> bool:
        return self.file_channel and self.command_channel


@dataclass(slots=True)
class StagingLocation:
    host: str
    share_path: Path
    local_path: PureWindowsPath

    def share_file(self, name: str) -> Path:
        return self.share_path / name

    def local_file(self, name: str) -> str:
        return str(self.local_path / name)


@dataclass(slots=True)
class InstallerJob:
    product: Product
    host: str
    installer_path: str
    arguments: str | None
    attempt: int


@dataclass(slots=True)
class RunResult:
    host: str
    state: RunState
    error_kind: str | None = None
    error: str | None = None
    classification: HostClassification | None = None
    install_passes: dict[str, int] = field(default_factory=dict)
    reboots: int = 0
    history: list[RunState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE
