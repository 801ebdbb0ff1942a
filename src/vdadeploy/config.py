from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path, PureWindowsPath

import yaml

WINRM_TRANSPORTS = {"ntlm", "kerberos", "credssp", "basic", "plaintext", "ssl"}


@dataclass(slots=True)
class WinRMConfig:
    transport: str = "ntlm"
    port: int = 5985
    scheme: str = "http"
    username: str | None = None
    password_env: str = "VDADEPLOY_PASSWORD"
    server_cert_validation: str = "validate"
    operation_timeout_seconds: int = 20
    read_timeout_seconds: int = 30

    def endpoint(self, host: str) -> str:
        return f"{self.scheme}://{host}:{self.port}/wsman"

    def password(self) -> str | None:
        return os.environ.get(self.password_env)


@dataclass(slots=True)
class RebootConfig:
    timeout_seconds: int = 300
    interval_seconds: int = 10


@dataclass(slots=True)
class InstallConfig:
    max_attempts: int = 5
    stop_on_success: bool = False


@dataclass(slots=True)
class ClassifierConfig:
    legacy_os_version: str = "6.1.7601"


@dataclass(slots=True)
class StagingConfig:
    share_root: str = "\\\\{host}\\C$"
    subpath: str = "Temp\\VDADeploy"
    local_drive: str = "C:"

    def subpath_parts(self) -> list[str]:
        return [part for part in re.split(r"[\\/]+", self.subpath) if part]

    def share_path(self, host: str) -> Path:
        return Path(self.share_root.format(host=host)).joinpath(*self.subpath_parts())

    def local_path(self) -> PureWindowsPath:
        return PureWindowsPath(self.local_drive + "\\").joinpath(*self.subpath_parts())


@dataclass(slots=True)
class RepositoryConfig:
    vda_current: str = "VDA/Current/VDAServerSetup.exe"
    vda_legacy: str = "VDA/Legacy/VDAServerSetup.exe"
    wem_agent: str = "WEM/Citrix Workspace Environment Management Agent.exe"
    vda_staged_name: str = "VDAServerSetup.exe"
    wem_staged_name: str = "WEMAgentSetup.exe"


@dataclass(slots=True)
class LogConfig:
    path: Path | None = None
    filename: str = "vdadeploy.log"


@dataclass(slots=True)
class AppConfig:
    winrm: WinRMConfig = field(default_factory=WinRMConfig)
    reboot: RebootConfig = field(default_factory=RebootConfig)
    install: InstallConfig = field(default_factory=InstallConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    staging: StagingConfig = field(default_factory=StagingConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    log: LogConfig = field(default_factory=LogConfig)
    pause_on_exit: bool = True

    def log_path(self, host: str) -> Path:
        if self.log.path is not None:
            return self.log.path
        return self.staging.share_path(host) / self.log.filename


@dataclass(slots=True)
class RunRequest:
    host: str
    repository_root: Path
    connectors: list[str]
    install_wem: bool = False


def parse_connectors(value: str) -> list[str]:
    connectors = [item for item in value.split() if item]
    if not connectors:
        raise ValueError("At least one cloud connector is required")
    return connectors


def _section(raw: dict, key: str) -> dict:
    value = raw.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"`{key}` must be a mapping")
    return value


def _positive_int(section: dict, key: str, default: int, name: str) -> int:
    value = int(section.get(key, default))
    if value < 1:
        raise ValueError(f"`{name}.{key}` must be >= 1")
    return value


def load_config(path: str | Path | None = None) -> AppConfig:
    if path is None:
        return AppConfig()

    config_path = Path(path).expanduser().resolve()
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("Config root must be a mapping")

    winrm_raw = _section(raw, "winrm")
    reboot_raw = _section(raw, "reboot")
    install_raw = _section(raw, "install")
    classifier_raw = _section(raw, "classifier")
    staging_raw = _section(raw, "staging")
    repository_raw = _section(raw, "repository")
    log_raw = _section(raw, "log")

    defaults = AppConfig()

    username = winrm_raw.get("username")
    winrm = WinRMConfig(
        transport=str(winrm_raw.get("transport", defaults.winrm.transport)).lower(),
        port=_positive_int(winrm_raw, "port", defaults.winrm.port, "winrm"),
        scheme=str(winrm_raw.get("scheme", defaults.winrm.scheme)).lower(),
        username=str(username) if username is not None else None,
        password_env=str(winrm_raw.get("password_env", defaults.winrm.password_env)),
        server_cert_validation=str(
            winrm_raw.get("server_cert_validation", defaults.winrm.server_cert_validation)
        ).lower(),
        operation_timeout_seconds=_positive_int(
            winrm_raw, "operation_timeout_seconds", defaults.winrm.operation_timeout_seconds, "winrm"
        ),
        read_timeout_seconds=_positive_int(
            winrm_raw, "read_timeout_seconds", defaults.winrm.read_timeout_seconds, "winrm"
        ),
    )
    if winrm.transport not in WINRM_TRANSPORTS:
        raise ValueError(f"`winrm.transport` must be one of {', '.join(sorted(WINRM_TRANSPORTS))}")
    if winrm.scheme not in {"http", "https"}:
        raise ValueError("`winrm.scheme` must be either `http` or `https`")
    if winrm.server_cert_validation not in {"validate", "ignore"}:
        raise ValueError("`winrm.server_cert_validation` must be either `validate` or `ignore`")
    if winrm.read_timeout_seconds <= winrm.operation_timeout_seconds:
        raise ValueError("`winrm.read_timeout_seconds` must exceed `winrm.operation_timeout_seconds`")

    reboot = RebootConfig(
        timeout_seconds=_positive_int(reboot_raw, "timeout_seconds", defaults.reboot.timeout_seconds, "reboot"),
        interval_seconds=_positive_int(reboot_raw, "interval_seconds", defaults.reboot.interval_seconds, "reboot"),
    )
    install = InstallConfig(
        max_attempts=_positive_int(install_raw, "max_attempts", defaults.install.max_attempts, "install"),
        stop_on_success=bool(install_raw.get("stop_on_success", defaults.install.stop_on_success)),
    )
    classifier = ClassifierConfig(
        legacy_os_version=str(classifier_raw.get("legacy_os_version", defaults.classifier.legacy_os_version)),
    )
    staging = StagingConfig(
        share_root=str(staging_raw.get("share_root", defaults.staging.share_root)),
        subpath=str(staging_raw.get("subpath", defaults.staging.subpath)),
        local_drive=str(staging_raw.get("local_drive", defaults.staging.local_drive)),
    )
    if "{host}" not in staging.share_root:
        raise ValueError("`staging.share_root` must contain a `{host}` placeholder")
    if not staging.subpath_parts():
        raise ValueError("`staging.subpath` must not be empty")

    repository = RepositoryConfig(
        **{
            item.name: str(repository_raw.get(item.name, getattr(defaults.repository, item.name)))
            for item in fields(RepositoryConfig)
        }
    )

    log_path_raw = log_raw.get("path")
    log_path: Path | None = None
    if log_path_raw:
        log_path = Path(str(log_path_raw)).expanduser()
        if not log_path.is_absolute():
            log_path = config_path.parent / log_path
    log = LogConfig(path=log_path, filename=str(log_raw.get("filename", defaults.log.filename)))

    return AppConfig(
        winrm=winrm,
        reboot=reboot,
        install=install,
        classifier=classifier,
        staging=staging,
        repository=repository,
        log=log,
        pause_on_exit=bool(raw.get("pause_on_exit", defaults.pause_on_exit)),
    )
