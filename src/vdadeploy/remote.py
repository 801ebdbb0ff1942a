from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable

import requests
import winrm
from winrm.exceptions import AuthenticationError, WinRMError, WinRMOperationTimeoutError, WinRMTransportError

from .config import StagingConfig, WinRMConfig

# Failures that mean "the host is not answering", as opposed to faults such as
# rejected credentials which must surface to the operator.
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    WinRMTransportError,
    WinRMOperationTimeoutError,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)
REMOTE_ERRORS: tuple[type[BaseException], ...] = (*TRANSPORT_ERRORS, WinRMError)

RESTART_COMMAND = ("shutdown", ["/r", "/f", "/t", "5", "/d", "p:4:2"])


class RemoteError(RuntimeError):
    pass


class CredentialsError(RemoteError):
    pass


def ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _decode(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


class CommandChannel:
    """WinRM transport used for probing, remote PowerShell, installers and restarts."""

    def __init__(
        self,
        config: WinRMConfig,
        session_factory: Callable[..., winrm.Session] = winrm.Session,
    ) -> None:
        self.config = config
        self.session_factory = session_factory
        self._sessions: dict[str, winrm.Session] = {}

    def _session(self, host: str) -> winrm.Session:
        session = self._sessions.get(host)
        if session is None:
            session = self.session_factory(
                self.config.endpoint(host),
                auth=(self.config.username, self.config.password()),
                transport=self.config.transport,
                server_cert_validation=self.config.server_cert_validation,
                operation_timeout_sec=self.config.operation_timeout_seconds,
                read_timeout_sec=self.config.read_timeout_seconds,
            )
            self._sessions[host] = session
        return session

    def _require_ok(self, response: winrm.Response, context: str) -> str:
        stdout = _decode(response.std_out).strip()
        if response.status_code != 0:
            stderr = _decode(response.std_err).strip()
            output = stderr if stderr else stdout
            raise RemoteError(f"{context} failed: {output or 'exit code ' + str(response.status_code)}")
        return stdout

    def is_available(self, host: str) -> bool:
        try:
            response = self._session(host).run_cmd("hostname")
        except TRANSPORT_ERRORS:
            return False
        except AuthenticationError as exc:
            raise CredentialsError(f"WinRM login to {host} rejected: {exc}") from exc
        return response.status_code == 0

    def run_powershell(self, host: str, script: str, context: str) -> str:
        try:
            response = self._session(host).run_ps(script)
        except REMOTE_ERRORS as exc:
            raise RemoteError(f"{context} failed: {exc}") from exc
        return self._require_ok(response, context)

    def start_process(self, host: str, file_path: str, arguments: str | None) -> int:
        launch = f"Start-Process -FilePath {ps_quote(file_path)}"
        if arguments:
            launch += f" -ArgumentList {ps_quote(arguments)}"
        script = "\n".join(
            [
                "$ErrorActionPreference = 'Stop'",
                f"$process = {launch} -Wait -PassThru",
                "Write-Output $process.ExitCode",
            ]
        )
        output = self.run_powershell(host, script, f"launch {file_path} on {host}")
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        if not lines:
            raise RemoteError(f"launch {file_path} on {host} returned no exit code")
        try:
            return int(lines[-1])
        except ValueError as exc:
            raise RemoteError(f"launch {file_path} on {host} returned unparsable exit code: {lines[-1]}") from exc

    def restart(self, host: str) -> None:
        command, args = RESTART_COMMAND
        try:
            response = self._session(host).run_cmd(command, args)
        except REMOTE_ERRORS as exc:
            raise RemoteError(f"restart {host} failed: {exc}") from exc
        self._require_ok(response, f"restart {host}")


class ShareChannel:
    """Administrative share access (``\\\\host\\C$``) through the local filesystem."""

    def __init__(self, config: StagingConfig) -> None:
        self.config = config

    def root(self, host: str) -> Path:
        return Path(self.config.share_root.format(host=host))

    def is_available(self, host: str) -> bool:
        try:
            return self.root(host).is_dir()
        except OSError:
            return False

    def exists(self, path: Path) -> bool:
        return path.exists()

    def make_dir(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RemoteError(f"create directory {path} failed: {exc}") from exc

    def copy_file(self, source: Path, destination: Path) -> None:
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise RemoteError(f"copy {source} to {destination} failed: {exc}") from exc


def ping_command(host: str, timeout_seconds: int) -> list[str]:
    if os.name == "nt":
        return ["ping", "-n", "1", "-w", str(timeout_seconds * 1000), host]
    return ["ping", "-c", "1", "-W", str(timeout_seconds), host]


def ping(host: str, timeout_seconds: int = 2) -> bool:
    try:
        process = subprocess.run(
            ping_command(host, timeout_seconds),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise RemoteError(f"ping {host} failed: {exc}") from exc
    if process.returncode != 0:
        return False
    # Windows ping exits 0 on "Destination host unreachable" replies from a gateway.
    if os.name == "nt":
        return "TTL=" in process.stdout.upper()
    return True
