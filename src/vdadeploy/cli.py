from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from .app_logging import log_with_fields, setup_logger
from .classifier import HostClassifier
from .config import AppConfig, RunRequest, load_config, parse_connectors
from .errors import ProvisionError
from .installer import InstallerRunner
from .orchestrator import Orchestrator
from .probe import ConnectivityProber
from .reboot import RebootCoordinator
from .remote import CommandChannel, ShareChannel, ping
from .results import RetryController
from .staging import ArtifactStager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vdadeploy",
        description="Unattended Citrix VDA / WEM agent installation on a remote Windows host",
    )
    parser.add_argument("--config", help="Path to vdadeploy YAML config")
    subparsers = parser.add_subparsers(dest="command", required=True)

    install = subparsers.add_parser("install", help="Stage, reboot and install on the target host")
    install.add_argument("--host", required=True, help="Target host name or address")
    install.add_argument("--repository", required=True, type=Path, help="Root of the installer repository")
    install.add_argument("--connectors", required=True, help="Space-separated list of cloud connectors")
    install.add_argument("--install-wem", action="store_true", help="Also install the WEM agent")
    install.add_argument("--no-pause", action="store_true", help="Do not wait for Enter before exiting")
    install.add_argument(
        "--stop-on-success",
        action="store_true",
        help="End the install loop at the first successful pass instead of running every pass",
    )

    probe = subparsers.add_parser("probe", help="Check reachability and OS classification only")
    probe.add_argument("--host", required=True, help="Target host name or address")
    return parser


@dataclass(slots=True)
class Runtime:
    logger: logging.Logger
    share: ShareChannel
    command: CommandChannel
    prober: ConnectivityProber
    classifier: HostClassifier


def _open_runtime(config: AppConfig, host: str) -> Runtime:
    logger = setup_logger(config.log_path(host))
    share = ShareChannel(config.staging)
    command = CommandChannel(config.winrm)
    return Runtime(
        logger=logger,
        share=share,
        command=command,
        prober=ConnectivityProber(share, command, logger),
        classifier=HostClassifier(command, config.classifier.legacy_os_version, logger),
    )


def build_orchestrator(config: AppConfig, request: RunRequest) -> Orchestrator:
    runtime = _open_runtime(config, request.host)
    reboot = RebootCoordinator(
        runtime.command,
        ping,
        runtime.logger,
        interval_seconds=config.reboot.interval_seconds,
    )
    return Orchestrator(
        config=config,
        request=request,
        prober=runtime.prober,
        classifier=runtime.classifier,
        stager=ArtifactStager(runtime.share, runtime.logger),
        runner=InstallerRunner(runtime.command, runtime.logger),
        controller=RetryController(
            reboot,
            runtime.logger,
            reboot_timeout_seconds=config.reboot.timeout_seconds,
        ),
        logger=runtime.logger,
        prompt=input if config.pause_on_exit else None,
    )


def cmd_install(config: AppConfig, args: argparse.Namespace) -> int:
    if args.no_pause:
        config.pause_on_exit = False
    if args.stop_on_success:
        config.install.stop_on_success = True
    try:
        connectors = parse_connectors(args.connectors)
    except ValueError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    request = RunRequest(
        host=args.host,
        repository_root=args.repository,
        connectors=connectors,
        install_wem=bool(args.install_wem),
    )
    orchestrator = build_orchestrator(config, request)
    try:
        result = orchestrator.run()
    except KeyboardInterrupt:
        log_with_fields(
            orchestrator.logger,
            logging.WARNING,
            "shutdown",
            host=request.host,
            reason="keyboard_interrupt",
            state=orchestrator.state.value,
        )
        return 1
    return 0 if result.succeeded else 1


def cmd_probe(config: AppConfig, host: str) -> int:
    runtime = _open_runtime(config, host)
    try:
        report = runtime.prober.probe(host)
    except ProvisionError as exc:
        print(f"{host}: {exc.label} ERROR: {exc}", file=sys.stderr)
        return 1
    print(f"{host}:")
    print(f"  file channel     {'ok' if report.file_channel else 'unreachable'}")
    print(f"  command channel  {'ok' if report.command_channel else 'unreachable'}")
    if not report.command_channel:
        return 1
    try:
        classification = runtime.classifier.classify(host)
    except ProvisionError as exc:
        print(f"  os version       error: {exc}", file=sys.stderr)
        return 1
    print(f"  os version       {classification.os_version} ({classification.variant.value})")
    return 0 if report.reachable else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
    except ValueError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    if args.command == "install":
        return cmd_install(config, args)
    if args.command == "probe":
        return cmd_probe(config, args.host)
    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
