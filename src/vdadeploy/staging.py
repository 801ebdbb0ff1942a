from __future__ import annotations

import logging
from pathlib import Path

from .app_logging import log_with_fields
from .config import StagingConfig
from .errors import TransferError
from .models import StagingLocation
from .remote import RemoteError, ShareChannel


def staging_location(host: str, config: StagingConfig) -> StagingLocation:
    return StagingLocation(
        host=host,
        share_path=config.share_path(host),
        local_path=config.local_path(),
    )


class ArtifactStager:
    def __init__(self, share: ShareChannel, logger: logging.Logger) -> None:
        self.share = share
        self.logger = logger

    def ensure_staging_dir(self, location: StagingLocation) -> None:
        if self.share.exists(location.share_path):
            log_with_fields(
                self.logger,
                logging.INFO,
                "staging_dir_present",
                host=location.host,
                path=str(location.share_path),
            )
            return
        try:
            self.share.make_dir(location.share_path)
        except RemoteError as exc:
            raise TransferError(str(exc)) from exc
        log_with_fields(
            self.logger,
            logging.INFO,
            "staging_dir_created",
            host=location.host,
            path=str(location.share_path),
        )

    def stage_file(self, source: Path, location: StagingLocation, dest_name: str) -> str:
        """Copy ``source`` into the staging directory and return its host-local path."""
        if not source.is_file():
            raise TransferError(f"installer not found: {source}")
        destination = location.share_file(dest_name)
        try:
            self.share.copy_file(source, destination)
        except RemoteError as exc:
            raise TransferError(str(exc)) from exc
        local_path = location.local_file(dest_name)
        log_with_fields(
            self.logger,
            logging.INFO,
            "file_staged",
            host=location.host,
            source=str(source),
            destination=str(destination),
        )
        return local_path
