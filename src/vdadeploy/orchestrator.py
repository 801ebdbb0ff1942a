from __future__ import annotations

import logging
from typing import Callable

from .app_logging import log_with_fields
from .arguments import vda_arguments, wem_arguments
from .classifier import HostClassifier
from .config import AppConfig, RunRequest
from .errors import InstallerExitError, ProvisionError, UnreachableError
from .installer import InstallerRunner
from .models import (
    HostClassification,
    InstallerJob,
    InstallerOutcome,
    OSVariant,
    Product,
    RunResult,
    RunState,
)
from .probe import ConnectivityProber
from .results import RetryController
from .staging import ArtifactStager, staging_location

Prompt = Callable[[str], object]


class Orchestrator:
    """Drive one host from first probe to a terminal ``DONE`` or ``FAILED`` state.

    Every fatal condition is a ``ProvisionError`` raised by a component; it is
    caught once in ``run`` and turned into a failed ``RunResult``.
    """

    def __init__(
        self,
        config: AppConfig,
        request: RunRequest,
        prober: ConnectivityProber,
        classifier: HostClassifier,
        stager: ArtifactStager,
        runner: InstallerRunner,
        controller: RetryController,
        logger: logging.Logger,
        prompt: Prompt | None = None,
    ) -> None:
        self.config = config
        self.request = request
        self.prober = prober
        self.classifier = classifier
        self.stager = stager
        self.runner = runner
        self.controller = controller
        self.logger = logger
        self.prompt = prompt
        self.state = RunState.INIT
        self.history: list[RunState] = [RunState.INIT]
        self.install_passes: dict[str, int] = {}
        self.classification: HostClassification | None = None

    @property
    def host(self) -> str:
        return self.request.host

    def _transition(self, state: RunState) -> None:
        if self.state.terminal:
            raise RuntimeError(f"run already finished in state {self.state.value}")
        log_with_fields(
            self.logger,
            logging.INFO,
            "state_changed",
            host=self.host,
            from_state=self.state.value,
            to_state=state.value,
        )
        self.state = state
        self.history.append(state)

    def run(self) -> RunResult:
        result = RunResult(host=self.host, state=self.state)
        log_with_fields(
            self.logger,
            logging.INFO,
            "run_started",
            host=self.host,
            repository=str(self.request.repository_root),
            connectors=self.request.connectors,
            install_wem=self.request.install_wem,
        )
        try:
            self._execute()
            self._transition(RunState.DONE)
            log_with_fields(self.logger, logging.INFO, "run_completed", host=self.host)
        except ProvisionError as exc:
            self._transition(RunState.FAILED)
            result.error_kind = exc.kind.value
            result.error = str(exc)
            log_with_fields(
                self.logger,
                logging.ERROR,
                f"{exc.label} ERROR: {exc}",
                host=self.host,
                error_kind=exc.kind.value,
            )

        result.state = self.state
        result.classification = self.classification
        result.history = list(self.history)
        result.install_passes = dict(self.install_passes)
        result.reboots = self.controller.reboots
        self._await_acknowledgment(result)
        return result

    def _execute(self) -> None:
        self._transition(RunState.PROBING)
        report = self.prober.probe(self.host)
        if not report.reachable:
            raise UnreachableError(
                f"{self.host} is not reachable "
                f"(file channel: {report.file_channel}, command channel: {report.command_channel})"
            )

        self._transition(RunState.CLASSIFYING)
        classification = self.classifier.classify(self.host)
        self.classification = classification

        self._transition(RunState.STAGING)
        vda_path, wem_path = self._stage(classification)

        self._transition(RunState.PRE_INSTALL_REBOOT)
        self.controller.reboot_host(self.host)

        self._transition(RunState.INSTALL_LOOP)
        self._install_loop(vda_path)

        if self.request.install_wem:
            self._transition(RunState.SECOND_PRODUCT)
            self._install_second_product(wem_path)

    def _stage(self, classification: HostClassification) -> tuple[str, str]:
        repository = self.config.repository
        root = self.request.repository_root
        vda_relative = repository.vda_legacy if classification.variant is OSVariant.LEGACY else repository.vda_current

        location = staging_location(self.host, self.config.staging)
        self.stager.ensure_staging_dir(location)
        vda_path = self.stager.stage_file(root / vda_relative, location, repository.vda_staged_name)
        wem_path = self.stager.stage_file(root / repository.wem_agent, location, repository.wem_staged_name)
        return vda_path, wem_path

    def _run_pass(self, job: InstallerJob) -> InstallerOutcome:
        exit_code = self.runner.run_job(job)
        self.install_passes[job.product.value] = self.install_passes.get(job.product.value, 0) + 1
        outcome = self.controller.classify_and_act(exit_code, self.host)
        if outcome is InstallerOutcome.FATAL:
            raise InstallerExitError(job.product.value.upper(), exit_code)
        return outcome

    def _install_loop(self, installer_path: str) -> None:
        arguments = vda_arguments(self.request.connectors)
        max_attempts = self.config.install.max_attempts
        outcome: InstallerOutcome | None = None
        for attempt in range(1, max_attempts + 1):
            job = InstallerJob(
                product=Product.VDA,
                host=self.host,
                installer_path=installer_path,
                arguments=arguments,
                attempt=attempt,
            )
            outcome = self._run_pass(job)
            if outcome is InstallerOutcome.SUCCESS and self.config.install.stop_on_success:
                log_with_fields(
                    self.logger,
                    logging.INFO,
                    "install_loop_stopped_on_success",
                    host=self.host,
                    attempt=attempt,
                )
                break

        if outcome is InstallerOutcome.RETRY_NEEDED:
            log_with_fields(
                self.logger,
                logging.WARNING,
                "install_retry_budget_exhausted",
                host=self.host,
                max_attempts=max_attempts,
            )

    def _install_second_product(self, installer_path: str) -> None:
        job = InstallerJob(
            product=Product.WEM,
            host=self.host,
            installer_path=installer_path,
            arguments=wem_arguments(self.request.connectors),
            attempt=1,
        )
        outcome = self._run_pass(job)
        if outcome is InstallerOutcome.RETRY_NEEDED:
            log_with_fields(
                self.logger,
                logging.WARNING,
                "second_product_retry_not_attempted",
                host=self.host,
                product=Product.WEM.value,
            )

    def _await_acknowledgment(self, result: RunResult) -> None:
        if self.prompt is None:
            return
        if result.succeeded:
            message = f"Installation on {self.host} completed. Press Enter to exit..."
        else:
            message = f"Installation on {self.host} failed: {result.error}. Press Enter to exit..."
        try:
            self.prompt(message)
        except EOFError:
            log_with_fields(self.logger, logging.INFO, "acknowledgment_skipped", reason="stdin closed")
