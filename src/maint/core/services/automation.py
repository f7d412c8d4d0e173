"""
Automation service: the single entry point for manual and scheduled runs.

Wires the classifier, notifier and external source from configuration and
drives an AutomationRun under the run lock. Any trigger (CLI, cron,
heartbeat) calls the same code path.

Usage:
    >>> from maint.core.services import AutomationService
    >>> service = AutomationService.from_config(config)
    >>> for event in service.execute(contractors, work_items, properties):
    ...     handle(event)
    >>> report = service.get_report()

    # Or, one call:
    >>> report = run_automation(config, contractors, work_items, properties)
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Sequence
from pathlib import Path

from maint.core.config import MaintConfig, RetrySettings, load_config
from maint.core.errors import MaintError
from maint.core.notify import LogNotifier, Notifier, WebhookNotifier
from maint.core.retry import RetryConfig
from maint.core.run import AutomationRun, Cancellation, RunEvent, RunLock, RunReport
from maint.core.sources import SourceAdapter, get_source
from maint.core.triage import Classifier, HttpClassifier
from maint.core.workorders import Contractor, Property, WorkItem

logger = logging.getLogger(__name__)


class AutomationServiceError(MaintError):
    """Raised when the service cannot be wired from configuration."""


class NoRunError(AutomationServiceError):
    """Raised when a report is requested before any run has started."""

    def __init__(self) -> None:
        super().__init__("No automation run has been executed yet")


def retry_config(settings: RetrySettings) -> RetryConfig:
    return RetryConfig(
        max_retries=settings.max_retries,
        base_delay=settings.base_delay,
        multiplier=settings.multiplier,
    )


def _properties_by_id(properties: Iterable[Property] | None) -> dict[str, Property]:
    return {p.id: p for p in properties or ()}


class AutomationService:
    """
    Service layer for automation runs.

    Create via ``from_config``, or pass collaborators directly (tests).
    One service instance drives one run at a time; the run lock keeps runs
    single-flight across instances too.
    """

    def __init__(
        self,
        *,
        config: MaintConfig,
        classifier: Classifier | None = None,
        notifier: Notifier | None = None,
        external_source: SourceAdapter | None = None,
    ) -> None:
        self._config = config
        self._classifier = classifier
        self._notifier = notifier
        self._external_source = external_source
        self._current_run: AutomationRun | None = None

    @classmethod
    def from_config(
        cls,
        config: MaintConfig | None = None,
        *,
        project_dir: Path | None = None,
    ) -> AutomationService:
        """
        Build a service from configuration.

        Args:
            config: Pre-loaded configuration. If None, loads it for
                ``project_dir`` with the standard loader.
            project_dir: Project root for config loading. Defaults to cwd.

        Raises:
            AutomationServiceError: If the external source is configured
                without usable credentials.
        """
        resolved = config or load_config(project_dir)

        classifier: Classifier | None = None
        if resolved.classifier.endpoint:
            api_key = resolved.classifier.api_key
            classifier = HttpClassifier(
                resolved.classifier.endpoint,
                api_key=api_key.get_secret_value() if api_key else None,
                timeout=resolved.classifier.timeout_seconds,
            )

        notifier: Notifier
        if resolved.notifier.webhook_url:
            notifier = WebhookNotifier(
                resolved.notifier.webhook_url, timeout=resolved.notifier.timeout_seconds
            )
        else:
            notifier = LogNotifier()

        external: SourceAdapter | None = None
        ext = resolved.external
        if ext.is_configured and ext.base_url:
            try:
                external = get_source(
                    "external",
                    base_url=ext.base_url,
                    email=ext.email,
                    password=ext.password.get_secret_value() if ext.password else None,
                    api_token=ext.api_token.get_secret_value() if ext.api_token else None,
                    timeout=ext.timeout_seconds,
                )
            except MaintError as e:
                raise AutomationServiceError(
                    f"External source misconfigured: {e.message}", base_url=ext.base_url
                ) from e

        return cls(
            config=resolved,
            classifier=classifier,
            notifier=notifier,
            external_source=external,
        )

    def close(self) -> None:
        """Release HTTP clients held by the classifier, notifier and external source."""
        for collaborator in (self._classifier, self._notifier, self._external_source):
            close = getattr(collaborator, "close", None)
            if callable(close):
                close()

    def __enter__(self) -> AutomationService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def config(self) -> MaintConfig:
        return self._config

    @property
    def external_source(self) -> SourceAdapter | None:
        return self._external_source

    def execute(
        self,
        contractors: Sequence[Contractor],
        work_items: Sequence[WorkItem],
        properties: Iterable[Property] | None = None,
        *,
        cancellation: Cancellation | None = None,
        run_id: str | None = None,
    ) -> Generator[RunEvent, None, None]:
        """
        Run one automation pass, yielding events.

        ``work_items`` are the native items; they are updated in place.

        Raises:
            RunInProgressError: If another run holds the run lock
        """
        settings = self._config.automation
        with RunLock(settings.lock_file):
            self._current_run = AutomationRun(
                settings=settings,
                rules=self._config.rule_book(),
                contractors=contractors,
                pool=work_items,
                native=get_source("native", items=work_items),
                external=self._external_source,
                properties=_properties_by_id(properties),
                classifier=self._classifier,
                notifier=self._notifier,
                retry=retry_config(self._config.retry),
                call_timeout=self._config.retry.call_timeout_seconds,
                cancellation=cancellation,
                run_id=run_id,
            )
            yield from self._current_run.execute()

    def get_report(self) -> RunReport:
        """
        Report for the most recent run.

        Raises:
            NoRunError: If ``execute`` has not been started
        """
        if self._current_run is None:
            raise NoRunError()
        return self._current_run.get_report()

    def run(
        self,
        contractors: Sequence[Contractor],
        work_items: Sequence[WorkItem],
        properties: Iterable[Property] | None = None,
        *,
        cancellation: Cancellation | None = None,
    ) -> RunReport:
        """Run one pass to completion and return its report."""
        for event in self.execute(contractors, work_items, properties, cancellation=cancellation):
            logger.debug(f"[{event.event_type.value}] {event.message}")
        return self.get_report()


def run_automation(
    config: MaintConfig,
    contractors: Sequence[Contractor],
    work_items: Sequence[WorkItem],
    properties: Iterable[Property] | None = None,
    *,
    classifier: Classifier | None = None,
    notifier: Notifier | None = None,
    external_source: SourceAdapter | None = None,
    cancellation: Cancellation | None = None,
) -> RunReport:
    """
    Run one automation pass and return its report.

    Source and classifier outages never raise; they show up as notes and
    error outcomes on the report.

    Args:
        config: Configuration (mode, thresholds, rules, retry budget)
        contractors: Contractor pool
        work_items: Native work items, updated in place
        properties: Property records, passed to the notifier
        classifier: Optional classifier (keyword triage when None)
        notifier: Optional notifier (no notifications when None)
        external_source: External source adapter (required for
            external_only and hybrid to process external work)
        cancellation: Checked between items

    Raises:
        RunInProgressError: If another run holds the run lock
    """
    service = AutomationService(
        config=config,
        classifier=classifier,
        notifier=notifier,
        external_source=external_source,
    )
    return service.run(contractors, work_items, properties, cancellation=cancellation)
