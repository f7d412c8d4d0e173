"""
Automation run state machine.

Implements one pass of the engine as a generator that yields RunEvent
objects: fetch -> (classify -> duplicate check -> triage -> score ->
cost -> decide -> act) per item -> report. Rendering, signal handling and
CLI concerns stay with the caller.

A run moves started -> processing -> finished. All enabled sources are
fetched first, then the workload snapshot and duplicate detector are
built once from the whole pool, then native items are processed, then
external items. An exception while handling one item becomes an ``error``
outcome for that item; the run carries on with the next one. Records a
source skipped as invalid also become ``error`` outcomes, reported after
that source's items.

Items held for owner approval move to ``pending_approval`` rather than
staying ``classified``. The hold is a distinct state in the status machine,
so approve_pending can find held items and the external platform shows
them as awaiting approval.

Assignment writes are retried but not abandoned on the call timeout. If a
write fails after the remote side already recorded the assignment, the
item is still counted as assigned.

Usage:
    >>> run = AutomationRun(settings=settings, rules=rules, contractors=contractors,
    ...                     pool=work_items, native=NativeQueueSource(work_items))
    >>> for event in run.execute():
    ...     render(event)
    >>> report = run.get_report()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from maint.core.assign import (
    DecisionKind,
    DuplicateDetector,
    WorkloadSnapshot,
    build_assignment,
    decide,
    estimate_cost,
    merge_duplicate,
    select_contractor,
)
from maint.core.config import AutomationSettings
from maint.core.errors import InvalidTransitionError, MaintError
from maint.core.notify import Notifier
from maint.core.retry import RetryConfig, call_with_retry
from maint.core.rules import RuleBook
from maint.core.sources import RejectedRecord, SourceAdapter
from maint.core.triage import Classifier, classify_category, triage_request
from maint.core.workorders import (
    Contractor,
    Property,
    WorkItem,
    WorkItemStatus,
    WorkSource,
)

from .interrupt import Cancellation
from .models import (
    ItemOutcome,
    OutcomeAction,
    RunEvent,
    RunEventType,
    RunReport,
    RunState,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DECISION_ACTIONS = {
    DecisionKind.AUTO_ASSIGN: OutcomeAction.AUTO_ASSIGNED,
    DecisionKind.NEEDS_REVIEW: OutcomeAction.NEEDS_REVIEW,
    DecisionKind.OWNER_APPROVAL_NEEDED: OutcomeAction.OWNER_APPROVAL_NEEDED,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AutomationRun:
    """
    One automation pass over the enabled sources.

    Attributes:
        run_id: Identifier for this run.
        settings: Thresholds, mode and switches for this run.
        rules: Vendor rules in effect (fixed for the whole run).
        state: Current run state.
    """

    def __init__(
        self,
        *,
        settings: AutomationSettings,
        rules: RuleBook,
        contractors: Sequence[Contractor],
        pool: Iterable[WorkItem] = (),
        native: SourceAdapter | None = None,
        external: SourceAdapter | None = None,
        properties: Mapping[str, Property] | None = None,
        classifier: Classifier | None = None,
        notifier: Notifier | None = None,
        retry: RetryConfig | None = None,
        call_timeout: float | None = None,
        cancellation: Cancellation | None = None,
        run_id: str | None = None,
    ) -> None:
        """
        Args:
            settings: Automation settings (mode, thresholds, switches).
            rules: Vendor rules for triage and cost estimation.
            contractors: Contractor pool to assign from.
            pool: Every known work item, used for the workload snapshot and
                duplicate detection. Fetched external items are added to it.
            native: Native queue adapter.
            external: External work-order adapter.
            properties: Property records by id, passed to the notifier.
            classifier: Optional natural-language classifier.
            notifier: Optional notifier for auto-assignments.
            retry: Retry budget for classifier and source calls.
            call_timeout: Per-call timeout in seconds for classifier and
                source calls.
            cancellation: Checked between items.
            run_id: Explicit run id (generated if None).
        """
        self.settings = settings
        self.rules = rules
        self.contractors = list(contractors)
        self.pool = list(pool)
        self.native = native
        self.external = external
        self.properties = dict(properties or {})
        self.classifier = classifier
        self.notifier = notifier
        self.retry = retry or RetryConfig()
        self.call_timeout = call_timeout
        self.cancellation = cancellation
        self.run_id = run_id or f"maint-{datetime.now().strftime('%Y%m%d-%H%M%S')}"

        self.state = RunState.STARTED
        self._contractors_by_id = {c.id: c for c in self.contractors}
        self._started_at = _now()
        self._ended_at: datetime | None = None
        self._outcomes: list[ItemOutcome] = []
        self._notes: list[str] = []
        self._cancelled = False
        self._workload = WorkloadSnapshot()
        self._detector = DuplicateDetector(())

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _call(self, func: Callable[..., T], *args: Any) -> T:
        return call_with_retry(func, *args, config=self.retry, timeout=self.call_timeout)

    def _is_cancelled(self) -> bool:
        return self.cancellation is not None and self.cancellation.cancelled

    def _adapter_for(self, item: WorkItem) -> SourceAdapter:
        adapter = self.native if item.source is WorkSource.NATIVE else self.external
        if adapter is None:
            raise MaintError(f"No adapter for {item.source.value} work item {item.id}")
        return adapter

    def _enabled_sources(self) -> list[tuple[WorkSource, SourceAdapter | None]]:
        sources: list[tuple[WorkSource, SourceAdapter | None]] = []
        if self.settings.mode.includes_native:
            sources.append((WorkSource.NATIVE, self.native))
        if self.settings.mode.includes_external:
            sources.append((WorkSource.EXTERNAL, self.external))
        return sources

    # -----------------------------------------------------------------------
    # Execution
    # -----------------------------------------------------------------------

    def execute(self) -> Generator[RunEvent, None, None]:
        """
        Run the pass, yielding events.

        Yields:
            RunEvent objects for each fetch, each item and the run end.
        """
        self._started_at = _now()
        yield RunEvent(
            RunEventType.RUN_STARTED,
            f"Starting run {self.run_id} ({self.settings.mode.value})",
            data={"run_id": self.run_id, "mode": self.settings.mode.value},
        )

        passes: list[tuple[WorkSource, list[WorkItem], list[RejectedRecord]]] = []
        for source, adapter in self._enabled_sources():
            if adapter is None:
                note = f"{source.value} source is not configured"
                self._notes.append(note)
                yield RunEvent(RunEventType.SOURCE_UNAVAILABLE, note, source=source, error=note)
                continue
            try:
                items = self._call(adapter.fetch_pending)
            except Exception as e:
                note = f"{source.value} source unavailable: {e}"
                logger.warning(note)
                self._notes.append(note)
                yield RunEvent(RunEventType.SOURCE_UNAVAILABLE, note, source=source, error=str(e))
                continue
            rejected = list(adapter.rejected)
            passes.append((source, items, rejected))
            yield RunEvent(
                RunEventType.SOURCE_FETCHED,
                f"Fetched {len(items)} pending {source.value} work items",
                source=source,
                data={"count": len(items), "rejected": len(rejected)},
            )

        known = {item.id for item in self.pool}
        for _, items, _ in passes:
            for item in items:
                if item.id not in known:
                    self.pool.append(item)
                    known.add(item.id)
        self._workload = WorkloadSnapshot.from_items(self.pool)
        self._detector = DuplicateDetector(
            self.pool,
            pending=[item.id for _, items, _ in passes for item in items],
        )

        self.state = RunState.PROCESSING
        for source, items, rejected in passes:
            for item in items:
                if self._is_cancelled():
                    self._cancelled = True
                    break
                yield RunEvent(
                    RunEventType.ITEM_STARTED,
                    f"Processing {item.id}",
                    work_item_id=item.id,
                    source=item.source,
                )
                outcome = self._process_item(item)
                self._outcomes.append(outcome)
                failed = outcome.action is OutcomeAction.ERROR
                yield RunEvent(
                    RunEventType.ITEM_FAILED if failed else RunEventType.ITEM_COMPLETED,
                    f"{item.id}: {outcome.action.value}",
                    work_item_id=item.id,
                    source=item.source,
                    outcome=outcome,
                    error=outcome.error,
                )
            if self._cancelled:
                break
            for record in rejected:
                outcome = ItemOutcome(
                    work_item_id=record.record_id,
                    source=source,
                    action=OutcomeAction.ERROR,
                    reason="invalid record",
                    error=record.error,
                )
                self._outcomes.append(outcome)
                yield RunEvent(
                    RunEventType.ITEM_FAILED,
                    f"{record.record_id}: {outcome.action.value}",
                    work_item_id=record.record_id,
                    source=source,
                    outcome=outcome,
                    error=record.error,
                )

        self.state = RunState.FINISHED
        self._ended_at = _now()
        report = self.get_report()
        if self._cancelled:
            yield RunEvent(
                RunEventType.RUN_CANCELLED,
                f"Run cancelled after {len(self._outcomes)} items",
                data={"processed": report.processed},
            )
        yield RunEvent(
            RunEventType.RUN_COMPLETED,
            f"Run finished: {report.processed} processed, {report.auto_assigned} auto-assigned",
            data={"processed": report.processed, "auto_assigned": report.auto_assigned},
        )

    def get_report(self) -> RunReport:
        """
        Build the report for everything handled so far.

        Safe to call before the generator is exhausted; the report then
        covers the items completed so far.
        """
        return RunReport.from_outcomes(
            run_id=self.run_id,
            mode=self.settings.mode,
            started_at=self._started_at,
            ended_at=self._ended_at or _now(),
            outcomes=self._outcomes,
            notes=self._notes,
            cancelled=self._cancelled,
        )

    # -----------------------------------------------------------------------
    # Per-item pipeline
    # -----------------------------------------------------------------------

    def _process_item(self, item: WorkItem) -> ItemOutcome:
        try:
            return self._handle(item)
        except MaintError as e:
            logger.warning(f"Work item {item.id} failed: {e}")
            return self._error_outcome(item, e)
        except Exception as e:
            logger.exception(f"Unexpected error processing work item {item.id}")
            return self._error_outcome(item, e)

    @staticmethod
    def _error_outcome(item: WorkItem, error: Exception) -> ItemOutcome:
        return ItemOutcome(
            work_item_id=item.id,
            source=item.source,
            action=OutcomeAction.ERROR,
            category=item.category,
            reason="processing failed",
            error=str(error) or type(error).__name__,
        )

    def _handle(self, item: WorkItem) -> ItemOutcome:
        adapter = self._adapter_for(item)

        category = item.category
        if category is None:
            category = classify_category(
                self.classifier,
                item.description,
                self.rules,
                retry=self.retry,
                timeout=self.call_timeout,
            )
        triage = triage_request(item.description, self.rules, category=category)
        self._detector.record_category(item.id, triage.category)

        duplicate = self._detector.check(item, triage.category)
        if duplicate.is_duplicate and duplicate.existing is not None:
            return self._merge(item, duplicate.existing, adapter)

        item.category = triage.category
        if item.status is WorkItemStatus.REPORTED:
            self._call(adapter.update_status, item.id, WorkItemStatus.CLASSIFIED)

        rule = self.rules.resolve(triage.category)
        selection = select_contractor(triage.category, self.contractors, self._workload)
        estimate = estimate_cost(rule, triage.urgency)
        assignment = build_assignment(triage, selection, estimate) if selection else None
        decision = decide(triage, assignment, self.settings)

        outcome = ItemOutcome(
            work_item_id=item.id,
            source=item.source,
            action=_DECISION_ACTIONS[decision.kind],
            category=triage.category,
            urgency=triage.urgency.value,
            contractor_id=assignment.contractor_id if assignment else None,
            contractor_name=assignment.contractor_name if assignment else None,
            estimated_cost=estimate.estimated_cost,
            final_quote=estimate.final_quote,
            confidence=assignment.confidence if assignment else None,
            reason=decision.reason,
        )

        if decision.kind is DecisionKind.AUTO_ASSIGN and assignment is not None:
            item.estimated_cost = assignment.estimated_cost
            item.final_quote = assignment.final_quote
            self._assign(adapter, item, assignment.contractor_id, assignment.reasoning)
            self._workload.record_assignment(assignment.contractor_id)
            logger.info(f"Auto-assigned {item.id} to {assignment.contractor_name}")
            self._notify(item, assignment.contractor_id, assignment.estimated_cost, assignment.final_quote)
        elif decision.kind is DecisionKind.OWNER_APPROVAL_NEEDED and assignment is not None:
            item.estimated_cost = assignment.estimated_cost
            item.final_quote = assignment.final_quote
            self._call(adapter.update_status, item.id, WorkItemStatus.PENDING_APPROVAL)
            self._call(
                adapter.add_note,
                item.id,
                f"Owner approval needed: {decision.reason}. {assignment.reasoning}",
            )
            logger.info(f"Work item {item.id} held for owner approval")
        else:
            self._call(adapter.add_note, item.id, f"Needs review: {decision.reason}")
            logger.info(f"Work item {item.id} needs review: {decision.reason}")

        return outcome

    def _assign(
        self,
        adapter: SourceAdapter,
        item: WorkItem,
        contractor_id: str,
        reasoning: str,
    ) -> None:
        # Writes run to completion; the adapter's own client timeout bounds them.
        try:
            call_with_retry(
                adapter.assign, item.id, contractor_id, reasoning, config=self.retry, timeout=None
            )
        except Exception as e:
            if item.contractor_id == contractor_id and item.has_active_assignment:
                logger.warning(f"Assignment of {item.id} landed despite error: {e}")
                return
            raise

    def _merge(self, item: WorkItem, existing: WorkItem, adapter: SourceAdapter) -> ItemOutcome:
        existing_adapter = self._adapter_for(existing)
        merge_duplicate(
            existing,
            item,
            append=lambda note: self._call(existing_adapter.add_note, existing.id, note),
        )
        self._call(adapter.update_status, item.id, WorkItemStatus.CANCELLED)
        self._call(adapter.add_note, item.id, f"Merged into {existing.id} as a duplicate request")
        return ItemOutcome(
            work_item_id=item.id,
            source=item.source,
            action=OutcomeAction.MERGED,
            category=existing.category,
            reason=f"duplicate of open work item {existing.id}",
            merged_into=existing.id,
        )

    def _notify(
        self,
        item: WorkItem,
        contractor_id: str,
        estimated_cost: float,
        final_quote: float,
    ) -> None:
        if self.notifier is None or not self.settings.notify_on_assignment:
            return
        contractor = self._contractors_by_id[contractor_id]
        try:
            self.notifier.notify_assigned(
                item,
                contractor,
                estimated_cost,
                final_quote,
                self.properties.get(item.property_id),
            )
        except Exception as e:
            # Assignment stands even if the notification is lost
            logger.warning(f"Notification for {item.id} failed: {e}")


def approve_pending(
    item: WorkItem,
    adapter: SourceAdapter,
    contractor_id: str,
    reasoning: str,
    *,
    approved_by: str | None = None,
) -> WorkItem:
    """
    Commit an owner-approved assignment for an item held in pending_approval.

    Raises:
        InvalidTransitionError: If the item is not awaiting approval
        AssignmentConflictError: If another contractor is already assigned
    """
    if item.status is not WorkItemStatus.PENDING_APPROVAL:
        raise InvalidTransitionError(
            item.id, item.status.value, WorkItemStatus.CONTRACTOR_ASSIGNED.value
        )
    note = f"Approved by {approved_by}. {reasoning}" if approved_by else reasoning
    return adapter.assign(item.id, contractor_id, note)
