"""
Work order data models.

Defines the normalized WorkItem every source adapter translates into, the
status state machine that governs it, and the contractor/property records
the engine reads while assigning work.

Status state machine (terminal states marked *):

    reported -> classified -> contractor_assigned -> in_progress -> {completed*, cancelled*}
                    └-> pending_approval -> contractor_assigned

Any non-terminal state may also move to cancelled.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from maint.core.errors import AssignmentConflictError, InvalidTransitionError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkSource(str, Enum):
    """Where a work item came from."""

    NATIVE = "native"
    EXTERNAL = "external"


class WorkItemStatus(str, Enum):
    """Work item lifecycle status."""

    REPORTED = "reported"
    CLASSIFIED = "classified"
    PENDING_APPROVAL = "pending_approval"
    CONTRACTOR_ASSIGNED = "contractor_assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({WorkItemStatus.COMPLETED, WorkItemStatus.CANCELLED})

# Statuses that count toward a contractor's live workload
ACTIVE_STATUSES = frozenset(
    {
        WorkItemStatus.REPORTED,
        WorkItemStatus.CLASSIFIED,
        WorkItemStatus.CONTRACTOR_ASSIGNED,
        WorkItemStatus.IN_PROGRESS,
    }
)

# Statuses in which a second report of the same issue is merged, not opened
OPEN_DUPLICATE_STATUSES = frozenset({WorkItemStatus.REPORTED, WorkItemStatus.IN_PROGRESS})

# Statuses in which an item holds a contractor assignment
ASSIGNED_STATUSES = frozenset({WorkItemStatus.CONTRACTOR_ASSIGNED, WorkItemStatus.IN_PROGRESS})

ALLOWED_TRANSITIONS: dict[WorkItemStatus, frozenset[WorkItemStatus]] = {
    WorkItemStatus.REPORTED: frozenset({WorkItemStatus.CLASSIFIED, WorkItemStatus.CANCELLED}),
    WorkItemStatus.CLASSIFIED: frozenset(
        {
            WorkItemStatus.CONTRACTOR_ASSIGNED,
            WorkItemStatus.PENDING_APPROVAL,
            WorkItemStatus.CANCELLED,
        }
    ),
    WorkItemStatus.PENDING_APPROVAL: frozenset(
        {WorkItemStatus.CONTRACTOR_ASSIGNED, WorkItemStatus.CANCELLED}
    ),
    WorkItemStatus.CONTRACTOR_ASSIGNED: frozenset(
        {WorkItemStatus.IN_PROGRESS, WorkItemStatus.CANCELLED}
    ),
    WorkItemStatus.IN_PROGRESS: frozenset({WorkItemStatus.COMPLETED, WorkItemStatus.CANCELLED}),
    WorkItemStatus.COMPLETED: frozenset(),
    WorkItemStatus.CANCELLED: frozenset(),
}


def can_transition(current: WorkItemStatus, target: WorkItemStatus) -> bool:
    """Check whether ``current -> target`` is allowed (same-state is a no-op)."""
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


class LogSender(str, Enum):
    """Role of whoever wrote a communication log entry."""

    SYSTEM = "system"
    AI_AGENT = "ai_agent"
    TENANT = "tenant"
    CONTRACTOR = "contractor"
    MANAGER = "manager"


class LogEntryType(str, Enum):
    """Kind of communication log entry."""

    STATUS_CHANGE = "status_change"
    CHAT = "chat"
    NOTIFICATION = "notification"
    NOTE = "note"


class LogEntry(BaseModel):
    """One entry of a work item's append-only communication log."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)
    sender: LogSender = LogSender.SYSTEM
    message: str
    entry_type: LogEntryType = LogEntryType.NOTE


class ContractorStatus(str, Enum):
    """Contractor availability."""

    AVAILABLE = "available"
    BUSY = "busy"
    OFFBOARDED = "offboarded"


class Contractor(BaseModel):
    """
    A contractor that can be assigned work.

    Active-job count is not stored here; it is derived from the work item
    pool once per run (see ``WorkloadSnapshot``).
    """

    id: str = Field(..., description="Contractor identifier")
    name: str = Field(..., description="Display name")
    specialties: list[str] = Field(default_factory=list, description="Specialty tags")
    rating: float = Field(default=0.0, ge=0.0, le=5.0, description="Rating 0.0-5.0")
    status: ContractorStatus = Field(default=ContractorStatus.AVAILABLE)
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: object) -> object:
        """Accept upper-case status strings from older exports."""
        if isinstance(v, str):
            return v.lower()
        return v


class Property(BaseModel):
    """A managed property; only consumed by notifiers."""

    id: str
    name: str = ""
    address: str = ""


class WorkItem(BaseModel):
    """
    Normalized maintenance request, regardless of originating source.

    The communication log is append-only. A work item carries at most one
    active contractor assignment at a time.

    Example:
        >>> item = WorkItem(id="wo-1", property_id="P1", description="Sink leaking")
        >>> item.transition_to(WorkItemStatus.CLASSIFIED)
        >>> item.assign("c-1", reasoning="Best plumbing match")
        >>> item.status
        <WorkItemStatus.CONTRACTOR_ASSIGNED: 'contractor_assigned'>
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Work item identifier")
    source: WorkSource = Field(default=WorkSource.NATIVE)
    property_id: str = Field(..., description="Property the request belongs to")
    description: str = Field(default="", description="Free-text description")
    category: Optional[str] = Field(default=None, description="Category once classified")
    status: WorkItemStatus = Field(default=WorkItemStatus.REPORTED)
    contractor_id: Optional[str] = Field(default=None)
    estimated_cost: Optional[float] = Field(default=None, ge=0.0)
    final_quote: Optional[float] = Field(default=None, ge=0.0)
    tenant_id: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    log: list[LogEntry] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_active_assignment(self) -> bool:
        return self.contractor_id is not None and self.status in ASSIGNED_STATUSES

    def add_log(
        self,
        message: str,
        sender: LogSender = LogSender.SYSTEM,
        entry_type: LogEntryType = LogEntryType.NOTE,
    ) -> LogEntry:
        """Append an entry to the communication log."""
        entry = LogEntry(sender=sender, message=message, entry_type=entry_type)
        self.log.append(entry)
        self.updated_at = entry.timestamp
        return entry

    def transition_to(self, status: WorkItemStatus) -> None:
        """
        Move the item to ``status``.

        Raises:
            InvalidTransitionError: If the state machine does not allow it
        """
        if self.status == status:
            return
        if not can_transition(self.status, status):
            raise InvalidTransitionError(self.id, self.status.value, status.value)
        previous = self.status
        self.status = status
        self.add_log(
            f"Status changed: {previous.value} -> {status.value}",
            entry_type=LogEntryType.STATUS_CHANGE,
        )

    def assign(
        self,
        contractor_id: str,
        *,
        estimated_cost: float | None = None,
        final_quote: float | None = None,
        reasoning: str | None = None,
    ) -> bool:
        """
        Assign a contractor and move the item to contractor_assigned.

        Re-assigning the contractor the item already carries is a no-op.

        Returns:
            True if the assignment changed, False if it was already in place

        Raises:
            AssignmentConflictError: If another contractor is actively assigned
            InvalidTransitionError: If the item cannot move to contractor_assigned
        """
        if self.contractor_id == contractor_id and self.status in ASSIGNED_STATUSES:
            return False
        if self.has_active_assignment:
            raise AssignmentConflictError(self.id, str(self.contractor_id), contractor_id)

        self.transition_to(WorkItemStatus.CONTRACTOR_ASSIGNED)
        self.contractor_id = contractor_id
        if estimated_cost is not None:
            self.estimated_cost = estimated_cost
        if final_quote is not None:
            self.final_quote = final_quote
        if reasoning:
            self.add_log(reasoning, sender=LogSender.AI_AGENT, entry_type=LogEntryType.STATUS_CHANGE)
        return True
