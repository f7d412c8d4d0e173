"""
External work-order system adapter.

Talks to the third-party maintenance platform ("melds") over HTTP. Meld
records are translated into WorkItems at the boundary, and status changes
are translated back into the platform's vocabulary:

    Unassigned        <-> reported
    Assigned          <-> contractor_assigned
    In Progress       <-> in_progress
    Completed         <-> completed
    Cancelled         <-> cancelled
    Pending Approval  <-> pending_approval

``classified`` has no remote counterpart. It is tracked on the local copy
of the item only; the meld stays Unassigned until it is assigned.

API:
    POST  /auth/login                  {"email", "password"} -> {"token"}
    GET   /melds?status=Unassigned     -> {"melds": [...]} or [...]
    POST  /melds/{id}/assign           {"vendor_id", "note"} -> meld
    PATCH /melds/{id}                  {"status"} -> meld
    POST  /melds/{id}/work-logs        {"note", "type"}

Calls are made once; retries and timeouts around them belong to the
caller (see maint.core.retry.call_with_retry).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from maint.core.errors import (
    AdapterUnavailableError,
    AssignmentConflictError,
    InvalidTransitionError,
    SourceError,
)
from maint.core.workorders import (
    LogEntry,
    LogEntryType,
    WorkItem,
    WorkItemStatus,
    WorkSource,
    can_transition,
)
from maint.core.workorders.models import utc_now

from .backend import RejectedRecord, register_source

logger = logging.getLogger(__name__)

SOURCE_NAME = "external"

STATUS_FROM_REMOTE: dict[str, WorkItemStatus] = {
    "Unassigned": WorkItemStatus.REPORTED,
    "Assigned": WorkItemStatus.CONTRACTOR_ASSIGNED,
    "In Progress": WorkItemStatus.IN_PROGRESS,
    "Completed": WorkItemStatus.COMPLETED,
    "Cancelled": WorkItemStatus.CANCELLED,
    "Pending Approval": WorkItemStatus.PENDING_APPROVAL,
}

STATUS_TO_REMOTE: dict[WorkItemStatus, str] = {
    status: remote for remote, status in STATUS_FROM_REMOTE.items()
}

# Statuses kept on the local copy only
LOCAL_ONLY_STATUSES = frozenset({WorkItemStatus.CLASSIFIED})

PENDING_STATUSES = frozenset({WorkItemStatus.REPORTED, WorkItemStatus.CLASSIFIED})


class MeldVendor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""


class Meld(BaseModel):
    """A maintenance request record as the external platform returns it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    property_id: str = Field(..., alias="propertyId")
    description: str = ""
    category: Optional[str] = None
    priority: str = "Medium"
    status: str = "Unassigned"
    tenant_name: str = Field(default="", alias="tenantName")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    assigned_vendor: Optional[MeldVendor] = Field(default=None, alias="assignedVendor")


def meld_to_work_item(meld: Meld) -> WorkItem:
    """
    Translate a meld into a WorkItem.

    Unknown remote statuses are treated as Unassigned (reported).
    """
    status = STATUS_FROM_REMOTE.get(meld.status)
    if status is None:
        logger.warning(f"Unknown status '{meld.status}' on meld {meld.id}, treating as Unassigned")
        status = WorkItemStatus.REPORTED

    created_at = meld.created_at or utc_now()
    tenant = meld.tenant_name or "unknown"
    return WorkItem(
        id=meld.id,
        source=WorkSource.EXTERNAL,
        property_id=meld.property_id,
        description=meld.description,
        category=meld.category or None,
        status=status,
        contractor_id=meld.assigned_vendor.id if meld.assigned_vendor else None,
        tenant_id=f"meld-tenant-{meld.id}",
        created_at=created_at,
        updated_at=meld.updated_at or created_at,
        log=[
            LogEntry(
                timestamp=created_at,
                message=(
                    f"Imported from external work-order system. "
                    f"Tenant: {tenant}. Priority: {meld.priority}"
                ),
                entry_type=LogEntryType.STATUS_CHANGE,
            )
        ],
    )


def meld_record_id(payload: Any) -> str:
    """Best-effort id of a raw meld record, for error reporting."""
    if isinstance(payload, dict) and payload.get("id") is not None:
        return str(payload["id"])
    return "<unknown>"


def parse_meld(payload: Any) -> Meld:
    """
    Validate a single meld payload.

    Raises:
        SourceError: If the payload is not a valid meld
    """
    try:
        return Meld.model_validate(payload)
    except ValidationError as e:
        raise SourceError(SOURCE_NAME, f"Invalid meld record: {e}") from e


@register_source("external")
class ExternalWorkOrderSource:
    """
    HTTP adapter for the external work-order platform.

    Authenticates with an API token when one is configured, otherwise logs
    in with email and password on first use. Items returned by
    ``fetch_pending`` are cached and updated in place by later calls.
    """

    def __init__(
        self,
        base_url: str,
        *,
        email: str | None = None,
        password: str | None = None,
        api_token: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_token and not (email and password):
            raise SourceError(
                SOURCE_NAME, "External source needs an API token or email and password"
            )
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.timeout = timeout
        self._token = api_token
        self._client = client or httpx.Client(timeout=timeout)
        self._items: dict[str, WorkItem] = {}
        self._rejected: list[RejectedRecord] = []

    @property
    def source(self) -> WorkSource:
        return WorkSource.EXTERNAL

    @property
    def rejected(self) -> list[RejectedRecord]:
        return list(self._rejected)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        if authenticated:
            headers["Authorization"] = f"Bearer {self._ensure_token()}"

        try:
            response = self._client.request(
                method, url, json=json, params=params, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise AdapterUnavailableError(
                SOURCE_NAME, f"Request timed out: {method} {path}", url=url, timeout=self.timeout
            ) from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code >= 500:
                raise AdapterUnavailableError(
                    SOURCE_NAME,
                    f"HTTP {status_code} from external work-order system",
                    url=url,
                    status_code=status_code,
                ) from e
            raise SourceError(
                SOURCE_NAME,
                f"HTTP {status_code} from external work-order system",
                url=url,
                status_code=status_code,
            ) from e
        except httpx.RequestError as e:
            raise AdapterUnavailableError(
                SOURCE_NAME, f"Network error talking to external work-order system: {e}", url=url
            ) from e
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise SourceError(
                SOURCE_NAME, "Failed to parse JSON response", url=str(response.request.url)
            ) from e

    def _ensure_token(self) -> str:
        if self._token:
            return self._token
        logger.debug(f"Logging in to {self.base_url} as {self.email}")
        response = self._send(
            "POST",
            "/auth/login",
            json={"email": self.email, "password": self.password},
            authenticated=False,
        )
        data = self._json(response)
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise SourceError(SOURCE_NAME, "Login response did not include a token")
        self._token = str(token)
        return self._token

    def _remember(self, payload: Any) -> WorkItem:
        item = meld_to_work_item(parse_meld(payload))
        cached = self._items.get(item.id)
        if cached is None:
            self._items[item.id] = item
            return item
        # The remote record is authoritative except for local-only progress
        if item.status is not WorkItemStatus.REPORTED:
            cached.status = item.status
        if item.contractor_id:
            cached.contractor_id = item.contractor_id
        return cached

    def _cached(self, work_item_id: str) -> WorkItem:
        item = self._items.get(work_item_id)
        if item is None:
            raise SourceError(
                SOURCE_NAME,
                f"Work item not fetched in this session: {work_item_id}",
                work_item_id=work_item_id,
            )
        return item

    # ------------------------------------------------------------------
    # SourceAdapter
    # ------------------------------------------------------------------

    def fetch_pending(self) -> list[WorkItem]:
        response = self._send("GET", "/melds", params={"status": "Unassigned"})
        data = self._json(response)
        records = data.get("melds", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise SourceError(SOURCE_NAME, "Unexpected meld listing shape")
        items: list[WorkItem] = []
        rejected: list[RejectedRecord] = []
        for record in records:
            try:
                items.append(self._remember(record))
            except SourceError as e:
                rejected.append(RejectedRecord(record_id=meld_record_id(record), error=str(e)))
                logger.warning(f"Skipping meld {meld_record_id(record)}: {e}")
        self._rejected = rejected
        logger.info(f"Fetched {len(items)} unassigned melds ({len(rejected)} rejected)")
        return [
            item
            for item in items
            if item.status in PENDING_STATUSES and item.contractor_id is None
        ]

    def assign(self, work_item_id: str, contractor_id: str, reasoning: str) -> WorkItem:
        item = self._cached(work_item_id)
        if item.contractor_id == contractor_id and item.has_active_assignment:
            return item
        if item.has_active_assignment:
            raise AssignmentConflictError(work_item_id, str(item.contractor_id), contractor_id)
        if not can_transition(item.status, WorkItemStatus.CONTRACTOR_ASSIGNED):
            raise InvalidTransitionError(
                work_item_id, item.status.value, WorkItemStatus.CONTRACTOR_ASSIGNED.value
            )

        self._send(
            "POST",
            f"/melds/{work_item_id}/assign",
            json={"vendor_id": contractor_id, "note": reasoning},
        )
        item.assign(contractor_id, reasoning=reasoning)
        return item

    def update_status(self, work_item_id: str, status: WorkItemStatus) -> WorkItem:
        item = self._cached(work_item_id)
        if status in LOCAL_ONLY_STATUSES or status == item.status:
            item.transition_to(status)
            return item

        remote = STATUS_TO_REMOTE[status]
        if not can_transition(item.status, status):
            raise InvalidTransitionError(work_item_id, item.status.value, status.value)
        self._send("PATCH", f"/melds/{work_item_id}", json={"status": remote})
        item.transition_to(status)
        return item

    def add_note(self, work_item_id: str, note: str) -> WorkItem:
        item = self._cached(work_item_id)
        self._send(
            "POST",
            f"/melds/{work_item_id}/work-logs",
            json={"note": note, "type": "note"},
        )
        item.add_log(note)
        return item
