"""
Assignment notifications.

Notifiers are best-effort: the run controller logs a failing notifier and
keeps the assignment.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from maint.core.retry import with_retry
from maint.core.workorders import Contractor, Property, WorkItem

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify_assigned(
        self,
        work_item: WorkItem,
        contractor: Contractor,
        estimated_cost: float,
        final_quote: float,
        property: Property | None = None,
    ) -> None: ...


def assignment_message(
    work_item: WorkItem,
    contractor: Contractor,
    final_quote: float,
    property: Property | None = None,
) -> str:
    where = property.name or property.address if property else work_item.property_id
    category = work_item.category or "maintenance"
    return f"{contractor.name} assigned to {category} job {work_item.id} at {where} (quote ${final_quote:g})"


class LogNotifier:
    """Writes assignment notifications to the log."""

    def notify_assigned(
        self,
        work_item: WorkItem,
        contractor: Contractor,
        estimated_cost: float,
        final_quote: float,
        property: Property | None = None,
    ) -> None:
        logger.info(assignment_message(work_item, contractor, final_quote, property))


class WebhookNotifier:
    """
    Posts assignment notifications to a webhook as JSON.

    Payload:
        {
          "event": "work_item.assigned",
          "work_item_id": "...",
          "property_id": "...",
          "category": "...",
          "contractor": {"id", "name", "email", "phone"},
          "estimated_cost": 475,
          "final_quote": 546,
          "message": "..."
        }
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def build_payload(
        self,
        work_item: WorkItem,
        contractor: Contractor,
        estimated_cost: float,
        final_quote: float,
        property: Property | None = None,
    ) -> dict[str, Any]:
        return {
            "event": "work_item.assigned",
            "work_item_id": work_item.id,
            "property_id": work_item.property_id,
            "category": work_item.category,
            "contractor": {
                "id": contractor.id,
                "name": contractor.name,
                "email": contractor.email,
                "phone": contractor.phone,
            },
            "estimated_cost": estimated_cost,
            "final_quote": final_quote,
            "message": assignment_message(work_item, contractor, final_quote, property),
        }

    @with_retry(max_retries=1, base_delay=0.5)
    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        response = self._client.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response

    def notify_assigned(
        self,
        work_item: WorkItem,
        contractor: Contractor,
        estimated_cost: float,
        final_quote: float,
        property: Property | None = None,
    ) -> None:
        payload = self.build_payload(work_item, contractor, estimated_cost, final_quote, property)
        self._post(payload)
        logger.debug(f"Posted assignment notification for {work_item.id} to {self.url}")

    def close(self) -> None:
        self._client.close()
