"""
Tests for assignment notifiers.
"""

import json
import logging

import httpx
import pytest

from maint.core.notify import LogNotifier, WebhookNotifier, assignment_message
from maint.core.workorders import Property


@pytest.fixture
def assigned_item(make_item):
    return make_item("wo-1", "Kitchen sink leaking", category="Plumbing")


class TestAssignmentMessage:
    def test_uses_property_name(self, assigned_item, plumber):
        prop = Property(id="P1", name="Oak Street Duplex", address="12 Oak St")

        message = assignment_message(assigned_item, plumber, 546, prop)

        assert message == "ABC Plumbing assigned to Plumbing job wo-1 at Oak Street Duplex (quote $546)"

    def test_falls_back_to_address(self, assigned_item, plumber):
        prop = Property(id="P1", address="12 Oak St")

        assert "at 12 Oak St" in assignment_message(assigned_item, plumber, 546, prop)

    def test_falls_back_to_property_id(self, assigned_item, plumber):
        assert "at P1" in assignment_message(assigned_item, plumber, 546)


class TestLogNotifier:
    def test_logs_message(self, assigned_item, plumber, caplog):
        with caplog.at_level(logging.INFO, logger="maint.core.notify"):
            LogNotifier().notify_assigned(assigned_item, plumber, 475, 546)

        assert "ABC Plumbing assigned to Plumbing job wo-1" in caplog.text


class TestWebhookNotifier:
    """Tests for WebhookNotifier."""

    def test_posts_payload(self, assigned_item, plumber):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(204)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        notifier = WebhookNotifier("https://hooks.example.com/maint", client=client)

        notifier.notify_assigned(assigned_item, plumber, 475, 546)

        payload = received[0]
        assert payload["event"] == "work_item.assigned"
        assert payload["work_item_id"] == "wo-1"
        assert payload["property_id"] == "P1"
        assert payload["category"] == "Plumbing"
        assert payload["contractor"] == {
            "id": "c-plumb",
            "name": "ABC Plumbing",
            "email": "contact@abcplumbing.example",
            "phone": None,
        }
        assert payload["estimated_cost"] == 475
        assert payload["final_quote"] == 546

    def test_retries_server_error_once(self, assigned_item, plumber, no_sleep):
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(statuses))

        client = httpx.Client(transport=httpx.MockTransport(handler))
        notifier = WebhookNotifier("https://hooks.example.com/maint", client=client)

        notifier.notify_assigned(assigned_item, plumber, 475, 546)

        no_sleep.assert_called_once()

    def test_client_error_raises(self, assigned_item, plumber, no_sleep):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(400)))
        notifier = WebhookNotifier("https://hooks.example.com/maint", client=client)

        with pytest.raises(httpx.HTTPStatusError):
            notifier.notify_assigned(assigned_item, plumber, 475, 546)

        no_sleep.assert_not_called()
