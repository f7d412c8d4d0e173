"""
Tests for maint.core.services.automation.
"""

from unittest.mock import MagicMock, patch

import pytest

from maint.core.config import MaintConfig
from maint.core.errors import RunInProgressError
from maint.core.notify import LogNotifier, WebhookNotifier
from maint.core.run import OutcomeAction, RunEventType, RunLock
from maint.core.services import (
    AutomationService,
    AutomationServiceError,
    NoRunError,
    run_automation,
)
from maint.core.sources import ExternalWorkOrderSource
from maint.core.triage import HttpClassifier
from maint.core.workorders import WorkItemStatus


class TestFromConfig:
    """Tests for AutomationService.from_config wiring."""

    def test_defaults(self, config):
        service = AutomationService.from_config(config)

        assert service.config is config
        assert service.external_source is None
        assert isinstance(service._notifier, LogNotifier)
        assert service._classifier is None

    def test_webhook_notifier(self):
        config = MaintConfig(notifier={"webhook_url": "https://hooks.example.com/maint"})

        service = AutomationService.from_config(config)

        assert isinstance(service._notifier, WebhookNotifier)
        assert service._notifier.url == "https://hooks.example.com/maint"

    def test_http_classifier(self):
        config = MaintConfig(
            classifier={"endpoint": "https://nlp.example.com/classify", "api_key": "k-123"}
        )

        service = AutomationService.from_config(config)

        assert isinstance(service._classifier, HttpClassifier)
        assert service._classifier.api_key == "k-123"

    def test_external_source_with_token(self):
        config = MaintConfig(
            external={"base_url": "https://api.example.com/v1/", "api_token": "tok"}
        )

        service = AutomationService.from_config(config)

        assert isinstance(service.external_source, ExternalWorkOrderSource)
        assert service.external_source.base_url == "https://api.example.com/v1"

    def test_external_source_built_through_registry(self):
        built = []

        class RecordingSource:
            def __init__(self, **kwargs):
                built.append(kwargs)

        config = MaintConfig(
            external={"base_url": "https://api.example.com/v1", "api_token": "tok"}
        )

        with patch.dict("maint.core.sources.backend._sources", {"external": RecordingSource}):
            service = AutomationService.from_config(config)

        assert isinstance(service.external_source, RecordingSource)
        assert built[0]["base_url"] == "https://api.example.com/v1"
        assert built[0]["api_token"] == "tok"

    def test_external_source_without_credentials(self):
        config = MaintConfig(
            external={"base_url": "https://api.example.com/v1", "email": "ops@example.com"}
        )

        with pytest.raises(AutomationServiceError, match="External source misconfigured"):
            AutomationService.from_config(config)

    def test_loads_config_when_none_given(self, isolated_config):
        service = AutomationService.from_config()

        assert service.config.automation.mode.value == "hybrid"


class TestClose:
    """Tests for releasing HTTP clients."""

    def test_close_releases_clients(self):
        config = MaintConfig(
            classifier={"endpoint": "https://nlp.example.com/classify"},
            notifier={"webhook_url": "https://hooks.example.com/maint"},
            external={"base_url": "https://api.example.com/v1", "api_token": "tok"},
        )
        service = AutomationService.from_config(config)
        clients = [
            service._classifier._client,
            service._notifier._client,
            service.external_source._client,
        ]

        service.close()

        assert all(client.is_closed for client in clients)

    def test_context_manager_closes(self, config):
        notifier = MagicMock()

        with AutomationService(config=config, notifier=notifier) as service:
            assert service.config is config

        notifier.close.assert_called_once_with()

    def test_collaborators_without_close_are_skipped(self, config):
        classifier = MagicMock()
        service = AutomationService(config=config, classifier=classifier, notifier=LogNotifier())

        service.close()

        classifier.close.assert_called_once_with()


class TestRun:
    def test_report_before_run(self, config):
        service = AutomationService.from_config(config)

        with pytest.raises(NoRunError, match="No automation run has been executed yet"):
            service.get_report()

    def test_run_updates_items_in_place(self, config, contractors, make_item):
        items = [make_item("wo-1", "Kitchen sink leaking")]
        service = AutomationService(config=config)

        report = service.run(contractors, items)

        assert report.auto_assigned == 1
        assert report.outcomes[0].action is OutcomeAction.AUTO_ASSIGNED
        assert items[0].status is WorkItemStatus.CONTRACTOR_ASSIGNED
        assert items[0].contractor_id == "c-plumb"
        assert service.get_report() is report

    def test_execute_yields_events(self, config, contractors, make_item):
        service = AutomationService(config=config)

        events = list(service.execute(contractors, [make_item("wo-1", "Kitchen sink leaking")]))

        assert events[0].event_type is RunEventType.RUN_STARTED
        assert events[-1].event_type is RunEventType.RUN_COMPLETED

    def test_run_rejected_while_lock_held(self, config, contractors, make_item):
        service = AutomationService(config=config)
        items = [make_item("wo-1", "Kitchen sink leaking")]

        with RunLock():
            with pytest.raises(RunInProgressError):
                service.run(contractors, items)

        assert items[0].status is WorkItemStatus.REPORTED

    def test_lock_file_from_settings(self, tmp_path, contractors, make_item):
        lock_file = tmp_path / "maint.lock"
        lock_file.write_text("999")
        config = MaintConfig(automation={"mode": "native_only", "lock_file": str(lock_file)})

        with pytest.raises(RunInProgressError):
            AutomationService(config=config).run(contractors, [make_item("wo-1", "Sink leaking")])


class TestRunAutomation:
    def test_hybrid_with_external(self, contractors, make_item, fake_external):
        items = [make_item("wo-1", "Paint peeling on bedroom door")]

        report = run_automation(
            MaintConfig(automation={"mode": "hybrid"}),
            contractors,
            items,
            external_source=fake_external,
        )

        assert [o.work_item_id for o in report.outcomes] == ["wo-1", "pm-001", "pm-002"]
        assert report.notes == []
        assert fake_external.meld("pm-002")["status"] == "Assigned"

    def test_hybrid_without_external_adds_note(self, contractors, make_item):
        report = run_automation(
            MaintConfig(automation={"mode": "hybrid"}),
            contractors,
            [make_item("wo-1", "Kitchen sink leaking")],
        )

        assert report.auto_assigned == 1
        assert report.notes == ["external source is not configured"]
