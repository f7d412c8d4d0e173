"""
Tests for the maint CLI.
"""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from maint import __version__
from maint.cli import app
from maint.core.run import RunLock
from maint.core.services import AutomationService

runner = CliRunner()


CONTRACTORS = [
    {
        "id": "c-plumb",
        "name": "ABC Plumbing",
        "specialties": ["Plumbing"],
        "rating": 4.5,
        "status": "available",
    },
    {
        "id": "c-hvac",
        "name": "CoolAir HVAC",
        "specialties": ["HVAC"],
        "rating": 4.5,
        "status": "available",
    },
]

WORK_ITEMS = [
    {"id": "wo-1", "property_id": "P1", "description": "Kitchen sink leaking"},
    {"id": "wo-2", "property_id": "P2", "description": "Outlet not working in bedroom"},
]


@pytest.fixture
def input_files(isolated_config, tmp_path):
    contractors = tmp_path / "contractors.json"
    contractors.write_text(json.dumps(CONTRACTORS))
    work_items = tmp_path / "work_items.json"
    work_items.write_text(json.dumps(WORK_ITEMS))
    return contractors, work_items


class TestVersion:
    def test_version(self, isolated_config):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert f"maint version {__version__}" in result.stdout


class TestTriageCommands:
    """Tests for triage, quote and rules."""

    def test_triage_keywords(self, isolated_config):
        result = runner.invoke(app, ["triage", "Kitchen sink leaking"])

        assert result.exit_code == 0
        assert "Plumbing" in result.stdout
        assert "medium" in result.stdout

    def test_triage_emergency(self, isolated_config):
        result = runner.invoke(app, ["triage", "Basement flooding, water everywhere"])

        assert result.exit_code == 0
        assert "emergency" in result.stdout

    def test_triage_unknown_category(self, isolated_config):
        result = runner.invoke(app, ["triage", "Roof leaking", "--category", "Roofing"])

        assert result.exit_code == 2
        assert "Unknown category 'Roofing'" in result.stdout

    def test_quote(self, isolated_config):
        result = runner.invoke(app, ["quote", "Plumbing"])

        assert result.exit_code == 0
        assert "$546" in result.stdout

    def test_quote_emergency(self, isolated_config):
        result = runner.invoke(app, ["quote", "hvac", "--urgency", "EMERGENCY"])

        assert result.exit_code == 0
        assert "$2156" in result.stdout

    def test_quote_unknown_category(self, isolated_config):
        result = runner.invoke(app, ["quote", "Roofing"])

        assert result.exit_code == 2

    def test_quote_bad_urgency(self, isolated_config):
        result = runner.invoke(app, ["quote", "Plumbing", "--urgency", "whenever"])

        assert result.exit_code == 2
        assert "Unknown urgency" in result.stdout

    def test_rules(self, isolated_config):
        result = runner.invoke(app, ["rules"])

        assert result.exit_code == 0
        assert "Vendor Rules" in result.stdout
        assert "Locksmith" in result.stdout

    def test_rules_from_project_config(self, isolated_config):
        project_config = {
            "vendor_rules": [
                {
                    "category": "Roofing",
                    "keywords": ["roof", "shingle"],
                    "cost_min": 300,
                    "cost_max": 3000,
                    "markup_percent": 10,
                },
                {
                    "category": "General Maintenance",
                    "keywords": ["paint"],
                    "cost_min": 75,
                    "cost_max": 400,
                    "markup_percent": 18,
                },
            ]
        }
        with open(".maint.json", "w") as f:
            json.dump(project_config, f)

        result = runner.invoke(app, ["triage", "Roof leaking over the porch"])

        assert result.exit_code == 0
        assert "Roofing" in result.stdout


class TestRunCommand:
    """Tests for `maint run`."""

    def test_run_json_report(self, input_files):
        contractors, work_items = input_files

        result = runner.invoke(
            app,
            ["run", "-c", str(contractors), "-w", str(work_items), "--mode", "native_only", "--json"],
        )

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["mode"] == "native_only"
        assert report["processed"] == 2
        assert report["auto_assigned"] == 1
        assert report["manual_review_needed"] == 1
        assert report["notes"] == []

    def test_run_summary(self, input_files):
        contractors, work_items = input_files

        result = runner.invoke(
            app, ["run", "-c", str(contractors), "-w", str(work_items), "-m", "native_only"]
        )

        assert result.exit_code == 0
        assert "Run Summary" in result.stdout
        assert "auto_assigned" in result.stdout

    def test_run_closes_service(self, input_files):
        contractors, work_items = input_files

        with patch.object(AutomationService, "close") as close:
            result = runner.invoke(
                app, ["run", "-c", str(contractors), "-w", str(work_items), "-m", "native_only"]
            )

        assert result.exit_code == 0
        close.assert_called_once_with()

    def test_run_write_updates_file(self, input_files):
        contractors, work_items = input_files

        result = runner.invoke(
            app,
            ["run", "-c", str(contractors), "-w", str(work_items), "-m", "native_only", "--write"],
        )

        assert result.exit_code == 0
        saved = {item["id"]: item for item in json.loads(work_items.read_text())}
        assert saved["wo-1"]["status"] == "contractor_assigned"
        assert saved["wo-1"]["contractor_id"] == "c-plumb"
        assert saved["wo-1"]["final_quote"] == 546
        assert saved["wo-2"]["status"] == "classified"

    def test_run_default_mode_notes_missing_external(self, input_files):
        contractors, work_items = input_files

        result = runner.invoke(
            app, ["run", "-c", str(contractors), "-w", str(work_items), "--json"]
        )

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["mode"] == "hybrid"
        assert report["notes"] == ["external source is not configured"]

    def test_run_invalid_mode(self, input_files):
        contractors, work_items = input_files

        result = runner.invoke(
            app, ["run", "-c", str(contractors), "-w", str(work_items), "--mode", "everything"]
        )

        assert result.exit_code == 2
        assert "Invalid option: everything" in result.stdout

    def test_run_missing_file(self, input_files, tmp_path):
        contractors, _ = input_files

        result = runner.invoke(
            app, ["run", "-c", str(contractors), "-w", str(tmp_path / "missing.json")]
        )

        assert result.exit_code == 2
        assert "Cannot load" in result.stdout

    def test_run_invalid_records(self, input_files, tmp_path):
        _, work_items = input_files
        bad = tmp_path / "bad_contractors.json"
        bad.write_text(json.dumps([{"id": "c-1", "rating": 9}]))

        result = runner.invoke(app, ["run", "-c", str(bad), "-w", str(work_items)])

        assert result.exit_code == 2
        assert "validation error" in result.stdout

    def test_run_in_progress(self, input_files):
        contractors, work_items = input_files

        with RunLock():
            result = runner.invoke(
                app, ["run", "-c", str(contractors), "-w", str(work_items), "-m", "native_only"]
            )

        assert result.exit_code == 3
        assert "Another automation run is in progress" in result.stdout

    def test_run_item_errors_exit_nonzero(self, input_files, tmp_path):
        contractors, _ = input_files
        work_items = tmp_path / "bad_category.json"
        work_items.write_text(
            json.dumps(
                [
                    {
                        "id": "wo-9",
                        "property_id": "P1",
                        "description": "Roof leaking",
                        "category": "Roofing",
                    }
                ]
            )
        )

        result = runner.invoke(
            app, ["run", "-c", str(contractors), "-w", str(work_items), "-m", "native_only", "--json"]
        )

        assert result.exit_code == 1
        assert json.loads(result.stdout)["errors"] == 1


class TestQueueCommand:
    def test_queue_json(self, input_files):
        _, work_items = input_files

        result = runner.invoke(app, ["queue", "-w", str(work_items), "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "native_pending": 2,
            "external_pending": 0,
            "total": 2,
            "external_error": None,
        }

    def test_queue_table(self, input_files):
        _, work_items = input_files

        result = runner.invoke(app, ["queue", "-w", str(work_items)])

        assert result.exit_code == 0
        assert "Pending Work Items" in result.stdout
        assert "not configured" in result.stdout

    def test_queue_closes_service(self, input_files):
        _, work_items = input_files

        with patch.object(AutomationService, "close") as close:
            result = runner.invoke(app, ["queue", "-w", str(work_items), "--json"])

        assert result.exit_code == 0
        close.assert_called_once_with()
