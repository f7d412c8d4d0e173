"""
Pytest configuration and shared fixtures.

Provides sample contractors, work items and meld records, isolated config
environments, and a fake external source used across the test suite.
"""

import os
from unittest.mock import patch

import pytest

from maint.core.config import AutomationSettings, MaintConfig
from maint.core.rules import default_rule_book
from maint.core.sources import FakeExternalSource
from maint.core.workorders import Contractor, ContractorStatus, WorkItem, WorkItemStatus

# ==============================================================================
# Sample Data Fixtures
# ==============================================================================


@pytest.fixture
def rules():
    """The built-in vendor rule book."""
    return default_rule_book()


@pytest.fixture
def settings():
    """Automation settings with the default thresholds, native queue only."""
    return AutomationSettings(mode="native_only")


@pytest.fixture
def plumber():
    return Contractor(
        id="c-plumb",
        name="ABC Plumbing",
        specialties=["Plumbing"],
        rating=4.5,
        email="contact@abcplumbing.example",
    )


@pytest.fixture
def hvac_tech():
    return Contractor(
        id="c-hvac",
        name="CoolAir HVAC",
        specialties=["HVAC"],
        rating=4.5,
        email="service@coolair.example",
    )


@pytest.fixture
def handyman():
    return Contractor(
        id="c-handy",
        name="Quick Fix Handyman",
        specialties=["General Maintenance", "Electrical", "Plumbing"],
        rating=4.2,
    )


@pytest.fixture
def busy_electrician():
    return Contractor(
        id="c-elec",
        name="Sparks Electric",
        specialties=["Electrical"],
        rating=4.9,
        status=ContractorStatus.BUSY,
    )


@pytest.fixture
def contractors(plumber, hvac_tech, handyman):
    return [plumber, hvac_tech, handyman]


@pytest.fixture
def make_item():
    """Factory for native work items."""

    def _make(
        item_id: str,
        description: str,
        property_id: str = "P1",
        status: WorkItemStatus = WorkItemStatus.REPORTED,
        **kwargs,
    ) -> WorkItem:
        return WorkItem(
            id=item_id,
            property_id=property_id,
            description=description,
            status=status,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_melds():
    """Meld records in the external platform's shape."""
    return [
        {
            "id": "pm-001",
            "propertyId": "P9",
            "propertyName": "Oak Street Duplex",
            "tenantName": "Jordan Lee",
            "description": "Kitchen sink is leaking underneath. Water pooling on floor.",
            "category": "Plumbing",
            "priority": "High",
            "status": "Unassigned",
            "createdAt": "2025-01-15T10:30:00Z",
            "updatedAt": "2025-01-15T10:30:00Z",
        },
        {
            "id": "pm-002",
            "propertyId": "P10",
            "tenantName": "Sam Rivera",
            "description": "AC not working. No cold air coming out.",
            "priority": "High",
            "status": "Unassigned",
            "createdAt": "2025-01-15T11:00:00Z",
            "updatedAt": "2025-01-15T11:00:00Z",
        },
        {
            "id": "pm-003",
            "propertyId": "P11",
            "description": "Front door lock replaced last week",
            "status": "Completed",
            "assignedVendor": {"id": "c-lock", "name": "Lock Pros"},
        },
    ]


@pytest.fixture
def fake_external(sample_melds):
    return FakeExternalSource(sample_melds)


@pytest.fixture
def config():
    """Configuration with default rules and thresholds."""
    return MaintConfig(automation={"mode": "native_only"})


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """
    Provide a clean environment without MAINT_* env vars.

    Removes all MAINT_* environment variables to ensure tests
    don't inherit configuration from the system.
    """
    for key in list(os.environ.keys()):
        if key.startswith("MAINT_"):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setenv("XDG_CONFIG_HOME", "/tmp/test-maint-config")

    return monkeypatch


@pytest.fixture
def isolated_config(clean_env, tmp_path, monkeypatch):
    """
    Provide completely isolated config environment.

    Points XDG_CONFIG_HOME and the working directory at temporary locations
    so tests never load a real user or project config.
    """
    config_home = tmp_path / "config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)

    from maint.core.config import clear_cache

    clear_cache()
    yield config_home
    clear_cache()


@pytest.fixture
def no_sleep():
    """Skip retry backoff delays."""
    with patch("maint.core.retry.time.sleep") as mock_sleep:
        yield mock_sleep
