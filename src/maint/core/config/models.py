"""
Configuration data models for maint.

These models define the structure of .maint.json and
~/.config/maint/config.json files, with validation and type safety via
Pydantic.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from maint.core.rules import DEFAULT_VENDOR_RULES, RuleBook, VendorRule


class AutomationMode(str, Enum):
    """Which work-order sources a run pulls from."""

    NATIVE_ONLY = "native_only"
    EXTERNAL_ONLY = "external_only"
    HYBRID = "hybrid"

    @property
    def includes_native(self) -> bool:
        return self in (AutomationMode.NATIVE_ONLY, AutomationMode.HYBRID)

    @property
    def includes_external(self) -> bool:
        return self in (AutomationMode.EXTERNAL_ONLY, AutomationMode.HYBRID)


class AutomationSettings(BaseModel):
    """
    Assignment policy knobs.

    Controls when the engine may commit an assignment on its own.
    """
    mode: AutomationMode = Field(
        default=AutomationMode.HYBRID,
        description="Sources to process: native_only, external_only or hybrid"
    )
    auto_assign_threshold: int = Field(
        default=70,
        ge=50,
        le=100,
        description="Minimum confidence (%) required to auto-assign"
    )
    owner_approval_threshold: float = Field(
        default=1000.0,
        ge=0.0,
        description="Quotes above this amount need owner approval"
    )
    emergency_auto_assign: bool = Field(
        default=True,
        description="Emergencies skip the confidence gate (never the cost gate)"
    )
    notify_on_assignment: bool = Field(
        default=True,
        description="Notify contractor/tenant when a job is auto-assigned"
    )
    lock_file: Optional[str] = Field(
        default=None,
        description="Lock file path used to keep runs single-flight across processes"
    )


class ExternalSourceConfig(BaseModel):
    """
    Connection settings for the external work-order system.

    Credentials are optional; without a base URL the external source is
    considered unconfigured.
    """
    base_url: Optional[str] = Field(default=None, description="API base URL")
    email: Optional[str] = Field(default=None, description="Login email")
    password: Optional[SecretStr] = Field(default=None, description="Login password")
    api_token: Optional[SecretStr] = Field(default=None, description="Bearer token")
    timeout_seconds: float = Field(default=30.0, gt=0.0)

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)


class ClassifierConfig(BaseModel):
    """Natural-language classifier endpoint."""
    endpoint: Optional[str] = Field(default=None, description="Classifier URL")
    api_key: Optional[SecretStr] = Field(default=None)
    timeout_seconds: float = Field(default=20.0, gt=0.0)


class NotifierConfig(BaseModel):
    """Assignment notification delivery."""
    webhook_url: Optional[str] = Field(
        default=None,
        description="POST assignment notifications here; log-only when unset"
    )
    timeout_seconds: float = Field(default=10.0, gt=0.0)


class RetrySettings(BaseModel):
    """Retry budget for classifier and source calls."""
    max_retries: int = Field(default=1, ge=0, le=5)
    base_delay: float = Field(default=1.0, gt=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    call_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Upper bound for any single classifier/source call"
    )


class MaintConfig(BaseModel):
    """
    Top-level maint configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = MaintConfig(
        ...     automation=AutomationSettings(mode="native_only", owner_approval_threshold=750),
        ... )
        >>> config.automation.mode
        <AutomationMode.NATIVE_ONLY: 'native_only'>
    """
    automation: AutomationSettings = Field(
        default_factory=AutomationSettings,
        description="Assignment policy"
    )
    external: ExternalSourceConfig = Field(
        default_factory=ExternalSourceConfig,
        description="External work-order system"
    )
    classifier: ClassifierConfig = Field(
        default_factory=ClassifierConfig,
        description="Natural-language classifier"
    )
    notifier: NotifierConfig = Field(
        default_factory=NotifierConfig,
        description="Assignment notifications"
    )
    retry: RetrySettings = Field(
        default_factory=RetrySettings,
        description="Retry/timeout budget"
    )
    vendor_rules: list[VendorRule] = Field(
        default_factory=lambda: list(DEFAULT_VENDOR_RULES),
        description="Vendor rules in classification priority order"
    )

    model_config = ConfigDict(
        extra="allow",
        validate_assignment=True,
    )

    @field_validator("automation", mode="before")
    @classmethod
    def validate_automation(
        cls, v: Union[str, dict[str, Any], AutomationSettings]
    ) -> Union[dict[str, Any], AutomationSettings]:
        """Accept a bare mode string as shorthand."""
        if isinstance(v, str):
            return {"mode": v}
        return v

    def rule_book(self) -> RuleBook:
        """Build the immutable RuleBook for a run."""
        return RuleBook(self.vendor_rules)
