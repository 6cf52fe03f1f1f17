"""Build configuration models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sdkdocs.sdk import SdkUniverse

# Parent/child SDK compatibility rules whose severity is configurable.
CONFIGURABLE_RULES = ("doc-sdk-filtered-by-parent", "group-sdk-filtered-by-parent")


class RulePolicy(str, Enum):
    """Whether a configurable rule aborts the build or only warns."""

    ERROR = "error"
    WARNING = "warning"


class ManifestOptions(BaseModel):
    """Defaults applied to manifest nodes; output omits values equal to them."""

    wrap: bool = True
    collapse: bool = False
    hide_title: bool = Field(default=False, alias="hideTitle")

    model_config = ConfigDict(populate_by_name=True)


class WarningSuppressions(BaseModel):
    """Per-section map of file path to rule ids that are not reported."""

    docs: dict[str, list[str]] = Field(default_factory=dict)
    partials: dict[str, list[str]] = Field(default_factory=dict)
    typedoc: dict[str, list[str]] = Field(default_factory=dict)
    tooltips: dict[str, list[str]] = Field(default_factory=dict)

    def rules_for(self, section: str, file: str) -> list[str]:
        return getattr(self, section, {}).get(file, [])


class BuildConfig(BaseModel):
    """Everything a build needs to know, with absolute paths."""

    model_config = ConfigDict(frozen=True)

    base_path: Path
    docs_path: Path
    manifest_path: Path
    partials_path: Path
    typedoc_path: Path
    tooltips_path: Path | None = None
    dist_path: Path | None = None
    base_docs_link: str = "/docs/"
    valid_sdks: tuple[str, ...]
    ignore_paths: tuple[str, ...] = ()
    ignore_links: tuple[str, ...] = ()
    ignore_warnings: WarningSuppressions = Field(default_factory=WarningSuppressions)
    manifest_options: ManifestOptions = Field(default_factory=ManifestOptions)
    rule_policies: dict[str, RulePolicy] = Field(
        default_factory=lambda: {rule: RulePolicy.ERROR for rule in CONFIGURABLE_RULES}
    )
    fail_on_warnings: bool = False

    @field_validator("valid_sdks")
    @classmethod
    def _require_sdks(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(dict.fromkeys(sdk.strip() for sdk in value if sdk.strip()))
        if not cleaned:
            raise ValueError("at least one valid SDK must be configured")
        return cleaned

    @field_validator("base_docs_link")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else f"{value}/"

    @property
    def universe(self) -> SdkUniverse:
        return SdkUniverse(self.valid_sdks)

    def policy_for(self, rule_id: str) -> RulePolicy:
        return self.rule_policies.get(rule_id, RulePolicy.ERROR)

    def is_ignored_path(self, url: str) -> bool:
        return any(url.startswith(prefix) for prefix in self.ignore_paths)

    def is_ignored_link(self, url: str) -> bool:
        return url in self.ignore_links

    def is_internal_link(self, url: str) -> bool:
        return url.startswith(self.base_docs_link)
