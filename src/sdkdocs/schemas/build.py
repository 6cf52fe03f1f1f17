"""Build result models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from sdkdocs.schemas.diagnostics import Diagnostic
from sdkdocs.schemas.document import Document
from sdkdocs.schemas.manifest import Manifest


class BuildResult(BaseModel):
    """Everything a build produced.

    ``core_files`` and ``sdk_files`` map output paths (relative to the dist
    folder, or to ``dist/<sdk>/``) to file contents.
    """

    report: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    documents: dict[str, Document] = Field(default_factory=dict)
    manifest: Manifest = Field(default_factory=list)
    sdk_manifests: dict[str, Manifest] = Field(default_factory=dict)
    core_files: dict[str, str] = Field(default_factory=dict)
    sdk_files: dict[str, dict[str, str]] = Field(default_factory=dict)

    @property
    def has_warnings(self) -> bool:
        return bool(self.report)
