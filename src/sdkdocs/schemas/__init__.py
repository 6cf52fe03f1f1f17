"""Shared schemas for sdkdocs."""

from sdkdocs.schemas.build import BuildResult
from sdkdocs.schemas.config import BuildConfig, ManifestOptions, RulePolicy, WarningSuppressions
from sdkdocs.schemas.content import ComponentAttribute, ContentNode
from sdkdocs.schemas.diagnostics import Diagnostic, Point, Position, Severity
from sdkdocs.schemas.document import Document, Fragment, Frontmatter
from sdkdocs.schemas.manifest import Manifest, ManifestFile, ManifestGroup, ManifestItem, ManifestNode

__all__ = [
    "BuildConfig",
    "BuildResult",
    "ComponentAttribute",
    "ContentNode",
    "Diagnostic",
    "Document",
    "Fragment",
    "Frontmatter",
    "Manifest",
    "ManifestFile",
    "ManifestGroup",
    "ManifestItem",
    "ManifestNode",
    "ManifestOptions",
    "Point",
    "Position",
    "RulePolicy",
    "Severity",
    "WarningSuppressions",
]
