"""Custom exceptions for sdkdocs."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sdkdocs.schemas.diagnostics import Diagnostic


class SdkDocsError(Exception):
    """Base exception for sdkdocs operations."""


class ManifestError(SdkDocsError):
    """The navigation manifest could not be read or validated."""


class DocumentLoadError(SdkDocsError):
    """A document or fragment could not be read or its frontmatter parsed."""


class ContentParseError(SdkDocsError):
    """Malformed MDX component structure in a content tree."""


class FatalDiagnosticError(SdkDocsError):
    """A fatal diagnostic aborted the build."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


class BuildCancelledError(SdkDocsError):
    """The build was cancelled between phases."""
