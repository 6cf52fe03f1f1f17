"""sdkdocs: validate MDX documentation and build one variant per SDK."""

from sdkdocs.build import DocsBuilder, build, build_docs
from sdkdocs.config import create_config, load_config_file
from sdkdocs.exceptions import (
    BuildCancelledError,
    ContentParseError,
    DocumentLoadError,
    FatalDiagnosticError,
    ManifestError,
    SdkDocsError,
)
from sdkdocs.output import write_build_output
from sdkdocs.schemas import BuildConfig, BuildResult, Diagnostic, Document
from sdkdocs.store import ContentStore

__all__ = [
    "BuildCancelledError",
    "BuildConfig",
    "BuildResult",
    "ContentParseError",
    "ContentStore",
    "Diagnostic",
    "DocsBuilder",
    "Document",
    "DocumentLoadError",
    "FatalDiagnosticError",
    "ManifestError",
    "SdkDocsError",
    "build",
    "build_docs",
    "create_config",
    "load_config_file",
    "write_build_output",
]
