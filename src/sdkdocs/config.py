"""Local configuration for sdkdocs."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from sdkdocs.exceptions import SdkDocsError
from sdkdocs.schemas.config import BuildConfig, ManifestOptions, RulePolicy, WarningSuppressions

DEFAULT_DOCS_DIR = "docs"
DEFAULT_MANIFEST_FILE = "docs/manifest.json"
DEFAULT_PARTIALS_DIR = "docs/_partials"
DEFAULT_TYPEDOC_DIR = "clerk-typedoc"
DEFAULT_DIST_DIR = "dist"
DEFAULT_BASE_DOCS_LINK = "/docs/"

SDKDOCS_DOCS_PATH = os.getenv("SDKDOCS_DOCS_PATH", DEFAULT_DOCS_DIR)
SDKDOCS_MANIFEST_PATH = os.getenv("SDKDOCS_MANIFEST_PATH", DEFAULT_MANIFEST_FILE)
SDKDOCS_PARTIALS_PATH = os.getenv("SDKDOCS_PARTIALS_PATH", DEFAULT_PARTIALS_DIR)
SDKDOCS_TYPEDOC_PATH = os.getenv("SDKDOCS_TYPEDOC_PATH", DEFAULT_TYPEDOC_DIR)
# Tooltip fragments are only embedded when a folder is configured.
SDKDOCS_TOOLTIPS_PATH = os.getenv("SDKDOCS_TOOLTIPS_PATH") or None
SDKDOCS_DIST_PATH = os.getenv("SDKDOCS_DIST_PATH", DEFAULT_DIST_DIR)
SDKDOCS_BASE_DOCS_LINK = os.getenv("SDKDOCS_BASE_DOCS_LINK", DEFAULT_BASE_DOCS_LINK)
# Comma-separated SDK universe used when none is passed explicitly.
SDKDOCS_VALID_SDKS = os.getenv("SDKDOCS_VALID_SDKS", "")


def create_config(
    *,
    base_path: str | Path,
    valid_sdks: Iterable[str] | None = None,
    docs_path: str | Path = SDKDOCS_DOCS_PATH,
    manifest_path: str | Path = SDKDOCS_MANIFEST_PATH,
    partials_path: str | Path = SDKDOCS_PARTIALS_PATH,
    typedoc_path: str | Path = SDKDOCS_TYPEDOC_PATH,
    tooltips_path: str | Path | None = SDKDOCS_TOOLTIPS_PATH,
    dist_path: str | Path | None = SDKDOCS_DIST_PATH,
    base_docs_link: str = SDKDOCS_BASE_DOCS_LINK,
    ignore_paths: Iterable[str] = (),
    ignore_links: Iterable[str] = (),
    ignore_warnings: Mapping[str, Mapping[str, list[str]]] | WarningSuppressions | None = None,
    manifest_options: Mapping[str, bool] | ManifestOptions | None = None,
    rule_policies: Mapping[str, str | RulePolicy] | None = None,
    fail_on_warnings: bool = False,
) -> BuildConfig:
    """Build a :class:`BuildConfig`, resolving relative paths against ``base_path``.

    Args:
        base_path: Root the other paths are relative to.
        valid_sdks: The SDK universe. Falls back to ``SDKDOCS_VALID_SDKS``.
        docs_path: Folder holding the ``.mdx`` documents.
        manifest_path: Navigation manifest JSON file.
        partials_path: Folder holding partial fragments.
        typedoc_path: Folder holding generated typedoc fragments.
        tooltips_path: Folder holding tooltip fragments, or None to leave
            <Tooltip> components untouched.
        dist_path: Output folder, or None to skip writing.
        base_docs_link: Href prefix of internal documents.
        ignore_paths: Href prefixes exempt from link checks.
        ignore_links: Exact hrefs exempt from link checks.
        ignore_warnings: Per-section map of file path to suppressed rule ids.
        manifest_options: Defaults for ``wrap``, ``collapse`` and ``hideTitle``.
        rule_policies: Severity override for configurable rules.
        fail_on_warnings: Treat a non-empty warnings report as a failure.

    Returns:
        The validated configuration.

    Raises:
        SdkDocsError: If the configuration is invalid.
    """
    base = Path(base_path).expanduser().resolve()
    sdks = list(valid_sdks) if valid_sdks is not None else SDKDOCS_VALID_SDKS.split(",")

    def _resolve(path: str | Path) -> Path:
        candidate = Path(path).expanduser()
        return candidate if candidate.is_absolute() else base / candidate

    policies: dict[str, Any] = {
        "doc-sdk-filtered-by-parent": RulePolicy.ERROR,
        "group-sdk-filtered-by-parent": RulePolicy.ERROR,
    }
    policies.update(rule_policies or {})

    try:
        return BuildConfig(
            base_path=base,
            docs_path=_resolve(docs_path),
            manifest_path=_resolve(manifest_path),
            partials_path=_resolve(partials_path),
            typedoc_path=_resolve(typedoc_path),
            tooltips_path=_resolve(tooltips_path) if tooltips_path is not None else None,
            dist_path=_resolve(dist_path) if dist_path is not None else None,
            base_docs_link=base_docs_link,
            valid_sdks=tuple(sdks),
            ignore_paths=tuple(ignore_paths),
            ignore_links=tuple(ignore_links),
            ignore_warnings=ignore_warnings or WarningSuppressions(),
            manifest_options=manifest_options or ManifestOptions(),
            rule_policies=policies,
            fail_on_warnings=fail_on_warnings,
        )
    except ValidationError as exc:
        raise SdkDocsError(f"Invalid build configuration: {exc}") from exc


def load_config_file(path: str | Path, **overrides: Any) -> BuildConfig:
    """Load build settings from a JSON file and pass them to :func:`create_config`.

    Keys mirror the keyword arguments of :func:`create_config`; ``base_path``
    defaults to the directory containing the file. ``overrides`` win over
    values read from the file.
    """
    config_path = Path(path).expanduser().resolve()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SdkDocsError(f"Failed to read config file {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise SdkDocsError(f"Config file {config_path} must contain a JSON object")
    raw.setdefault("base_path", config_path.parent)
    raw.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return create_config(**raw)
    except TypeError as exc:
        raise SdkDocsError(f"Unknown setting in {config_path}: {exc}") from exc
