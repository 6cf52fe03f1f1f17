"""Diagnostic messages, collection, suppression and reporting."""

from __future__ import annotations

import json
import logging
from collections import OrderedDict
from typing import Any, Callable

from sdkdocs.exceptions import FatalDiagnosticError
from sdkdocs.schemas.config import BuildConfig, RulePolicy
from sdkdocs.schemas.diagnostics import Diagnostic, Position, Section, Severity

logger = logging.getLogger(__name__)


def _json(value: Any) -> str:
    return json.dumps(list(value) if isinstance(value, (tuple, set)) else value)


def _quoted(values: list[str]) -> str:
    return ", ".join(f'"{value}"' for value in values)


ERROR_MESSAGES: dict[str, Callable[..., str]] = {
    # Manifest
    "manifest-parse-error": lambda error: f"Failed to parse manifest: {error}",
    "duplicate-manifest-href": lambda href: f'Href "{href}" appears more than once in the manifest',
    # Component shape
    "component-no-props": lambda name: f"<{name} /> component has no props",
    "component-missing-attribute": lambda name, prop: f'<{name} /> component has no "{prop}" attribute',
    # Conditional blocks
    "invalid-sdk-in-if": lambda sdk: f'sdk "{sdk}" in <If /> is not a valid SDK',
    "invalid-sdks-in-if": lambda sdks: f"sdks {_quoted(sdks)} in <If /> are not valid SDKs",
    "invalid-if-sdk-prop": lambda value: f"<If /> sdk prop {value} could not be read as an SDK or list of SDKs",
    "if-component-sdk-and-not-sdk-props-cannot-be-used-together": lambda: (
        '<If /> component cannot have both "sdk" and "not" props'
    ),
    "if-component-sdk-not-in-frontmatter": lambda sdk, doc_sdks: (
        f'<If /> component is attempting to filter to sdk "{sdk}" but it is not available '
        f"in the docs frontmatter [{_quoted(list(doc_sdks))}], if this is a mistake please "
        f'remove it from the <If /> otherwise update the frontmatter to include "{sdk}"'
    ),
    "if-component-sdk-not-in-manifest": lambda sdk, href: (
        f'<If /> component is attempting to filter to sdk "{sdk}" but it is not available '
        f'in the manifest.json for {href}, if this is a mistake please remove it from the '
        f'<If /> otherwise update the manifest.json to include "{sdk}"'
    ),
    # Frontmatter and documents
    "invalid-sdk-in-frontmatter": lambda invalid, valid: (
        f"Invalid SDK {_json(invalid)}, the valid SDKs are {_json(valid)}"
    ),
    "frontmatter-parse-failed": lambda href: f"Frontmatter parsing failed for {href}",
    "frontmatter-missing-title": lambda: 'Frontmatter must have a "title" property',
    "frontmatter-missing-description": lambda: 'Frontmatter should have a "description" property',
    "doc-not-in-manifest": lambda: (
        "This doc is not in the manifest.json, but will still be publicly accessible "
        "and other docs can link to it"
    ),
    "invalid-href-encoding": lambda href: (
        f'Href "{href}" contains characters that will be encoded by the browser, '
        "please remove them"
    ),
    "doc-parse-failed": lambda href, error: f'Doc "{href}" failed to parse: {error}',
    "doc-not-found": lambda title, href: (
        f'Doc "{title}" in manifest.json not found in the docs folder at {href}.mdx'
    ),
    "doc-sdk-filtered-by-parent": lambda title, doc_sdks, parent_sdks: (
        f'Doc "{title}" is attempting to use {_json(doc_sdks)} But its being filtered '
        f"down to {_json(parent_sdks)} in the manifest.json"
    ),
    "group-sdk-filtered-by-parent": lambda title, group_sdks, parent_sdks: (
        f'Group "{title}" is attempting to use {_json(group_sdks)} But its being filtered '
        f"down to {_json(parent_sdks)} in the manifest.json"
    ),
    "sdk-path-conflict": lambda href, path: (
        f'Doc "{href}" is attempting to write out a doc to {path} but the first part '
        "of the path is a valid SDK, this causes a file path conflict."
    ),
    "duplicate-heading-id": lambda href, anchor: (
        f'Doc "{href}" contains a duplicate heading id "{anchor}", please ensure all '
        "heading ids are unique"
    ),
    # Fragments
    "include-src-not-partials": lambda: '<Include /> prop "src" must start with "_partials/"',
    "partial-not-found": lambda src: f"Partial /docs/{src}.mdx not found",
    "partials-inside-partials": lambda: (
        "Partials inside of partials is not yet supported (this is a bug with the "
        "build script, please report)"
    ),
    "typedoc-folder-not-found": lambda path: (
        f"Typedoc folder {path} not found, run the typedoc generation before building docs"
    ),
    "typedoc-not-found": lambda path: f"Typedoc {path} not found",
    "typedoc-inside-typedoc": lambda: "Typedoc inside of typedoc is not yet supported",
    "tooltip-src-not-tooltip": lambda: '<Tooltip /> prop "src" must start with "_tooltips/"',
    "tooltip-not-found": lambda src: f"Tooltip {src} not found",
    "tooltips-inside-tooltips": lambda: "Tooltips inside of tooltips is not yet supported",
    # Links
    "link-doc-not-found": lambda url, file: (
        f"Matching file not found for path: {url}. Expected file to exist at {file}"
    ),
    "link-hash-not-found": lambda hash_, url: f'Hash "{hash_}" not found in {url}',
    "doc-link-must-start-with-a-slash": lambda url: (
        f'Link "{url}" must start with a slash, use "/{url}" instead'
    ),
}


def format_message(rule_id: str, *args: Any) -> str:
    """Render the message registered for ``rule_id``.

    Raises:
        KeyError: If the rule id is unknown.
    """
    return ERROR_MESSAGES[rule_id](*args)


class DiagnosticsCollector:
    """Collects diagnostics for one build.

    Warnings are kept per file in insertion order; fatal diagnostics are
    recorded and then raised. Entries listed in the configured suppression
    map are dropped before they are recorded.
    """

    def __init__(self, config: BuildConfig) -> None:
        self._config = config
        self._by_file: OrderedDict[tuple[Section, str], list[Diagnostic]] = OrderedDict()

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [diagnostic for entries in self._by_file.values() for diagnostic in entries]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    def should_ignore(self, section: Section, file: str, rule_id: str) -> bool:
        return rule_id in self._config.ignore_warnings.rules_for(section, file)

    def safe_message(
        self,
        rule_id: str,
        *args: Any,
        file: str,
        section: Section = "docs",
        position: Position | None = None,
    ) -> Diagnostic | None:
        """Record a warning unless it is suppressed for ``(section, file)``."""
        if self.should_ignore(section, file, rule_id):
            logger.debug("Suppressed %s for %s/%s", rule_id, section, file)
            return None
        diagnostic = Diagnostic(
            file=file,
            section=section,
            rule_id=rule_id,
            message=format_message(rule_id, *args),
            severity=Severity.WARNING,
            position=position,
        )
        self._record(diagnostic)
        return diagnostic

    def safe_fail(
        self,
        rule_id: str,
        *args: Any,
        file: str,
        section: Section = "docs",
        position: Position | None = None,
    ) -> None:
        """Raise a fatal diagnostic unless it is suppressed for ``(section, file)``.

        Raises:
            FatalDiagnosticError: Always, unless suppressed.
        """
        if self.should_ignore(section, file, rule_id):
            logger.debug("Suppressed fatal %s for %s/%s", rule_id, section, file)
            return
        diagnostic = Diagnostic(
            file=file,
            section=section,
            rule_id=rule_id,
            message=format_message(rule_id, *args),
            severity=Severity.FATAL,
            position=position,
        )
        self._record(diagnostic)
        raise FatalDiagnosticError(diagnostic)

    def report(
        self,
        rule_id: str,
        *args: Any,
        file: str,
        section: Section = "docs",
        position: Position | None = None,
    ) -> None:
        """Report a rule whose severity comes from ``BuildConfig.rule_policies``.

        Raises:
            FatalDiagnosticError: If the rule's policy is ``error``.
        """
        if self._config.policy_for(rule_id) is RulePolicy.ERROR:
            self.safe_fail(rule_id, *args, file=file, section=section, position=position)
        else:
            self.safe_message(rule_id, *args, file=file, section=section, position=position)

    def format_report(self) -> str:
        """Format recorded warnings per file; an empty string means a clean build."""
        blocks: list[str] = []
        for (section, file), entries in self._by_file.items():
            warnings = [d for d in entries if d.severity is Severity.WARNING]
            if not warnings:
                continue
            lines = [_display_path(section, file)]
            lines.extend(f"{d.location} {d.severity.value} {d.message}" for d in warnings)
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def _record(self, diagnostic: Diagnostic) -> None:
        key = (diagnostic.section, diagnostic.file)
        entries = self._by_file.setdefault(key, [])
        if any(
            existing.rule_id == diagnostic.rule_id
            and existing.message == diagnostic.message
            and existing.position == diagnostic.position
            for existing in entries
        ):
            return
        entries.append(diagnostic)
        log = logger.error if diagnostic.severity is Severity.FATAL else logger.debug
        log("%s %s: %s", diagnostic.rule_id, diagnostic.file, diagnostic.message)


def _display_path(section: Section, file: str) -> str:
    if section == "typedoc":
        return f"typedoc/{file}"
    return file
