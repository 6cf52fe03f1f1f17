"""Frontmatter and document loading."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import frontmatter
import yaml

from sdkdocs.conditionals import check_conditionals
from sdkdocs.content_tree import parse_mdx, split_frontmatter
from sdkdocs.diagnostics import DiagnosticsCollector, format_message
from sdkdocs.exceptions import ContentParseError, DocumentLoadError
from sdkdocs.file_utils import href_for_file, list_mdx_files_async
from sdkdocs.fragments import Fragments, check_typedoc_folder, embed_all
from sdkdocs.headings import find_duplicate_anchors, iter_heading_anchors
from sdkdocs.schemas.config import BuildConfig
from sdkdocs.schemas.diagnostics import Position
from sdkdocs.schemas.document import Document, FragmentKind, Frontmatter
from sdkdocs.sdk import parse_sdk_list
from sdkdocs.store import ContentStore

logger = logging.getLogger(__name__)

# Characters encodeURI leaves alone; anything else in an href gets encoded.
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


def has_unsafe_characters(href: str) -> bool:
    return quote(href, safe=_URI_SAFE) != href


def parse_frontmatter_block(block: str | None, href: str) -> dict[str, Any]:
    """Parse a ``---`` delimited YAML block into a dict.

    Raises:
        DocumentLoadError: If the YAML is malformed.
    """
    if block is None:
        return {}
    try:
        post = frontmatter.loads(block)
    except yaml.YAMLError as exc:
        raise DocumentLoadError(f"{format_message('frontmatter-parse-failed', href)}: {exc}") from exc
    return dict(post.metadata) if isinstance(post.metadata, Mapping) else {}


def _is_sdk_value(value: Any) -> bool:
    """A comma-separated string or a list of scalar entries."""
    if isinstance(value, str):
        return True
    return isinstance(value, list) and all(isinstance(item, (str, int, float)) for item in value)


async def load_document(
    config: BuildConfig,
    store: ContentStore,
    collector: DiagnosticsCollector,
    file_path: str,
    *,
    fragments: Mapping[FragmentKind, Fragments],
    in_manifest: bool,
) -> Document:
    """Load one document: frontmatter, content tree and heading anchors.

    Args:
        config: Build configuration.
        store: Content store used for reads and parsed-tree caching.
        collector: Diagnostics sink.
        file_path: Path relative to the docs folder, e.g. ``"guides/setup.mdx"``.
        fragments: Loaded fragments by kind, used to resolve embeds before
            collecting heading anchors.
        in_manifest: Whether the manifest references the document.

    Returns:
        The loaded document. Its tree is the parsed source, without fragments.

    Raises:
        DocumentLoadError: If the file cannot be read, or its frontmatter
            or component structure cannot be parsed.
        FatalDiagnosticError: For fatal frontmatter, href, embed or heading
            problems.
    """
    path = config.docs_path / file_path
    href = href_for_file(file_path, config.base_docs_link)
    universe = config.universe

    try:
        text = await store.read_text(path)
    except OSError as exc:
        raise DocumentLoadError(f"Failed to read doc {path}: {exc}") from exc

    block, body, offset = split_frontmatter(text)
    metadata = parse_frontmatter_block(block, href)
    frontmatter_position = Position.from_lines(1, max(offset, 1))

    title = metadata.get("title")
    if not isinstance(title, str) or not title.strip():
        collector.safe_fail("frontmatter-missing-title", file=file_path, position=frontmatter_position)
        title = href

    if has_unsafe_characters(href):
        collector.safe_fail("invalid-href-encoding", href, file=file_path)

    if not in_manifest:
        collector.safe_message("doc-not-in-manifest", file=file_path)

    description = metadata.get("description")
    if not isinstance(description, str) or not description.strip():
        collector.safe_message("frontmatter-missing-description", file=file_path, position=frontmatter_position)
        description = None

    declared_sdk = None
    raw_sdk = metadata.get("sdk")
    if raw_sdk is not None and not _is_sdk_value(raw_sdk):
        collector.safe_fail(
            "invalid-sdk-in-frontmatter",
            [str(raw_sdk)],
            universe.sdks,
            file=file_path,
            position=frontmatter_position,
        )
    elif raw_sdk is not None:
        entries = parse_sdk_list(raw_sdk)
        invalid = universe.invalid(entries)
        if invalid:
            collector.safe_fail(
                "invalid-sdk-in-frontmatter",
                invalid,
                universe.sdks,
                file=file_path,
                position=frontmatter_position,
            )
        declared_sdk = universe.order(entries) or None

    try:
        tree = store.parsed_tree(path, text, lambda: parse_mdx(body, line_offset=offset))
    except ContentParseError as exc:
        raise DocumentLoadError(format_message("doc-parse-failed", href, exc)) from exc

    check_typedoc_folder(tree, config, collector=collector, file=file_path)
    embedded = embed_all(
        tree,
        fragments,
        collector=collector,
        file=file_path,
        on_embed=lambda fragment: store.record_dependency(path, fragment.path),
    )
    has_conditionals = check_conditionals(embedded, universe, collector=collector, file=file_path)

    anchors = {anchor for _, anchor in iter_heading_anchors(embedded)}
    # Headings in mutually exclusive <If> branches may repeat; only documents
    # without conditional blocks are checked here.
    if not has_conditionals:
        for heading, anchor in find_duplicate_anchors(embedded):
            collector.safe_fail(
                "duplicate-heading-id", href, anchor, file=file_path, position=heading.position
            )

    return Document(
        href=href,
        file_path=file_path,
        raw_content=text,
        frontmatter=Frontmatter(
            title=title,
            description=description,
            sdk=declared_sdk,
            position=frontmatter_position if block is not None else None,
        ),
        metadata=metadata,
        tree=tree,
        heading_anchors=anchors,
        in_manifest=in_manifest,
        has_conditionals=has_conditionals,
    )


async def load_documents(
    config: BuildConfig,
    store: ContentStore,
    collector: DiagnosticsCollector,
    *,
    fragments: Mapping[FragmentKind, Fragments],
    manifest_hrefs: set[str],
) -> dict[str, Document]:
    """Load every ``.mdx`` document in the docs folder, keyed by href.

    The fragment folders are skipped. Documents are loaded concurrently.
    """
    fragment_folders = (config.partials_path, config.typedoc_path, config.tooltips_path)
    files = await list_mdx_files_async(
        config.docs_path, exclude=tuple(folder for folder in fragment_folders if folder is not None)
    )
    documents = await asyncio.gather(
        *(
            load_document(
                config,
                store,
                collector,
                file_path,
                fragments=fragments,
                in_manifest=href_for_file(file_path, config.base_docs_link) in manifest_hrefs,
            )
            for file_path in files
        )
    )
    logger.info("Loaded %d docs from %s", len(documents), config.docs_path)
    return {document.href: document for document in documents}
