"""Internal link and hash validation, and scope-aware link rewriting."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Mapping

from sdkdocs.content_tree import transform_tree, visit
from sdkdocs.diagnostics import DiagnosticsCollector
from sdkdocs.file_utils import file_for_href, remove_mdx_suffix
from sdkdocs.schemas.config import BuildConfig
from sdkdocs.schemas.content import ComponentAttribute, ContentNode
from sdkdocs.schemas.diagnostics import Section
from sdkdocs.schemas.document import Document
from sdkdocs.sdk import SDK_PLACEHOLDER, SdkScope, scope_href_to_sdk

SDK_LINK_COMPONENT = "SDKLink"
# Card grids render their own links.
_SKIPPED_CONTAINERS = {"Cards"}


def split_link(url: str, current_href: str | None = None) -> tuple[str, str]:
    """Split a link into ``(target_href, hash)`` with the ``.mdx`` suffix removed.

    Fragment-only links resolve against ``current_href``.
    """
    target, _, hash_ = remove_mdx_suffix(url).partition("#")
    if not target and current_href is not None:
        target = current_href
    return target, hash_


def _is_checked(url: str, config: BuildConfig, current_href: str | None) -> bool:
    if url.startswith("#"):
        return current_href is not None
    return config.is_internal_link(url)


def _expected_file(config: BuildConfig, href: str) -> str:
    path = config.docs_path / file_for_href(href, config.base_docs_link)
    try:
        return path.relative_to(config.base_path).as_posix()
    except ValueError:
        return path.as_posix()


def validate_links(
    tree: ContentNode,
    *,
    config: BuildConfig,
    docs: Mapping[str, Document],
    collector: DiagnosticsCollector,
    file: str,
    section: Section = "docs",
    href: str | None = None,
    on_link: Callable[[Document], None] | None = None,
) -> None:
    """Check every internal link of ``tree`` against the document index.

    Missing targets and unknown heading anchors are reported as warnings;
    ignore-listed prefixes and links are skipped without a lookup.

    Args:
        tree: Content tree to check.
        config: Build configuration (docs base link and ignore lists).
        docs: Documents keyed by href.
        collector: Diagnostics sink.
        file: File the warnings are reported against.
        section: Section of ``file``.
        href: Href of the document being checked, for ``#hash`` links.
            Fragments pass ``None``; their hash-only links are checked per
            embedding document by :func:`validate_fragment_hash_links`.
        on_link: Called with every resolved target document.
    """
    for node in visit(tree, lambda candidate: candidate.type == "link"):
        url = str(node.data.get("url", ""))
        if url.startswith("docs/"):
            collector.safe_message(
                "doc-link-must-start-with-a-slash", url, file=file, section=section, position=node.position
            )
            continue
        if not _is_checked(url, config, href):
            continue
        target, hash_ = split_link(url, href)
        if config.is_ignored_path(target) or config.is_ignored_link(target) or config.is_ignored_link(url):
            continue
        document = docs.get(target)
        if document is None:
            collector.safe_message(
                "link-doc-not-found",
                target,
                _expected_file(config, target),
                file=file,
                section=section,
                position=node.position,
            )
            continue
        if on_link is not None:
            on_link(document)
        if hash_ and hash_ not in document.heading_anchors:
            collector.safe_message(
                "link-hash-not-found", hash_, target, file=file, section=section, position=node.position
            )


def validate_fragment_hash_links(
    tree: ContentNode,
    document: Document,
    *,
    collector: DiagnosticsCollector,
    file: str,
    section: Section,
) -> None:
    """Check a fragment's ``#hash`` links against a document that embeds it.

    The warning is reported against the fragment and names the document
    missing the anchor.
    """
    for node in visit(tree, lambda candidate: candidate.type == "link"):
        url = str(node.data.get("url", ""))
        if not url.startswith("#") or len(url) == 1:
            continue
        hash_ = url[1:]
        if hash_ not in document.heading_anchors:
            collector.safe_message(
                "link-hash-not-found", hash_, document.href, file=file, section=section, position=node.position
            )


def build_sdk_link(link: ContentNode, href: str, sdks: tuple[str, ...]) -> ContentNode:
    """Turn a Markdown link into an ``<SDKLink>`` component carrying its SDKs."""
    attributes = [
        ComponentAttribute(name="href", value=href),
        ComponentAttribute(name="sdks", value=json.dumps(list(sdks), separators=(",", ":")), is_expression=True),
    ]
    if len(link.children) == 1 and link.children[0].type == "inline_code":
        attributes.append(ComponentAttribute(name="code", value="true", is_expression=True))
    return ContentNode(
        type="component",
        name=SDK_LINK_COMPONENT,
        attributes=attributes,
        data={"inline": True, "self_closing": False},
        children=list(link.children),
        position=link.position,
    )


def embed_sdk_links(
    tree: ContentNode,
    *,
    config: BuildConfig,
    docs: Mapping[str, Document],
    doc_sdk: SdkScope,
    current_sdk: str | None = None,
) -> ContentNode:
    """Rewrite links to SDK-scoped documents into ``<SDKLink>`` components.

    A link stays a plain link when the target is available for the SDK being
    built, is scoped to a single SDK, and every SDK of the target is also one
    of the current document's. Otherwise it becomes an ``<SDKLink>``; links
    to multi-SDK targets get the ``:sdk:`` placeholder so the reader's SDK
    can be filled in when rendering. ``.mdx`` suffixes are removed from all
    internal links. Links inside ``<Cards>`` are left alone.

    Args:
        tree: Content tree; not modified.
        config: Build configuration.
        docs: Documents keyed by href.
        doc_sdk: Effective SDK scope of the document being rewritten.
        current_sdk: SDK of the output variant, ``None`` for the core output.

    Returns:
        The rewritten tree.
    """
    own_sdks = set(doc_sdk or ())

    def rewrite(node: ContentNode) -> ContentNode:
        if node.type != "link":
            return node
        url = str(node.data.get("url", ""))
        if not config.is_internal_link(url):
            return node
        normalized = remove_mdx_suffix(url)
        target, _, hash_ = normalized.partition("#")
        document = docs.get(target)
        if document is None or document.sdk is None or config.is_ignored_path(target):
            return _with_url(node, normalized)

        linked = document.sdk
        target_supported = current_sdk is not None and current_sdk in linked
        same_sdks = bool(own_sdks) and all(sdk in own_sdks for sdk in linked)
        if target_supported and len(linked) == 1 and same_sdks:
            return _with_url(node, normalized)

        href = target
        if len(linked) > 1:
            href = scope_href_to_sdk(target, SDK_PLACEHOLDER, config.base_docs_link)
        if hash_:
            href = f"{href}#{hash_}"
        return build_sdk_link(node, href, linked)

    return transform_tree(
        tree,
        rewrite,
        skip=lambda node: node.type == "component" and node.name in _SKIPPED_CONTAINERS,
    )


def _with_url(node: ContentNode, url: str) -> ContentNode:
    if node.data.get("url") == url:
        return node
    return node.model_copy(update={"data": {**node.data, "url": url}})


def link_dependency(document: Document, config: BuildConfig) -> Path:
    """Source path of a link target, for recording dependency edges."""
    return config.docs_path / document.file_path
