"""Fragment loading and embedding (partials, typedoc output and tooltips)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping

from sdkdocs.content_tree import (
    clone_tree,
    find_components,
    has_component,
    parse_mdx,
    split_frontmatter,
    transform_tree,
)
from sdkdocs.diagnostics import DiagnosticsCollector
from sdkdocs.exceptions import ContentParseError, DocumentLoadError
from sdkdocs.file_utils import list_mdx_files_async, remove_mdx_suffix
from sdkdocs.schemas.config import BuildConfig
from sdkdocs.schemas.content import ContentNode
from sdkdocs.schemas.diagnostics import Section
from sdkdocs.schemas.document import Fragment, FragmentKind
from sdkdocs.store import ContentStore

logger = logging.getLogger(__name__)

PARTIALS_PREFIX = "_partials/"
TOOLTIPS_PREFIX = "_tooltips/"


@dataclass(frozen=True)
class FragmentSpec:
    """How one kind of fragment is referenced, stored and reported."""

    kind: FragmentKind
    component: str
    section: Section
    path_setting: str
    not_found_rule: str
    nested_rule: str
    prefix: str = ""
    src_rule: str | None = None
    # Typedoc warnings name the fragment file rather than the src.
    report_key: bool = False
    # Tooltips wrap the component's children instead of replacing the component.
    wraps_trigger: bool = False
    # Optional kinds are only embedded when their fragments are passed in.
    optional: bool = False


PARTIALS = FragmentSpec(
    kind="partial",
    component="Include",
    section="partials",
    path_setting="partials_path",
    not_found_rule="partial-not-found",
    nested_rule="partials-inside-partials",
    prefix=PARTIALS_PREFIX,
    src_rule="include-src-not-partials",
)
TYPEDOC = FragmentSpec(
    kind="typedoc",
    component="Typedoc",
    section="typedoc",
    path_setting="typedoc_path",
    not_found_rule="typedoc-not-found",
    nested_rule="typedoc-inside-typedoc",
    report_key=True,
)
TOOLTIPS = FragmentSpec(
    kind="tooltip",
    component="Tooltip",
    section="tooltips",
    path_setting="tooltips_path",
    not_found_rule="tooltip-not-found",
    nested_rule="tooltips-inside-tooltips",
    prefix=TOOLTIPS_PREFIX,
    src_rule="tooltip-src-not-tooltip",
    wraps_trigger=True,
    optional=True,
)
# Embedding order. A fragment may only reference kinds embedded after its
# own, so partials can hold typedoc and tooltips but not the reverse.
FRAGMENT_SPECS = (PARTIALS, TYPEDOC, TOOLTIPS)

Fragments = Mapping[str, Fragment]


def fragment_key(src: str) -> str:
    """Cache key for an embed ``src``: ``_partials/foo`` -> ``_partials/foo.mdx``."""
    return f"{remove_mdx_suffix(src.lstrip('/'))}.mdx"


def fragment_root(config: BuildConfig, spec: FragmentSpec) -> Path | None:
    return getattr(config, spec.path_setting)


async def load_fragments(config: BuildConfig, store: ContentStore, spec: FragmentSpec) -> dict[str, Fragment]:
    """Load and parse every fragment of one kind, through the store's cache.

    A kind whose folder is not configured has no fragments.

    Raises:
        DocumentLoadError: If a fragment cannot be read or parsed.
    """
    root = fragment_root(config, spec)
    if root is None:
        logger.debug("No folder configured for %s fragments", spec.kind)
        return {}
    files = await list_mdx_files_async(root)

    async def load_one(relative: str) -> Fragment:
        key = f"{spec.prefix}{relative}"
        path = root / relative
        return await store.get_fragment(key, lambda: _load_fragment(store, key, path, spec))

    fragments = await asyncio.gather(*(load_one(relative) for relative in files))
    logger.info("Loaded %d %s fragments from %s", len(fragments), spec.kind, root)
    return {fragment.key: fragment for fragment in fragments}


async def _load_fragment(store: ContentStore, key: str, path: Path, spec: FragmentSpec) -> Fragment:
    try:
        text = await store.read_text(path)
    except OSError as exc:
        raise DocumentLoadError(f"Failed to read {spec.kind} {key}: {exc}") from exc
    _, body, offset = split_frontmatter(text)
    try:
        tree = store.parsed_tree(path, text, lambda: parse_mdx(body, line_offset=offset))
    except ContentParseError as exc:
        raise DocumentLoadError(f"Failed to parse {spec.kind} {key}: {exc}") from exc
    return Fragment(key=key, kind=spec.kind, path=path, tree=tree)


def embed_fragments(
    tree: ContentNode,
    fragments: Fragments,
    spec: FragmentSpec,
    *,
    collector: DiagnosticsCollector,
    file: str,
    section: Section = "docs",
    report_warnings: bool = True,
    on_embed: Callable[[Fragment], None] | None = None,
) -> ContentNode:
    """Replace every embed component of ``spec`` with the referenced fragment.

    Fragments are deep-copied before being spliced in, so the cached
    fragment trees are never shared with the result. A reference that
    cannot be resolved is reported (when ``report_warnings``) and left in
    place. Tooltips keep their component and gain the fragment as
    description.

    Args:
        tree: The tree to embed into; not modified.
        fragments: Loaded fragments of this kind keyed by :func:`fragment_key`.
        spec: Which fragment kind to embed.
        collector: Diagnostics sink.
        file: File the warnings are reported against.
        section: Section of ``file``.
        report_warnings: Report lookup and syntax warnings.
        on_embed: Called with every fragment that gets embedded.

    Returns:
        The tree with fragments embedded.

    Raises:
        FatalDiagnosticError: If a fragment references a fragment kind that
            is not embedded after its own.
    """

    def replace(node: ContentNode) -> ContentNode | list[ContentNode]:
        if not node.is_component(spec.component):
            return node
        src = read_embed_src(
            node, spec, collector=collector, file=file, section=section, report=report_warnings
        )
        if src is None:
            return node
        key = fragment_key(src)
        fragment = fragments.get(key)
        if fragment is None:
            if report_warnings:
                collector.safe_message(
                    spec.not_found_rule,
                    key if spec.report_key else remove_mdx_suffix(src),
                    file=file,
                    section=section,
                    position=node.position,
                )
            return node
        check_nested_embeds(fragment, spec, collector=collector)
        if on_embed is not None:
            on_embed(fragment)
        if spec.wraps_trigger:
            return wrap_tooltip(node, fragment)
        return clone_tree(fragment.tree).children

    return transform_tree(tree, replace)


def check_nested_embeds(fragment: Fragment, spec: FragmentSpec, *, collector: DiagnosticsCollector) -> None:
    """Fail when ``fragment`` references a kind that would not be embedded.

    Raises:
        FatalDiagnosticError: With the nested kind's rule, reported against
            the fragment.
    """
    embedded_later = FRAGMENT_SPECS[FRAGMENT_SPECS.index(spec) + 1:]
    for other in FRAGMENT_SPECS:
        if other in embedded_later:
            continue
        nested = next(find_components(fragment.tree, other.component), None)
        if nested is not None:
            collector.safe_fail(
                other.nested_rule, file=fragment.key, section=spec.section, position=nested.position
            )


def wrap_tooltip(node: ContentNode, fragment: Fragment) -> ContentNode:
    """``<Tooltip>`` holding the trigger as title and the fragment as description."""
    inline = bool(node.data.get("inline"))
    description = clone_tree(fragment.tree).children
    if inline and len(description) == 1 and description[0].type == "paragraph":
        description = description[0].children
    data = {"inline": inline, "self_closing": False}
    return ContentNode(
        type="component",
        name=TOOLTIPS.component,
        data=dict(data),
        position=node.position,
        children=[
            ContentNode(type="component", name="TooltipTitle", data=dict(data), children=list(node.children)),
            ContentNode(type="component", name="TooltipDescription", data=dict(data), children=description),
        ],
    )


def embed_all(
    tree: ContentNode,
    fragments: Mapping[FragmentKind, Fragments],
    *,
    collector: DiagnosticsCollector,
    file: str,
    section: Section = "docs",
    report_warnings: bool = True,
    on_embed: Callable[[Fragment], None] | None = None,
) -> ContentNode:
    """Embed every fragment kind in :data:`FRAGMENT_SPECS` order."""
    for spec in FRAGMENT_SPECS:
        if spec.optional and spec.kind not in fragments:
            continue
        tree = embed_fragments(
            tree,
            fragments.get(spec.kind, {}),
            spec,
            collector=collector,
            file=file,
            section=section,
            report_warnings=report_warnings,
            on_embed=on_embed,
        )
    return tree


def read_embed_src(
    node: ContentNode,
    spec: FragmentSpec,
    *,
    collector: DiagnosticsCollector,
    file: str,
    section: Section = "docs",
    report: bool = True,
) -> str | None:
    """Return the ``src`` of an embed component, or ``None`` if it is unusable."""
    attribute = node.get_attribute("src")
    if attribute is None or not attribute.value:
        if report:
            if not node.attributes:
                collector.safe_message(
                    "component-no-props", spec.component, file=file, section=section, position=node.position
                )
            else:
                collector.safe_message(
                    "component-missing-attribute",
                    spec.component,
                    "src",
                    file=file,
                    section=section,
                    position=node.position,
                )
        return None
    src = attribute.value.strip()
    if attribute.is_expression:
        src = src.strip("\"'`")
    if spec.prefix and not src.startswith(spec.prefix):
        if report and spec.src_rule is not None:
            collector.safe_message(spec.src_rule, file=file, section=section, position=node.position)
        return None
    return src


def check_typedoc_folder(
    tree: ContentNode,
    config: BuildConfig,
    *,
    collector: DiagnosticsCollector,
    file: str,
    section: Section = "docs",
) -> None:
    """Fail when a tree references typedoc output but the folder is missing."""
    if not has_component(tree, TYPEDOC.component):
        return
    if config.typedoc_path.is_dir():
        return
    collector.safe_fail(
        "typedoc-folder-not-found", str(config.typedoc_path), file=file, section=section
    )
