"""Navigation manifest loading and generic tree traversal."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Awaitable, Callable, Iterator, Optional, Union

from pydantic import ValidationError

from sdkdocs.exceptions import ManifestError
from sdkdocs.file_utils import read_text_async
from sdkdocs.schemas.config import BuildConfig
from sdkdocs.schemas.manifest import Manifest, ManifestFile, ManifestGroup, ManifestItem

logger = logging.getLogger(__name__)

Node = Union[ManifestItem, ManifestGroup]
Parent = Optional[ManifestGroup]

ItemVisitor = Callable[[ManifestItem, Parent], Awaitable[Optional[ManifestItem]]]
GroupVisitor = Callable[[ManifestGroup, Parent], Awaitable[Optional[ManifestGroup]]]
LeaveVisitor = Callable[[ManifestGroup, ManifestGroup, Parent], Awaitable[Optional[ManifestGroup]]]
ErrorHandler = Callable[[Node, BaseException], None]


async def read_manifest(config: BuildConfig) -> Manifest:
    """Read and validate the navigation manifest.

    Args:
        config: Build configuration; ``manifest_path`` and ``valid_sdks`` are used.

    Returns:
        The navigation tree with declared SDK sets in universe order.

    Raises:
        ManifestError: If the file cannot be read, is not valid JSON, does not
            match the manifest schema, names an unknown SDK or repeats an
            internal href.
    """
    try:
        raw = await read_text_async(config.manifest_path)
    except OSError as exc:
        raise ManifestError(f"Failed to parse manifest: {exc}") from exc
    return parse_manifest(raw, config)


def parse_manifest(raw: str, config: BuildConfig) -> Manifest:
    """Validate manifest JSON text; see :func:`read_manifest`."""
    try:
        manifest = ManifestFile.model_validate(
            json.loads(raw), context={"universe": config.universe}
        ).navigation
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ManifestError(f"Failed to parse manifest: {exc}") from exc

    seen: set[str] = set()
    for item in flatten_tree(manifest):
        if not config.is_internal_link(item.href):
            continue
        if item.href in seen:
            raise ManifestError(f'Failed to parse manifest: duplicate href "{item.href}"')
        seen.add(item.href)
    logger.debug("Parsed manifest with %d internal hrefs", len(seen))
    return manifest


async def traverse_tree(
    tree: Manifest,
    item_visitor: ItemVisitor,
    group_visitor: GroupVisitor,
    *,
    leave_group: LeaveVisitor | None = None,
    parent: Parent = None,
    on_error: ErrorHandler | None = None,
) -> Manifest:
    """Walk the manifest top-down, rebuilding it from the visitors' results.

    The group visitor receives each group without its items plus the parent
    it was rebuilt under; the group it returns is the parent of its children.
    ``leave_group``, when given, then receives the source group, the group
    rebuilt with its processed children, and the parent. Siblings are visited
    concurrently and recombined in order; a visitor returning ``None``
    removes the node.

    Args:
        tree: Columns of manifest nodes.
        item_visitor: Async callback for leaves.
        group_visitor: Async callback for groups, called before their children.
        leave_group: Async callback for groups, called after their children
            with ``(source_group, rebuilt_group, parent)``.
        parent: Group the columns belong to, ``None`` at the root.
        on_error: Receives ``(node, error)`` for failing nodes, which are
            dropped. Without it the first error in tree order is raised.

    Returns:
        The rebuilt tree.
    """

    async def visit(node: Node) -> Optional[Node]:
        if isinstance(node, ManifestItem):
            return await item_visitor(node, parent)
        entered = await group_visitor(node.without_items(), parent)
        if entered is None:
            return None
        items = await traverse_tree(
            node.items,
            item_visitor,
            group_visitor,
            leave_group=leave_group,
            parent=entered,
            on_error=on_error,
        )
        rebuilt = entered.model_copy(update={"items": items})
        if leave_group is None:
            return rebuilt
        return await leave_group(node, rebuilt, parent)

    return await _map_columns(tree, visit, on_error)


async def traverse_tree_items_first(
    tree: Manifest,
    item_visitor: ItemVisitor,
    group_visitor: GroupVisitor,
    *,
    parent: Parent = None,
    on_error: ErrorHandler | None = None,
) -> Manifest:
    """Walk the manifest bottom-up.

    Children are processed before their group, and the group visitor
    receives the group holding its already-processed children. Ordering,
    removal and error semantics match :func:`traverse_tree`.
    """

    async def visit(node: Node) -> Optional[Node]:
        if isinstance(node, ManifestItem):
            return await item_visitor(node, parent)
        items = await traverse_tree_items_first(
            node.items, item_visitor, group_visitor, parent=node, on_error=on_error
        )
        return await group_visitor(node.model_copy(update={"items": items}), parent)

    return await _map_columns(tree, visit, on_error)


async def _map_columns(
    tree: Manifest,
    visit: Callable[[Node], Awaitable[Optional[Node]]],
    on_error: ErrorHandler | None,
) -> Manifest:
    columns: Manifest = []
    for column in tree:
        results = await asyncio.gather(*(visit(node) for node in column), return_exceptions=True)
        rebuilt: list[Node] = []
        for node, result in zip(column, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception) or on_error is None:
                    raise result
                on_error(node, result)
                continue
            if result is not None:
                rebuilt.append(result)
        columns.append(rebuilt)
    return columns


def iter_tree(tree: Manifest) -> Iterator[Node]:
    """Yield every node in document order, groups before their children."""
    for column in tree:
        for node in column:
            yield node
            if isinstance(node, ManifestGroup):
                yield from iter_tree(node.items)


def flatten_tree(tree: Manifest) -> list[ManifestItem]:
    return [node for node in iter_tree(tree) if isinstance(node, ManifestItem)]
