"""Resolve the SDK scope of every manifest node and document."""

from __future__ import annotations

import logging
from typing import Mapping

from sdkdocs.diagnostics import DiagnosticsCollector
from sdkdocs.file_utils import file_for_href
from sdkdocs.links import split_link
from sdkdocs.manifest import Parent, iter_tree, traverse_tree, traverse_tree_items_first
from sdkdocs.schemas.config import BuildConfig
from sdkdocs.schemas.document import Document
from sdkdocs.schemas.manifest import Manifest, ManifestGroup, ManifestItem
from sdkdocs.sdk import SdkScope, SdkUniverse, is_subset

logger = logging.getLogger(__name__)


class ScopeResolver:
    """Two-pass SDK scope resolution over a manifest.

    The first pass flows scopes top-down (documents and groups inherit their
    parent's SDKs unless they declare their own, which must then be a subset)
    and, on the way back up, gives undeclared groups the union of their
    items. The second pass runs bottom-up over the first pass's output,
    counting unscoped children as the whole universe, so groups whose
    children cover every SDK become unscoped again. It also writes the
    resolved scope back onto documents that declare none.

    Running :meth:`resolve` on its own output yields the same manifest.
    """

    def __init__(
        self,
        config: BuildConfig,
        docs: Mapping[str, Document],
        collector: DiagnosticsCollector,
    ) -> None:
        self._config = config
        self._docs = docs
        self._collector = collector
        self._universe: SdkUniverse = config.universe

    async def resolve(self, manifest: Manifest) -> Manifest:
        scoped = await self.first_pass(manifest)
        resolved = await self.second_pass(scoped)
        logger.info("Resolved SDK scopes for %d manifest nodes", sum(1 for _ in iter_tree(resolved)))
        return resolved

    async def first_pass(self, manifest: Manifest) -> Manifest:
        return await traverse_tree(
            manifest, self._scope_item, self._enter_group, leave_group=self._leave_group
        )

    async def second_pass(self, manifest: Manifest) -> Manifest:
        return await traverse_tree_items_first(manifest, self._back_assign_item, self._collapse_group)

    def document_for(self, item: ManifestItem) -> Document | None:
        if not self._is_doc_item(item):
            return None
        target, _ = split_link(item.href)
        return self._docs.get(target)

    def _is_doc_item(self, item: ManifestItem) -> bool:
        return (
            item.target is None
            and self._config.is_internal_link(item.href)
            and not self._config.is_ignored_path(item.href)
        )

    def _narrow(self, declared: tuple[str, ...], parent_sdk: tuple[str, ...]) -> tuple[str, ...]:
        return self._universe.intersection(declared, parent_sdk) or parent_sdk

    async def _scope_item(self, item: ManifestItem, parent: Parent) -> ManifestItem:
        parent_sdk = parent.sdk if parent is not None else None
        if not self._is_doc_item(item):
            return item.model_copy(update={"sdk": item.sdk if item.sdk is not None else parent_sdk})

        target, _ = split_link(item.href)
        document = self._docs.get(target)
        if document is None:
            self._collector.safe_fail(
                "doc-not-found",
                item.title,
                target,
                file=file_for_href(target, self._config.base_docs_link),
            )
            return item.model_copy(update={"sdk": item.sdk if item.sdk is not None else parent_sdk})

        declared = document.declared_sdk if document.declared_sdk is not None else item.sdk
        if declared is None:
            return item.model_copy(update={"sdk": parent_sdk})
        if parent_sdk is not None and not is_subset(declared, parent_sdk):
            self._collector.report(
                "doc-sdk-filtered-by-parent",
                item.title,
                declared,
                parent_sdk,
                file=document.file_path,
            )
            declared = self._narrow(declared, parent_sdk)
        return item.model_copy(update={"sdk": declared})

    async def _enter_group(self, group: ManifestGroup, parent: Parent) -> ManifestGroup:
        parent_sdk = parent.sdk if parent is not None else None
        declared = group.sdk
        if declared is None:
            return group.model_copy(update={"sdk": parent_sdk})
        if parent_sdk is not None and not is_subset(declared, parent_sdk):
            self._collector.report(
                "group-sdk-filtered-by-parent",
                group.title,
                declared,
                parent_sdk,
                file=self._manifest_file(),
            )
            declared = self._narrow(declared, parent_sdk)
        return group.model_copy(update={"sdk": declared})

    async def _leave_group(
        self, source: ManifestGroup, group: ManifestGroup, parent: Parent
    ) -> ManifestGroup:
        if source.sdk is not None:
            return group
        item_scopes = [
            node.sdk
            for node in iter_tree(group.items)
            if isinstance(node, ManifestItem) and node.sdk is not None
        ]
        union = self._universe.union(item_scopes)
        if union:
            return group.model_copy(update={"sdk": union})
        return group.model_copy(update={"sdk": parent.sdk if parent is not None else None})

    async def _back_assign_item(self, item: ManifestItem, parent: Parent) -> ManifestItem:
        document = self.document_for(item)
        if document is not None and document.declared_sdk is None and item.sdk is not None:
            previous = document.resolved_sdk or ()
            document.resolved_sdk = self._universe.union([previous, item.sdk])
        return item

    async def _collapse_group(self, group: ManifestGroup, parent: Parent) -> ManifestGroup:
        children = [node for column in group.items for node in column]
        if not children:
            return group
        union = self._universe.union(self._universe.expand(child.sdk) for child in children)
        scope: SdkScope = None if self._universe.covers(union) else union
        return group.model_copy(update={"sdk": scope})

    def _manifest_file(self) -> str:
        try:
            return self._config.manifest_path.relative_to(self._config.docs_path).as_posix()
        except ValueError:
            return self._config.manifest_path.name


async def resolve_manifest(
    manifest: Manifest,
    docs: Mapping[str, Document],
    config: BuildConfig,
    collector: DiagnosticsCollector,
) -> Manifest:
    """Resolve SDK scopes for ``manifest``; see :class:`ScopeResolver`."""
    return await ScopeResolver(config, docs, collector).resolve(manifest)


def scopes_by_href(manifest: Manifest) -> dict[str, SdkScope]:
    """Resolved scope of every manifest item, keyed by href."""
    return {
        node.href: node.sdk
        for node in iter_tree(manifest)
        if isinstance(node, ManifestItem)
    }
