"""Build pipeline: load, resolve, validate and emit every documentation variant."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping

from sdkdocs.conditionals import filter_conditionals, validate_conditionals
from sdkdocs.content_tree import clone_tree
from sdkdocs.diagnostics import DiagnosticsCollector
from sdkdocs.exceptions import BuildCancelledError
from sdkdocs.fragments import FRAGMENT_SPECS, Fragments, embed_all, fragment_root, load_fragments
from sdkdocs.headings import find_duplicate_anchors
from sdkdocs.links import (
    embed_sdk_links,
    link_dependency,
    split_link,
    validate_fragment_hash_links,
    validate_links,
)
from sdkdocs.loader import load_documents
from sdkdocs.manifest import Parent, flatten_tree, read_manifest, traverse_tree
from sdkdocs.output import canonical_href, landing_page_files, render_document, write_build_output
from sdkdocs.resolver import resolve_manifest, scopes_by_href
from sdkdocs.schemas.build import BuildResult
from sdkdocs.schemas.config import BuildConfig
from sdkdocs.schemas.content import ContentNode
from sdkdocs.schemas.diagnostics import Section
from sdkdocs.schemas.document import Document, Fragment, FragmentKind
from sdkdocs.schemas.manifest import Manifest, ManifestGroup, ManifestItem
from sdkdocs.sdk import SDK_PLACEHOLDER, SdkScope, applies_to, scope_href_to_sdk
from sdkdocs.store import ContentStore

logger = logging.getLogger(__name__)

_FRAGMENT_SECTIONS: dict[FragmentKind, Section] = {spec.kind: spec.section for spec in FRAGMENT_SPECS}


class DocsBuilder:
    """Runs one build over a docs folder.

    Phases run strictly in order: load (manifest, fragments, documents),
    resolve (SDK scopes), validate (links, conditional blocks) and emit (the
    core output plus one variant per SDK, concurrently). Cancellation is
    checked between phases. A fatal diagnostic anywhere aborts the build
    with :class:`~sdkdocs.exceptions.FatalDiagnosticError`.
    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        store: ContentStore | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        self.config = config
        self.store = store or ContentStore()
        self.collector = DiagnosticsCollector(config)
        self._cancel_event = cancel_event
        self._universe = config.universe
        self._docs: dict[str, Document] = {}
        self._fragments: dict[FragmentKind, Fragments] = {}
        self._scopes: dict[str, SdkScope] = {}

    async def run(self) -> BuildResult:
        """Run every phase and return the outputs and the warnings report.

        Raises:
            ManifestError: If the manifest cannot be read or validated.
            DocumentLoadError: If a document or fragment cannot be read or parsed.
            FatalDiagnosticError: On the first fatal diagnostic.
            BuildCancelledError: If the cancel event is set between phases.
        """
        self._check_cancelled("load")
        manifest = await self._load()

        self._check_cancelled("resolve")
        resolved = await resolve_manifest(manifest, self._docs, self.config, self.collector)
        self._scopes = scopes_by_href(resolved)

        self._check_cancelled("validate")
        await self._validate()

        self._check_cancelled("emit")
        core_files, sdk_results = await asyncio.gather(
            self._emit_core(),
            asyncio.gather(*(self._emit_sdk(sdk, resolved) for sdk in self._universe)),
        )
        core_manifest = await self._core_manifest(resolved)

        report = self.collector.format_report()
        logger.info("Build finished with %d warnings", len(self.collector.warnings))
        return BuildResult(
            report=report,
            diagnostics=self.collector.diagnostics,
            documents=self._docs,
            manifest=core_manifest,
            sdk_manifests={sdk: manifest for sdk, (manifest, _) in zip(self._universe, sdk_results)},
            core_files=core_files,
            sdk_files={sdk: files for sdk, (_, files) in zip(self._universe, sdk_results)},
        )

    def _check_cancelled(self, phase: str) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise BuildCancelledError(f"Build cancelled before the {phase} phase")

    async def _load(self) -> Manifest:
        specs = [spec for spec in FRAGMENT_SPECS if fragment_root(self.config, spec) is not None]
        manifest, *loaded = await asyncio.gather(
            read_manifest(self.config),
            *(load_fragments(self.config, self.store, spec) for spec in specs),
        )
        self._fragments = {spec.kind: fragments for spec, fragments in zip(specs, loaded)}
        manifest_hrefs = {split_link(item.href)[0] for item in flatten_tree(manifest)}
        self._docs = await load_documents(
            self.config,
            self.store,
            self.collector,
            fragments=self._fragments,
            manifest_hrefs=manifest_hrefs,
        )
        return manifest

    async def _validate(self) -> None:
        await asyncio.gather(
            *(self._validate_document(document) for document in self._docs.values()),
            *(
                self._validate_fragment_links(fragment.tree, fragment.key, spec.section)
                for spec in FRAGMENT_SPECS
                for fragment in self._fragments.get(spec.kind, {}).values()
            ),
        )

    async def _validate_document(self, document: Document) -> None:
        source = self.config.docs_path / document.file_path
        validate_links(
            document.tree,
            config=self.config,
            docs=self._docs,
            collector=self.collector,
            file=document.file_path,
            href=document.href,
            on_link=lambda target: self.store.record_dependency(source, link_dependency(target, self.config)),
        )
        embedded_fragments: list[Fragment] = []
        embedded = self._embed(document, on_embed=embedded_fragments.append)
        for fragment in embedded_fragments:
            validate_fragment_hash_links(
                fragment.tree,
                document,
                collector=self.collector,
                file=fragment.key,
                section=_FRAGMENT_SECTIONS[fragment.kind],
            )
        validate_conditionals(
            embedded,
            self._universe,
            declared_sdk=document.declared_sdk,
            manifest_sdk=self._scopes.get(document.href),
            href=document.href,
            collector=self.collector,
            file=document.file_path,
        )

    async def _validate_fragment_links(self, tree: ContentNode, key: str, section: Section) -> None:
        validate_links(
            tree,
            config=self.config,
            docs=self._docs,
            collector=self.collector,
            file=key,
            section=section,
        )

    def _embed(
        self, document: Document, on_embed: Callable[[Fragment], None] | None = None
    ) -> ContentNode:
        return embed_all(
            clone_tree(document.tree),
            self._fragments,
            collector=self.collector,
            file=document.file_path,
            report_warnings=False,
            on_embed=on_embed,
        )

    def _check_path_conflict(self, document: Document) -> None:
        relative = document.href[len(self.config.base_docs_link):]
        if relative.split("/")[0] in self._universe:
            self.collector.safe_fail(
                "sdk-path-conflict", document.href, f"{relative}.mdx", file=document.file_path
            )

    async def _emit_core(self) -> dict[str, str]:
        files: dict[str, str] = {}
        for document in self._docs.values():
            self._check_path_conflict(document)
            if document.declared_sdk is not None:
                files.update(landing_page_files(document, self.config))
                continue
            tree = embed_sdk_links(
                self._embed(document),
                config=self.config,
                docs=self._docs,
                doc_sdk=document.sdk,
            )
            files[document.file_path] = render_document(document, tree)
        return files

    async def _emit_sdk(self, sdk: str, resolved: Manifest) -> tuple[Manifest, dict[str, str]]:
        files: dict[str, str] = {}
        for document in self._docs.values():
            if not applies_to(document.sdk, sdk):
                continue
            tree = filter_conditionals(self._embed(document), sdk, self._universe)
            for heading, anchor in find_duplicate_anchors(tree):
                self.collector.safe_fail(
                    "duplicate-heading-id",
                    document.href,
                    anchor,
                    file=document.file_path,
                    position=heading.position,
                )
            if document.declared_sdk is None:
                continue
            tree = embed_sdk_links(
                tree,
                config=self.config,
                docs=self._docs,
                doc_sdk=document.sdk,
                current_sdk=sdk,
            )
            files[document.file_path] = render_document(
                document, tree, canonical=canonical_href(document, self.config)
            )
        manifest = await sdk_manifest(resolved, sdk, self._docs, self.config)
        return manifest, files

    async def _core_manifest(self, resolved: Manifest) -> Manifest:
        docs = self._docs
        config = self.config

        async def item(node: ManifestItem, parent: Parent) -> ManifestItem:
            document = docs.get(split_link(node.href)[0])
            if document is None or document.declared_sdk is None:
                return node
            return node.model_copy(
                update={"href": scope_href_to_sdk(node.href, SDK_PLACEHOLDER, config.base_docs_link)}
            )

        async def group(node: ManifestGroup, parent: Parent) -> ManifestGroup:
            return node

        return await traverse_tree(resolved, item, group)


async def sdk_manifest(
    resolved: Manifest,
    sdk: str,
    docs: Mapping[str, Document],
    config: BuildConfig,
) -> Manifest:
    """The manifest of one SDK variant.

    Nodes scoped to other SDKs are pruned; items whose document declares its
    own SDKs point at the SDK-namespaced href.
    """

    async def item(node: ManifestItem, parent: Parent) -> ManifestItem | None:
        if not applies_to(node.sdk, sdk):
            return None
        document = docs.get(split_link(node.href)[0])
        if document is None or document.declared_sdk is None:
            return node
        return node.model_copy(update={"href": scope_href_to_sdk(node.href, sdk, config.base_docs_link)})

    async def group(node: ManifestGroup, parent: Parent) -> ManifestGroup | None:
        return node if applies_to(node.sdk, sdk) else None

    return await traverse_tree(resolved, item, group)


async def build_docs(
    config: BuildConfig,
    *,
    store: ContentStore | None = None,
    cancel_event: asyncio.Event | None = None,
    write_output: bool = True,
) -> BuildResult:
    """Build the docs and, when a dist folder is configured, write the outputs.

    Args:
        config: Build configuration.
        store: Content store to reuse across rebuilds; a fresh one by default.
        cancel_event: Set it to stop the build at the next phase boundary.
        write_output: Write files to ``config.dist_path`` when it is set.

    Returns:
        The build result; ``result.report`` is empty for a clean build.
    """
    result = await DocsBuilder(config, store=store, cancel_event=cancel_event).run()
    if write_output and config.dist_path is not None:
        if cancel_event is not None and cancel_event.is_set():
            raise BuildCancelledError("Build cancelled before writing output")
        await write_build_output(result, config)
    return result


async def build(config: BuildConfig, **kwargs) -> str:
    """Build the docs and return the formatted warnings report."""
    result = await build_docs(config, **kwargs)
    return result.report
