"""Tests for SDK scope resolution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from sdkdocs.config import create_config
from sdkdocs.diagnostics import DiagnosticsCollector
from sdkdocs.exceptions import FatalDiagnosticError
from sdkdocs.manifest import iter_tree, parse_manifest
from sdkdocs.resolver import ScopeResolver, resolve_manifest, scopes_by_href
from sdkdocs.schemas.config import BuildConfig
from sdkdocs.schemas.content import ContentNode
from sdkdocs.schemas.document import Document, Frontmatter
from sdkdocs.schemas.manifest import Manifest, ManifestGroup, ManifestItem


def _document(href: str, sdk: tuple[str, ...] | None = None) -> Document:
    return Document(
        href=href,
        file_path=f"{href[len('/docs/'):]}.mdx",
        raw_content="",
        frontmatter=Frontmatter(title=href, sdk=sdk),
        tree=ContentNode(type="root"),
    )


def _docs(*documents: Document) -> dict[str, Document]:
    return {document.href: document for document in documents}


def _parse(navigation: list[Any], config: BuildConfig) -> Manifest:
    return parse_manifest(json.dumps({"navigation": navigation}), config)


def _by_title(manifest: Manifest) -> dict[str, Any]:
    return {node.title: node for node in iter_tree(manifest)}


@pytest.fixture
def two_sdk_config(tmp_path: Path) -> BuildConfig:
    return create_config(base_path=tmp_path, valid_sdks=["react", "vue"], dist_path=None)


class TestFirstPass:
    """Tests for top-down scope inheritance."""

    @pytest.mark.asyncio
    async def test_items_inherit_group_scope(self, config: BuildConfig) -> None:
        """Undeclared documents take their group's SDKs."""
        docs = _docs(_document("/docs/a"))
        manifest = _parse([[{"title": "G", "sdk": ["vue"], "items": [[{"title": "A", "href": "/docs/a"}]]}]], config)

        resolved = await resolve_manifest(manifest, docs, config, DiagnosticsCollector(config))
        assert _by_title(resolved)["A"].sdk == ("vue",)

    @pytest.mark.asyncio
    async def test_undeclared_group_takes_union_of_items(self, config: BuildConfig) -> None:
        """Groups without SDKs get the union of their items' SDKs."""
        docs = _docs(_document("/docs/a", ("astro",)), _document("/docs/b", ("react",)))
        manifest = _parse(
            [[{"title": "G", "items": [[{"title": "A", "href": "/docs/a"}, {"title": "B", "href": "/docs/b"}]]}]],
            config,
        )

        resolved = await resolve_manifest(manifest, docs, config, DiagnosticsCollector(config))
        assert _by_title(resolved)["G"].sdk == ("react", "astro")

    @pytest.mark.asyncio
    async def test_child_outside_parent_is_fatal(self, config: BuildConfig) -> None:
        """A document declaring SDKs outside its group's fails by default."""
        docs = _docs(_document("/docs/a", ("react",)))
        manifest = _parse([[{"title": "G", "sdk": ["vue"], "items": [[{"title": "A", "href": "/docs/a"}]]}]], config)

        with pytest.raises(FatalDiagnosticError) as exc_info:
            await resolve_manifest(manifest, docs, config, DiagnosticsCollector(config))
        message = str(exc_info.value)
        assert '["react"]' in message
        assert '["vue"]' in message

    @pytest.mark.asyncio
    async def test_group_outside_parent_is_fatal(self, config: BuildConfig) -> None:
        """Nested groups must stay within their parent's SDKs."""
        manifest = _parse(
            [[{"title": "Outer", "sdk": ["vue"], "items": [[{"title": "Inner", "sdk": ["react"], "items": []}]]}]],
            config,
        )
        with pytest.raises(FatalDiagnosticError, match='Group "Inner"'):
            await resolve_manifest(manifest, {}, config, DiagnosticsCollector(config))

    @pytest.mark.asyncio
    async def test_warning_policy_narrows_scope(self, tmp_path: Path) -> None:
        """With the warning policy the child is narrowed to its parent's SDKs."""
        config = create_config(
            base_path=tmp_path,
            valid_sdks=["react", "vue", "astro"],
            dist_path=None,
            rule_policies={"doc-sdk-filtered-by-parent": "warning"},
        )
        collector = DiagnosticsCollector(config)
        docs = _docs(_document("/docs/a", ("react", "vue")), _document("/docs/b", ("astro",)))
        manifest = _parse(
            [
                [
                    {
                        "title": "G",
                        "sdk": ["vue"],
                        "items": [[{"title": "A", "href": "/docs/a"}, {"title": "B", "href": "/docs/b"}]],
                    }
                ]
            ],
            config,
        )

        resolved = await resolve_manifest(manifest, docs, config, collector)
        nodes = _by_title(resolved)
        assert nodes["A"].sdk == ("vue",)
        assert nodes["B"].sdk == ("vue",)
        assert [d.rule_id for d in collector.warnings] == ["doc-sdk-filtered-by-parent"] * 2

    @pytest.mark.asyncio
    async def test_missing_document_is_fatal(self, config: BuildConfig) -> None:
        """Manifest entries must point at existing documents."""
        manifest = _parse([[{"title": "Ghost", "href": "/docs/ghost"}]], config)
        with pytest.raises(FatalDiagnosticError, match='Doc "Ghost"'):
            await resolve_manifest(manifest, {}, config, DiagnosticsCollector(config))

    @pytest.mark.asyncio
    async def test_external_links_are_not_documents(self, config: BuildConfig) -> None:
        """External and ignored entries need no document."""
        manifest = _parse(
            [[{"title": "Site", "href": "https://example.com"}, {"title": "Blank", "href": "/docs/x", "target": "_blank"}]],
            config,
        )
        resolved = await resolve_manifest(manifest, {}, config, DiagnosticsCollector(config))
        assert len(resolved[0]) == 2


class TestSecondPass:
    """Tests for bottom-up collapse and back-assignment."""

    @pytest.mark.asyncio
    async def test_full_coverage_collapses(self, two_sdk_config: BuildConfig) -> None:
        """A group whose children cover every SDK becomes unscoped."""
        docs = _docs(_document("/docs/a", ("react",)), _document("/docs/b", ("vue",)))
        manifest = _parse(
            [[{"title": "G", "items": [[{"title": "A", "href": "/docs/a"}, {"title": "B", "href": "/docs/b"}]]}]],
            two_sdk_config,
        )

        resolved = await resolve_manifest(manifest, docs, two_sdk_config, DiagnosticsCollector(two_sdk_config))
        assert _by_title(resolved)["G"].sdk is None

    @pytest.mark.asyncio
    async def test_unscoped_child_counts_as_everything(self, config: BuildConfig) -> None:
        """An unscoped child keeps its group unscoped."""
        docs = _docs(_document("/docs/a", ("react",)), _document("/docs/b"))
        manifest = _parse(
            [[{"title": "G", "items": [[{"title": "A", "href": "/docs/a"}, {"title": "B", "href": "/docs/b"}]]}]],
            config,
        )
        resolved = await resolve_manifest(manifest, docs, config, DiagnosticsCollector(config))
        nodes = _by_title(resolved)
        assert nodes["A"].sdk == ("react",)
        assert nodes["B"].sdk is None
        assert nodes["G"].sdk is None

    @pytest.mark.asyncio
    async def test_back_assigns_resolved_sdk(self, config: BuildConfig) -> None:
        """Documents without declared SDKs receive the resolved scope."""
        docs = _docs(_document("/docs/a"), _document("/docs/b", ("react",)))
        manifest = _parse([[{"title": "G", "sdk": ["vue", "astro"], "items": [[{"title": "A", "href": "/docs/a"}]]}]], config)

        await resolve_manifest(manifest, docs, config, DiagnosticsCollector(config))
        assert docs["/docs/a"].resolved_sdk == ("vue", "astro")
        assert docs["/docs/a"].sdk == ("vue", "astro")
        assert docs["/docs/b"].resolved_sdk is None


class TestResolverProperties:
    """Properties that hold for every resolved manifest."""

    NAVIGATION = [
        [
            {"title": "Intro", "href": "/docs/intro"},
            {
                "title": "Frameworks",
                "items": [
                    [
                        {"title": "React", "href": "/docs/react-guide"},
                        {
                            "title": "Vue group",
                            "sdk": ["vue"],
                            "items": [[{"title": "Vue", "href": "/docs/vue-guide"}]],
                        },
                    ]
                ],
            },
            {"title": "Astro only", "sdk": ["astro"], "items": [[{"title": "Astro", "href": "/docs/astro-guide"}]]},
        ]
    ]

    def _documents(self) -> dict[str, Document]:
        return _docs(
            _document("/docs/intro"),
            _document("/docs/react-guide", ("react",)),
            _document("/docs/vue-guide"),
            _document("/docs/astro-guide", ("astro",)),
        )

    @pytest.mark.asyncio
    async def test_idempotent(self, config: BuildConfig) -> None:
        """Resolving an already resolved manifest changes nothing."""
        manifest = _parse(self.NAVIGATION, config)
        docs = self._documents()
        resolver = ScopeResolver(config, docs, DiagnosticsCollector(config))

        once = await resolver.resolve(manifest)
        twice = await resolver.resolve(once)
        assert [node.model_dump() for node in iter_tree(twice)] == [node.model_dump() for node in iter_tree(once)]

    @pytest.mark.asyncio
    async def test_children_within_parent(self, config: BuildConfig) -> None:
        """Every scoped child is a subset of its scoped parent."""
        manifest = _parse(self.NAVIGATION, config)
        resolved = await resolve_manifest(manifest, self._documents(), config, DiagnosticsCollector(config))

        def check(columns: Manifest, parent_sdk: tuple[str, ...] | None) -> None:
            for column in columns:
                for node in column:
                    if parent_sdk is not None:
                        assert node.sdk is not None and set(node.sdk) <= set(parent_sdk)
                    if isinstance(node, ManifestGroup):
                        check(node.items, node.sdk)

        check(resolved, None)

    @pytest.mark.asyncio
    async def test_scopes_by_href(self, config: BuildConfig) -> None:
        """Resolved item scopes are indexed by href."""
        manifest = _parse(self.NAVIGATION, config)
        resolved = await resolve_manifest(manifest, self._documents(), config, DiagnosticsCollector(config))
        scopes = scopes_by_href(resolved)

        assert scopes["/docs/intro"] is None
        assert scopes["/docs/react-guide"] == ("react",)
        assert scopes["/docs/vue-guide"] == ("vue",)
        assert _by_title(resolved)["Frameworks"].sdk == ("react", "vue")
        assert all(isinstance(node, (ManifestItem, ManifestGroup)) for node in iter_tree(resolved))
