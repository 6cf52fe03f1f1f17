"""Format build outputs and write them to the dist folder."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import frontmatter

from sdkdocs.file_utils import mkdir_async, write_text_async
from sdkdocs.markdown import render_attributes, serialize_tree
from sdkdocs.schemas.build import BuildResult
from sdkdocs.schemas.config import BuildConfig, ManifestOptions
from sdkdocs.schemas.content import ComponentAttribute, ContentNode
from sdkdocs.schemas.document import Document
from sdkdocs.schemas.manifest import Manifest, ManifestGroup
from sdkdocs.sdk import SDK_PLACEHOLDER, scope_href_to_sdk

logger = logging.getLogger(__name__)

LANDING_PAGE_COMPONENT = "SDKDocRedirectPage"
INSTANT_PREFIX = "~/"


def format_manifest(manifest: Manifest, options: ManifestOptions) -> dict[str, Any]:
    """Serialize a manifest, omitting options equal to their configured defaults."""
    defaults = {"wrap": options.wrap, "collapse": options.collapse, "hideTitle": options.hide_title}

    def dump(node: Any) -> dict[str, Any]:
        data = node.model_dump(by_alias=True, exclude_none=True, exclude={"items"})
        if "sdk" in data:
            data["sdk"] = list(data["sdk"])
        for key, default in defaults.items():
            if data.get(key) == default:
                del data[key]
        if isinstance(node, ManifestGroup):
            data["items"] = [[dump(child) for child in column] for column in node.items]
        return data

    return {"navigation": [[dump(node) for node in column] for column in manifest]}


def render_document(document: Document, tree: ContentNode, **extra_metadata: Any) -> str:
    """Render a document's frontmatter and transformed content as MDX."""
    post = frontmatter.Post(serialize_tree(tree).rstrip("\n"), **{**document.metadata, **extra_metadata})
    return frontmatter.dumps(post, sort_keys=False)


def render_landing_page(document: Document, config: BuildConfig, *, instant: bool = False) -> str:
    """Render the page shown at a multi-variant document's core path.

    It redirects the reader to the variant of their SDK.
    """
    attributes: list[ComponentAttribute] = []
    if instant:
        attributes.append(ComponentAttribute(name="instant"))
    attributes.append(ComponentAttribute(name="title", value=document.frontmatter.title))
    if document.frontmatter.description:
        attributes.append(ComponentAttribute(name="description", value=document.frontmatter.description))
    attributes.append(ComponentAttribute(name="href", value=canonical_href(document, config)))
    attributes.append(
        ComponentAttribute(
            name="sdks",
            value=json.dumps(list(document.sdk or ()), separators=(",", ":")),
            is_expression=True,
        )
    )
    return f"---\ntemplate: wide\n---\n<{LANDING_PAGE_COMPONENT}{render_attributes(attributes)} />"


def canonical_href(document: Document, config: BuildConfig) -> str:
    return scope_href_to_sdk(document.href, SDK_PLACEHOLDER, config.base_docs_link)


def landing_page_files(document: Document, config: BuildConfig) -> dict[str, str]:
    """Core output files for a document that declares its SDKs."""
    return {
        document.file_path: render_landing_page(document, config),
        f"{INSTANT_PREFIX}{document.file_path}": render_landing_page(document, config, instant=True),
    }


async def write_build_output(
    result: BuildResult, config: BuildConfig, dist_path: Path | None = None
) -> list[str]:
    """Write every output file of ``result`` under the dist folder.

    Args:
        result: Finished build.
        config: Build configuration, for manifest defaults.
        dist_path: Output folder; defaults to ``config.dist_path``.

    Returns:
        Paths of the written ``.mdx`` files, relative to the dist folder.

    Raises:
        ValueError: If no dist folder is configured.
        OSError: If a file cannot be written.
    """
    target = dist_path or config.dist_path
    if target is None:
        raise ValueError("No dist folder configured")

    files: dict[str, str] = dict(result.core_files)
    for sdk, sdk_files in result.sdk_files.items():
        for relative, content in sdk_files.items():
            files[f"{sdk}/{relative}"] = content

    manifests = {"manifest.json": format_manifest(result.manifest, config.manifest_options)}
    for sdk, manifest in result.sdk_manifests.items():
        manifests[f"{sdk}/manifest.json"] = format_manifest(manifest, config.manifest_options)

    written = list(files)
    directory = [{"path": path} for path in written]

    async def write(relative: str, content: str) -> None:
        path = target / relative
        await mkdir_async(path.parent, parents=True, exist_ok=True)
        await write_text_async(path, content)

    await mkdir_async(target, parents=True, exist_ok=True)
    await asyncio.gather(
        *(write(relative, content) for relative, content in files.items()),
        *(write(relative, json.dumps(data, indent=2)) for relative, data in manifests.items()),
        write("directory.json", json.dumps(directory, indent=2)),
    )
    logger.info("Wrote %d docs and %d manifests to %s", len(files), len(manifests), target)
    return written
