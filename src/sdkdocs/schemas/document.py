"""Document and fragment models."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from sdkdocs.schemas.content import ContentNode
from sdkdocs.schemas.diagnostics import Position

FragmentKind = Literal["partial", "typedoc", "tooltip"]


class Frontmatter(BaseModel):
    """The frontmatter fields the build understands."""

    title: str
    description: str | None = None
    sdk: tuple[str, ...] | None = None
    position: Position | None = None


class Document(BaseModel):
    """A loaded document.

    ``resolved_sdk`` is the only field written after loading: the scope
    resolver back-assigns it for documents that declare no SDKs.
    """

    href: str
    file_path: str
    raw_content: str
    frontmatter: Frontmatter
    metadata: dict[str, Any] = Field(default_factory=dict)
    tree: ContentNode
    heading_anchors: set[str] = Field(default_factory=set)
    in_manifest: bool = False
    has_conditionals: bool = False
    resolved_sdk: tuple[str, ...] | None = None

    @property
    def declared_sdk(self) -> tuple[str, ...] | None:
        return self.frontmatter.sdk

    @property
    def sdk(self) -> tuple[str, ...] | None:
        """Effective scope: declared SDKs win over the manifest-resolved ones."""
        if self.frontmatter.sdk is not None:
            return self.frontmatter.sdk
        return self.resolved_sdk


class Fragment(BaseModel):
    """A reusable content fragment (partial, typedoc output or tooltip)."""

    key: str
    kind: FragmentKind
    path: Path
    tree: ContentNode
