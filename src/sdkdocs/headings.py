"""Heading anchors: slugs and explicit id overrides."""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator

from sdkdocs.content_tree import node_to_string, visit
from sdkdocs.schemas.content import ContentNode

_ID_OVERRIDE_RE = re.compile(r"\s*\{\{\s*id:\s*(['\"])(.+?)\1\s*\}\}\s*$")
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_CONTRACTION_RE = re.compile(r"([A-Za-z\d]+)'([ts])(\s|$)")
# Word boundaries inside camelCase and acronyms; "APIs" stays one word.
_DECAMELIZE = (
    (re.compile(r"([A-Z]{2,})(\d+)"), r"\1 \2"),
    (re.compile(r"([a-z\d]+)([A-Z]{2,})"), r"\1 \2"),
    (re.compile(r"([a-z\d])([A-Z])"), r"\1 \2"),
    (re.compile(r"([A-Z]+)([A-Z][a-rt-z\d]+)"), r"\1 \2"),
)


def slugify(text: str) -> str:
    """Lowercase ASCII slug with dash separators.

    ``useUser()`` becomes ``use-user`` and ``Don't`` becomes ``dont``, the
    anchors the docs site renders for those headings.
    """
    normalized = unicodedata.normalize("NFKD", text.replace("&", " and "))
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    for pattern, replacement in _DECAMELIZE:
        ascii_text = pattern.sub(replacement, ascii_text)
    ascii_text = _CONTRACTION_RE.sub(r"\1\2\3", ascii_text).lower()
    return _NON_SLUG_RE.sub("-", ascii_text).strip("-")


class Slugger:
    """Counting slugifier: repeated texts get ``-1``, ``-2``, ... suffixes."""

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def slug(self, text: str) -> str:
        base = slugify(text)
        count = self._seen.get(base)
        if count is None:
            self._seen[base] = 0
            return base
        count += 1
        self._seen[base] = count
        return f"{base}-{count}"


def split_heading_id(text: str) -> tuple[str, str | None]:
    """Split ``Title {{ id: 'custom' }}`` into ``("Title", "custom")``."""
    match = _ID_OVERRIDE_RE.search(text)
    if match is None:
        return text, None
    return text[: match.start()], match.group(2)


def iter_heading_anchors(tree: ContentNode) -> Iterator[tuple[ContentNode, str]]:
    """Yield every heading with its anchor, in document order."""
    slugger = Slugger()
    for heading in visit(tree, lambda node: node.type == "heading"):
        text, explicit = split_heading_id(node_to_string(heading))
        yield heading, explicit if explicit is not None else slugger.slug(text)


def find_duplicate_anchors(tree: ContentNode) -> list[tuple[ContentNode, str]]:
    """Headings whose anchor was already used earlier in the tree."""
    seen: set[str] = set()
    duplicates: list[tuple[ContentNode, str]] = []
    for heading, anchor in iter_heading_anchors(tree):
        if anchor in seen:
            duplicates.append((heading, anchor))
        seen.add(anchor)
    return duplicates
