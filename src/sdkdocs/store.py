"""Explicit content store: file and fragment caches plus dependency edges."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from pathlib import Path
from typing import Awaitable, Callable

from sdkdocs.file_utils import read_text_async
from sdkdocs.schemas.content import ContentNode
from sdkdocs.schemas.document import Fragment

logger = logging.getLogger(__name__)


class ContentStore:
    """Caches shared by the phases of a build and, optionally, across rebuilds.

    The store is passed explicitly to every component that reads content.
    Parsed trees and fragments handed out are shared and must be treated as
    immutable; callers clone before changing them. Dependency edges record
    which files a file's output depends on (embedded fragments, link
    targets) so :meth:`invalidate` can drop everything affected by a change.
    """

    def __init__(self) -> None:
        self._texts: dict[Path, str] = {}
        self._trees: dict[Path, tuple[str, ContentNode]] = {}
        self._fragments: dict[str, Fragment] = {}
        self._pending: dict[str, asyncio.Task[Fragment]] = {}
        self._dependents: defaultdict[Path, set[Path]] = defaultdict(set)

    async def read_text(self, path: Path) -> str:
        """Return the file's text, reading it at most once until invalidated."""
        cached = self._texts.get(path)
        if cached is not None:
            return cached
        text = await read_text_async(path)
        self._texts[path] = text
        return text

    def parsed_tree(self, path: Path, source: str, parse: Callable[[], ContentNode]) -> ContentNode:
        """Return the cached tree for ``path`` if it was parsed from ``source``."""
        cached = self._trees.get(path)
        if cached is not None and cached[0] == source:
            return cached[1]
        tree = parse()
        self._trees[path] = (source, tree)
        return tree

    async def get_fragment(self, key: str, load: Callable[[], Awaitable[Fragment]]) -> Fragment:
        """Return the fragment for ``key``, loading it once.

        Concurrent callers asking for a fragment that is still loading wait
        for the same load instead of starting another.
        """
        cached = self._fragments.get(key)
        if cached is not None:
            return cached
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(load())
            self._pending[key] = task
        try:
            fragment = await task
        finally:
            if self._pending.get(key) is task and task.done():
                del self._pending[key]
        self._fragments[key] = fragment
        return fragment

    @property
    def fragments(self) -> dict[str, Fragment]:
        return dict(self._fragments)

    def record_dependency(self, dependent: Path, dependency: Path) -> None:
        if dependent != dependency:
            self._dependents[dependency].add(dependent)

    def dependents_of(self, path: Path) -> set[Path]:
        """Every file that depends on ``path``, directly or transitively."""
        found: set[Path] = set()
        queue = [path]
        while queue:
            current = queue.pop()
            for dependent in self._dependents.get(current, ()):
                if dependent not in found:
                    found.add(dependent)
                    queue.append(dependent)
        found.discard(path)
        return found

    def invalidate(self, *paths: Path) -> set[Path]:
        """Drop cached data for ``paths`` and every file depending on them.

        Returns:
            The set of files that must be rebuilt.
        """
        dirty: set[Path] = set()
        for path in paths:
            dirty.add(path)
            dirty |= self.dependents_of(path)
        for path in dirty:
            self._texts.pop(path, None)
            self._trees.pop(path, None)
        for key in [key for key, fragment in self._fragments.items() if fragment.path in dirty]:
            del self._fragments[key]
        logger.info("Invalidated %d cached files", len(dirty))
        return dirty
