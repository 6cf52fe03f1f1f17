"""File helpers: async reads and writes, and docs folder scanning."""

from __future__ import annotations

import asyncio
from pathlib import Path


async def read_text_async(path: Path, encoding: str = "utf-8") -> str:
    """Read text from a file asynchronously using a thread pool.

    Args:
        path: Path to the file to read.
        encoding: Text encoding to use.

    Returns:
        The file contents as a string.
    """
    return await asyncio.to_thread(path.read_text, encoding=encoding)


async def write_text_async(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write text to a file asynchronously using a thread pool.

    Args:
        path: Path to the file to write.
        content: Text content to write.
        encoding: Text encoding to use.
    """
    await asyncio.to_thread(path.write_text, content, encoding=encoding)


async def mkdir_async(
    path: Path, parents: bool = False, exist_ok: bool = False
) -> None:
    """Create a directory asynchronously using a thread pool.

    Args:
        path: Path to the directory to create.
        parents: If True, create parent directories as needed.
        exist_ok: If True, don't raise an error if directory exists.
    """
    await asyncio.to_thread(path.mkdir, parents=parents, exist_ok=exist_ok)


def list_mdx_files(root: Path, exclude: tuple[Path, ...] = ()) -> list[str]:
    """List ``.mdx`` files under ``root`` as sorted POSIX paths relative to it.

    Args:
        root: Folder to scan recursively. A missing folder yields no files.
        exclude: Folders whose contents are skipped (e.g. the partials folder).

    Returns:
        Relative paths such as ``"guides/setup.mdx"``.
    """
    if not root.is_dir():
        return []
    excluded = [path.resolve() for path in exclude]
    files: list[str] = []
    for path in root.rglob("*.mdx"):
        resolved = path.resolve()
        if any(resolved.is_relative_to(folder) for folder in excluded):
            continue
        files.append(path.relative_to(root).as_posix())
    return sorted(files)


async def list_mdx_files_async(root: Path, exclude: tuple[Path, ...] = ()) -> list[str]:
    return await asyncio.to_thread(list_mdx_files, root, exclude)


def remove_mdx_suffix(value: str) -> str:
    """Strip a trailing ``.mdx`` (before any ``#hash``)."""
    path, hash_sep, hash_ = value.partition("#")
    if path.endswith(".mdx"):
        path = path[: -len(".mdx")]
    return f"{path}{hash_sep}{hash_}"


def href_for_file(file_path: str, base_docs_link: str = "/docs/") -> str:
    """Map ``guides/setup.mdx`` to ``/docs/guides/setup``."""
    return f"{base_docs_link}{remove_mdx_suffix(file_path)}"


def file_for_href(href: str, base_docs_link: str = "/docs/") -> str:
    """Map ``/docs/guides/setup`` to ``guides/setup.mdx``."""
    path = href[len(base_docs_link):] if href.startswith(base_docs_link) else href.lstrip("/")
    return f"{path.split('#')[0]}.mdx"
