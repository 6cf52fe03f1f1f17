"""Tests for file helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdkdocs.file_utils import (
    file_for_href,
    href_for_file,
    list_mdx_files,
    list_mdx_files_async,
    mkdir_async,
    read_text_async,
    remove_mdx_suffix,
    write_text_async,
)


class TestAsyncFileOperations:
    """Tests for async file operations."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path: Path) -> None:
        """Text written asynchronously reads back unchanged."""
        path = tmp_path / "doc.mdx"
        await write_text_async(path, "# Hello\n")
        assert await read_text_async(path) == "# Hello\n"

    @pytest.mark.asyncio
    async def test_read_missing_file(self, tmp_path: Path) -> None:
        """Reading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            await read_text_async(tmp_path / "missing.mdx")

    @pytest.mark.asyncio
    async def test_mkdir_with_parents(self, tmp_path: Path) -> None:
        """Nested folders are created when parents=True."""
        path = tmp_path / "a" / "b"
        await mkdir_async(path, parents=True, exist_ok=True)
        assert path.is_dir()


class TestListMdxFiles:
    """Tests for list_mdx_files."""

    def test_lists_sorted_relative_paths(self, tmp_path: Path) -> None:
        """Only .mdx files are listed, relative and sorted."""
        (tmp_path / "guides").mkdir()
        (tmp_path / "guides" / "setup.mdx").write_text("x")
        (tmp_path / "index.mdx").write_text("x")
        (tmp_path / "manifest.json").write_text("{}")

        assert list_mdx_files(tmp_path) == ["guides/setup.mdx", "index.mdx"]

    def test_excludes_folders(self, tmp_path: Path) -> None:
        """Files under excluded folders are skipped."""
        (tmp_path / "_partials").mkdir()
        (tmp_path / "_partials" / "snippet.mdx").write_text("x")
        (tmp_path / "index.mdx").write_text("x")

        assert list_mdx_files(tmp_path, exclude=(tmp_path / "_partials",)) == ["index.mdx"]

    def test_missing_root(self, tmp_path: Path) -> None:
        """A missing folder yields no files."""
        assert list_mdx_files(tmp_path / "nope") == []

    @pytest.mark.asyncio
    async def test_async_variant(self, tmp_path: Path) -> None:
        """The async variant returns the same listing."""
        (tmp_path / "a.mdx").write_text("x")
        assert await list_mdx_files_async(tmp_path) == ["a.mdx"]


class TestHrefMapping:
    """Tests for href and file path mapping."""

    def test_remove_mdx_suffix(self) -> None:
        """The suffix is removed before any hash."""
        assert remove_mdx_suffix("/docs/a.mdx") == "/docs/a"
        assert remove_mdx_suffix("/docs/a.mdx#setup") == "/docs/a#setup"
        assert remove_mdx_suffix("/docs/a") == "/docs/a"

    def test_href_for_file(self) -> None:
        """File paths map to hrefs under the docs base."""
        assert href_for_file("guides/setup.mdx") == "/docs/guides/setup"

    def test_file_for_href(self) -> None:
        """Hrefs map back to file paths, without the hash."""
        assert file_for_href("/docs/guides/setup#intro") == "guides/setup.mdx"
