"""Test setup for sdkdocs."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sdkdocs.config import create_config  # noqa: E402
from sdkdocs.schemas.config import BuildConfig  # noqa: E402

VALID_SDKS = ("react", "vue", "astro")


@pytest.fixture
def config(tmp_path: Path) -> BuildConfig:
    """Config rooted at an empty temporary folder."""
    return create_config(base_path=tmp_path, valid_sdks=VALID_SDKS, dist_path=None)


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., BuildConfig]:
    """Write a docs folder and manifest, and return a config pointing at it.

    ``files`` maps paths relative to ``docs/`` to their contents; the
    manifest is the ``navigation`` list.
    """

    def _make(
        files: dict[str, str],
        navigation: list[Any],
        **config_kwargs: Any,
    ) -> BuildConfig:
        docs = tmp_path / "docs"
        docs.mkdir(exist_ok=True)
        for relative, content in files.items():
            path = docs / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        (docs / "manifest.json").write_text(json.dumps({"navigation": navigation}), encoding="utf-8")
        config_kwargs.setdefault("valid_sdks", VALID_SDKS)
        config_kwargs.setdefault("dist_path", None)
        return create_config(base_path=tmp_path, **config_kwargs)

    return _make


def doc(title: str, body: str = "", *, description: str | None = "A test doc", sdk: str | None = None) -> str:
    """Render an ``.mdx`` document with frontmatter."""
    lines = ["---", f"title: {title}"]
    if description is not None:
        lines.append(f"description: {description}")
    if sdk is not None:
        lines.append(f"sdk: {sdk}")
    lines.append("---")
    return "\n".join(lines) + "\n\n" + body
