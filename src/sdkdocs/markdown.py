"""Serialize content trees back to MDX with a custom serializer."""

from __future__ import annotations

import re

from sdkdocs.content_tree import node_to_string
from sdkdocs.schemas.content import ComponentAttribute, ContentNode

_BACKTICK_RUN_RE = re.compile(r"`+")


def serialize_tree(root: ContentNode) -> str:
    """Convert a content tree into MDX text ending with a newline."""
    blocks = _serialize_children(root)
    body = "\n\n".join(block for block in blocks if block).strip("\n")
    return f"{body}\n" if body else ""


def render_attributes(attributes: list[ComponentAttribute]) -> str:
    parts: list[str] = []
    for attribute in attributes:
        if attribute.value is None:
            parts.append(attribute.name)
        elif attribute.is_expression:
            parts.append(f"{attribute.name}={{{attribute.value}}}")
        elif '"' in attribute.value:
            parts.append(f"{attribute.name}='{attribute.value}'")
        else:
            parts.append(f'{attribute.name}="{attribute.value}"')
    return "".join(f" {part}" for part in parts)


def render_component(node: ContentNode, children: str = "") -> str:
    attributes = render_attributes(node.attributes)
    if node.data.get("self_closing") and not children:
        return f"<{node.name}{attributes} />"
    return f"<{node.name}{attributes}>{children}</{node.name}>"


def _serialize_children(container: ContentNode) -> list[str]:
    blocks: list[str] = []
    for child in container.children:
        blocks.extend(_serialize_block(child))
    return blocks


def _serialize_block(node: ContentNode) -> list[str]:
    if node.type == "heading":
        depth = int(node.data.get("depth", 1))
        return [f"{'#' * depth} {_serialize_inline_children(node).strip()}"]

    if node.type == "paragraph":
        paragraph = _serialize_inline_children(node)
        return [paragraph] if paragraph.strip() else []

    if node.type == "list":
        return [_serialize_list(node)]

    if node.type == "blockquote":
        inner = "\n\n".join(_serialize_children(node))
        return ["\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))]

    if node.type == "code":
        return [_serialize_code(node)]

    if node.type == "html":
        html = (node.value or "").rstrip("\n")
        return [html] if html else []

    if node.type == "thematic_break":
        return ["---"]

    if node.type == "table":
        table = _serialize_table(node)
        return [table] if table else []

    if node.type == "component":
        if node.data.get("inline"):
            return [_serialize_inline(node)]
        if node.data.get("self_closing") and not node.children:
            return [render_component(node)]
        inner = "\n\n".join(_serialize_children(node))
        opening = f"<{node.name}{render_attributes(node.attributes)}>"
        if not inner:
            return [f"{opening}\n</{node.name}>"]
        return [f"{opening}\n{inner}\n</{node.name}>"]

    if node.type == "root":
        return _serialize_children(node)

    inline = _serialize_inline(node)
    return [inline] if inline else []


def _serialize_code(node: ContentNode) -> str:
    value = node.value or ""
    if not node.data.get("fenced", True):
        return "\n".join(f"    {line}" if line else "" for line in value.rstrip("\n").split("\n"))
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(value)), default=0)
    fence = "`" * max(3, longest + 1)
    if not value.endswith("\n"):
        value += "\n"
    return f"{fence}{node.data.get('lang', '')}\n{value}{fence}"


def _serialize_list(node: ContentNode) -> str:
    ordered = bool(node.data.get("ordered"))
    start = node.data.get("start") or 1
    marker = node.data.get("marker") or ("." if ordered else "-")
    tight = node.data.get("tight", True)
    item_separator = "\n" if tight else "\n\n"

    items: list[str] = []
    for index, item in enumerate(node.children):
        prefix = f"{start + index}{marker} " if ordered else f"{marker} "
        blocks = _serialize_children(item)
        body = item_separator.join(blocks)
        lines = body.split("\n") if body else [""]
        indent = " " * len(prefix)
        rendered = [prefix + lines[0] if lines[0] else prefix.rstrip()]
        rendered.extend(f"{indent}{line}" if line else "" for line in lines[1:])
        items.append("\n".join(rendered))
    return item_separator.join(items)


def _serialize_table(table: ContentNode) -> str:
    rows: list[list[str]] = []
    for row in table.children:
        values = [
            _serialize_inline_children(cell).strip().replace("|", "\\|").replace("\n", "<br>")
            for cell in row.children
        ]
        if values:
            rows.append(values)

    if not rows:
        return ""

    max_cols = max(len(row) for row in rows)
    normalized = [row + [""] * (max_cols - len(row)) for row in rows]
    header = normalized[0]
    lines = [
        "| " + " | ".join(header) + " |",
        "| " + " | ".join("---" for _ in header) + " |",
    ]
    for row in normalized[1:]:
        lines.append("| " + " | ".join(row) + " |")
    return "\n".join(lines)


def _serialize_inline(node: ContentNode) -> str:
    if node.type in {"text", "html"}:
        return node.value or ""

    if node.type == "softbreak":
        return "\n"

    if node.type == "hardbreak":
        return "\\\n"

    if node.type == "inline_code":
        value = node.value or ""
        longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(value)), default=0)
        ticks = "`" * (longest + 1)
        padding = " " if value.startswith("`") or value.endswith("`") else ""
        return f"{ticks}{padding}{value}{padding}{ticks}"

    if node.type in {"emphasis", "strong", "delete"}:
        default = {"emphasis": "*", "strong": "**", "delete": "~~"}[node.type]
        marker = node.data.get("marker") or default
        return f"{marker}{_serialize_inline_children(node)}{marker}"

    if node.type == "link":
        text = _serialize_inline_children(node)
        return f"[{text}]({node.data.get('url', '')}{_title_suffix(node)})"

    if node.type == "image":
        return f"![{node_to_string(node)}]({node.data.get('url', '')}{_title_suffix(node)})"

    if node.type == "component":
        return render_component(node, _serialize_inline_children(node))

    return _serialize_inline_children(node)


def _serialize_inline_children(node: ContentNode) -> str:
    return "".join(_serialize_inline(child) for child in node.children)


def _title_suffix(node: ContentNode) -> str:
    title = node.data.get("title")
    if not title:
        return ""
    escaped = str(title).replace('"', '\\"')
    return f' "{escaped}"'
