"""Parse Markdown/MDX into content trees and operate on them."""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field
from typing import Callable, Iterator, Union

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from sdkdocs.exceptions import ContentParseError
from sdkdocs.schemas.content import ComponentAttribute, ContentNode
from sdkdocs.schemas.diagnostics import Position

_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")
_COMPONENT_OPEN_RE = re.compile(r"<([A-Z][\w.]*)(?=[\s/>]|$)")
_COMPONENT_CLOSE_RE = re.compile(r"</([A-Z][\w.]*)\s*>")
_ATTRIBUTE_NAME_RE = re.compile(r"[A-Za-z_$][\w:.$-]*")

_BLOCK_TYPES = {
    "paragraph": "paragraph",
    "heading": "heading",
    "blockquote": "blockquote",
    "bullet_list": "list",
    "ordered_list": "list",
    "list_item": "list_item",
    "fence": "code",
    "code_block": "code",
    "html_block": "html",
    "hr": "thematic_break",
    "table": "table",
    "tr": "table_row",
    "th": "table_cell",
    "td": "table_cell",
}

_INLINE_TYPES = {
    "text": "text",
    "em": "emphasis",
    "strong": "strong",
    "code_inline": "inline_code",
    "link": "link",
    "image": "image",
    "softbreak": "softbreak",
    "hardbreak": "hardbreak",
    "html_inline": "html",
    "s": "delete",
}

# A transform callback keeps a node (returns it), replaces it (returns a new
# node), splices in several nodes (returns a list) or drops it (returns None).
TransformResult = Union[ContentNode, list[ContentNode], None]
Transform = Callable[[ContentNode], TransformResult]


_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.S | re.M)


def split_frontmatter(text: str) -> tuple[str | None, str, int]:
    """Split a leading ``---`` block from a document.

    Returns:
        ``(frontmatter_block, body, body_line_offset)``; the block is ``None``
        when the document has none. The block keeps its delimiters so it can
        be handed to a frontmatter parser unchanged.
    """
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        return None, text, 0
    block = match.group(0)
    return block, text[match.end():], block.count("\n")


def _markdown_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable("table")


_PARSER = _markdown_parser()


@dataclass
class _Frame:
    node: ContentNode
    start_line: int


@dataclass
class _Segment:
    start: int | None = None
    lines: list[str] = field(default_factory=list)

    def add(self, index: int, line: str) -> None:
        if self.start is None:
            self.start = index
        self.lines.append(line)


def parse_mdx(text: str, *, line_offset: int = 0) -> ContentNode:
    """Parse Markdown with MDX block components into a content tree.

    Markdown is handled by markdown-it. A capitalised component tag that
    starts a line outside fenced code, with nothing after it on that line
    but its own closing tag, becomes a block ``component`` node whose body
    is parsed as Markdown children. Component tags inside paragraphs become
    inline ``component`` nodes.

    Args:
        text: Document body (frontmatter already removed).
        line_offset: Lines preceding ``text`` in its source file, so
            positions point at the original file.

    Returns:
        A ``root`` node.

    Raises:
        ContentParseError: On unclosed or mismatched component tags.
    """
    lines = text.split("\n")
    root = ContentNode(type="root")
    stack: list[_Frame] = [_Frame(root, 0)]
    segment = _Segment()
    fence: str | None = None

    def flush() -> None:
        nonlocal segment
        if segment.start is not None and any(line.strip() for line in segment.lines):
            body = "\n".join(segment.lines)
            if len(stack) > 1:
                body = textwrap.dedent(body)
            stack[-1].node.children.extend(
                _parse_markdown(body, first_line=segment.start + line_offset + 1)
            )
        segment = _Segment()

    index = 0
    while index < len(lines):
        line = lines[index]
        stripped = line.lstrip()

        if fence is not None:
            segment.add(index, line)
            if stripped.startswith(fence[0] * len(fence)) and not stripped.strip(fence[0]).strip():
                fence = None
            index += 1
            continue

        fence_match = _FENCE_RE.match(stripped)
        if fence_match:
            fence = fence_match.group(1)
            segment.add(index, line)
            index += 1
            continue

        close_match = _COMPONENT_CLOSE_RE.match(stripped)
        if close_match:
            flush()
            _close_component(stack, close_match.group(1), index, line_offset, line)
            remainder = stripped[close_match.end():]
            if remainder.strip():
                segment.add(index, remainder)
            index += 1
            continue

        if _COMPONENT_OPEN_RE.match(stripped):
            source = "\n".join(lines[index:])
            start = len(line) - len(stripped)
            end = _find_tag_end(source, start)
            if end is None:
                segment.add(index, line)
                index += 1
                continue
            tag = source[start:end + 1]
            last_line = index + tag.count("\n")
            node = _component_from_tag(tag, index + line_offset + 1, start + 1)
            remainder = lines[last_line][_end_column(source, end):].rstrip()
            closing = f"</{node.name}>"
            if remainder.strip() and (node.data["self_closing"] or not remainder.endswith(closing)):
                # Text follows the tag: the line is a paragraph with inline JSX.
                for offset in range(index, last_line + 1):
                    segment.add(offset, lines[offset])
                index = last_line + 1
                continue
            flush()
            stack[-1].node.children.append(node)
            if node.data["self_closing"]:
                node.position = Position.from_lines(
                    index + line_offset + 1,
                    last_line + line_offset + 1,
                    start_column=start + 1,
                    end_column=len(lines[last_line]) + 1,
                )
            else:
                stack.append(_Frame(node, index + line_offset + 1))
                if remainder.strip():
                    body = remainder[: -len(closing)]
                    if body.strip():
                        segment.add(last_line, body)
                    flush()
                    _close_component(stack, node.name or "", last_line, line_offset, lines[last_line])
            index = last_line + 1
            continue

        segment.add(index, line)
        index += 1

    flush()
    if len(stack) > 1:
        frame = stack[-1]
        raise ContentParseError(
            f"Unclosed <{frame.node.name}> component opened on line {frame.start_line}"
        )
    return root


def _end_column(source: str, end: int) -> int:
    """Column just after the tag end, within the tag's last line."""
    last_newline = source.rfind("\n", 0, end + 1)
    if last_newline == -1:
        return end + 1
    return end - last_newline


def _close_component(
    stack: list[_Frame], name: str, index: int, line_offset: int, line: str
) -> None:
    if len(stack) == 1:
        raise ContentParseError(
            f"Unexpected closing tag </{name}> on line {index + line_offset + 1}"
        )
    frame = stack[-1]
    if frame.node.name != name:
        raise ContentParseError(
            f"Expected </{frame.node.name}> but found </{name}> on line "
            f"{index + line_offset + 1}"
        )
    stack.pop()
    frame.node.position = Position.from_lines(
        frame.start_line, index + line_offset + 1, end_column=len(line) + 1
    )


def _find_tag_end(source: str, start: int) -> int | None:
    """Index of the ``>`` closing the tag opened at ``start``.

    Quotes and brace expressions are skipped so ``=>`` or ``>`` inside an
    attribute value do not end the tag.
    """
    quote: str | None = None
    depth = 0
    position = start + 1
    while position < len(source):
        char = source[position]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in {'"', "'"} or (char == "`" and depth):
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif char == ">" and depth == 0:
            return position
        elif char == "<" and depth == 0 and position > start + 1:
            return None
        position += 1
    return None


def _component_from_tag(tag: str, line: int, column: int) -> ContentNode:
    name_match = _COMPONENT_OPEN_RE.match(tag)
    if name_match is None:
        raise ContentParseError(f"Not a component tag on line {line}: {tag!r}")
    inner = tag[name_match.end():-1]
    self_closing = inner.rstrip().endswith("/")
    if self_closing:
        inner = inner.rstrip()[:-1]
    return ContentNode(
        type="component",
        name=name_match.group(1),
        attributes=parse_attributes(inner),
        data={"self_closing": self_closing},
        position=Position.from_lines(line, start_column=column),
    )


def parse_attributes(source: str) -> list[ComponentAttribute]:
    """Parse JSX-style attributes: ``a="x"``, ``a='x'``, ``a={expr}`` and bare ``a``."""
    attributes: list[ComponentAttribute] = []
    position = 0
    length = len(source)
    while position < length:
        if source[position].isspace():
            position += 1
            continue
        name_match = _ATTRIBUTE_NAME_RE.match(source, position)
        if name_match is None:
            position += 1
            continue
        name = name_match.group(0)
        position = name_match.end()
        while position < length and source[position].isspace():
            position += 1
        if position >= length or source[position] != "=":
            attributes.append(ComponentAttribute(name=name))
            continue
        position += 1
        while position < length and source[position].isspace():
            position += 1
        if position >= length:
            attributes.append(ComponentAttribute(name=name, value=""))
            break
        char = source[position]
        if char in {'"', "'"}:
            end = source.find(char, position + 1)
            end = length if end == -1 else end
            attributes.append(ComponentAttribute(name=name, value=source[position + 1:end]))
            position = end + 1
        elif char == "{":
            end = _matching_brace(source, position)
            attributes.append(
                ComponentAttribute(
                    name=name, value=source[position + 1:end].strip(), is_expression=True
                )
            )
            position = end + 1
        else:
            end = position
            while end < length and not source[end].isspace():
                end += 1
            attributes.append(ComponentAttribute(name=name, value=source[position:end]))
            position = end
    return attributes


def _matching_brace(source: str, start: int) -> int:
    depth = 0
    quote: str | None = None
    for position in range(start, len(source)):
        char = source[position]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in {'"', "'", "`"}:
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return position
    return len(source)


def _parse_markdown(text: str, *, first_line: int) -> list[ContentNode]:
    source_lines = text.split("\n")
    tree = SyntaxTreeNode(_PARSER.parse(text))
    return [
        node
        for child in tree.children
        if (node := _convert_block(child, source_lines, first_line)) is not None
    ]


def _block_position(node: SyntaxTreeNode, source_lines: list[str], first_line: int) -> Position | None:
    if not node.map:
        return None
    start, end = node.map
    last = max(end - 1, start)
    indent = len(source_lines[start]) - len(source_lines[start].lstrip()) if start < len(source_lines) else 0
    end_column = len(source_lines[last]) + 1 if last < len(source_lines) else 1
    return Position.from_lines(
        first_line + start,
        first_line + last,
        start_column=indent + 1,
        end_column=end_column,
    )


def _convert_block(
    node: SyntaxTreeNode,
    source_lines: list[str],
    first_line: int,
    fallback: Position | None = None,
) -> ContentNode | None:
    node_type = _BLOCK_TYPES.get(node.type)
    if node_type is None:
        return None
    position = _block_position(node, source_lines, first_line) or fallback
    converted = ContentNode(type=node_type, position=position)

    if node.type == "heading":
        converted.data["depth"] = int(node.tag[1])
    elif node.type in {"bullet_list", "ordered_list"}:
        converted.data["ordered"] = node.type == "ordered_list"
        converted.data["start"] = int(node.attrs.get("start", 1)) if node.type == "ordered_list" else None
        converted.data["marker"] = node.markup or ("." if node.type == "ordered_list" else "-")
        converted.data["tight"] = all(
            getattr(paragraph, "hidden", False)
            for item in node.children
            for paragraph in item.children
            if paragraph.type == "paragraph"
        )
    elif node.type in {"fence", "code_block"}:
        converted.value = node.content
        converted.data["lang"] = node.info.strip() if node.type == "fence" else ""
        converted.data["fenced"] = node.type == "fence"
        return converted
    elif node.type == "html_block":
        converted.value = node.content
        return converted
    elif node.type in {"th", "td"}:
        converted.data["header"] = node.type == "th"

    for child in node.children:
        if child.type == "inline":
            lines = source_lines[node.map[0]:node.map[1]] if node.map else []
            line = first_line + node.map[0] if node.map else first_line
            converted.children.extend(_convert_inline_children(child, position, lines, line))
        elif child.type in {"thead", "tbody"}:
            # Rows are kept flat under the table.
            for row in child.children:
                block = _convert_block(row, source_lines, first_line, position)
                if block is not None:
                    converted.children.append(block)
        else:
            block = _convert_block(child, source_lines, first_line, position)
            if block is not None:
                converted.children.append(block)
    return converted


def _convert_inline_children(
    node: SyntaxTreeNode, position: Position | None, lines: list[str], first_line: int
) -> list[ContentNode]:
    converted: list[ContentNode] = []
    for child in node.children:
        inline = _convert_inline(child, position, lines, first_line)
        if inline is None:
            continue
        if inline.type == "text" and converted and converted[-1].type == "text":
            converted[-1].value = (converted[-1].value or "") + (inline.value or "")
            continue
        converted.append(inline)
    return _group_inline_components(converted)


def _inline_component(node: ContentNode) -> ContentNode | None:
    """The component an inline HTML node opens, if it is a single component tag."""
    value = (node.value or "").strip()
    if node.type != "html" or not _COMPONENT_OPEN_RE.match(value):
        return None
    if _find_tag_end(value, 0) != len(value) - 1:
        return None
    component = _component_from_tag(value, 1, 1)
    component.position = node.position
    component.data["inline"] = True
    return component


def _closing_name(node: ContentNode) -> str | None:
    if node.type != "html":
        return None
    match = _COMPONENT_CLOSE_RE.fullmatch((node.value or "").strip())
    return match.group(1) if match else None


def _group_inline_components(nodes: list[ContentNode]) -> list[ContentNode]:
    """Fold inline ``<Name>...</Name>`` HTML runs into component nodes.

    Opening tags without a matching closing tag are left as HTML.
    """
    grouped: list[ContentNode] = []
    index = 0
    while index < len(nodes):
        node = nodes[index]
        component = _inline_component(node)
        if component is None or component.data["self_closing"]:
            grouped.append(component or node)
            index += 1
            continue
        depth = 0
        close: int | None = None
        for candidate in range(index + 1, len(nodes)):
            nested = _inline_component(nodes[candidate])
            if nested is not None and nested.name == component.name and not nested.data["self_closing"]:
                depth += 1
            elif _closing_name(nodes[candidate]) == component.name:
                if depth == 0:
                    close = candidate
                    break
                depth -= 1
        if close is None:
            grouped.append(node)
            index += 1
            continue
        component.children = _group_inline_components(nodes[index + 1:close])
        grouped.append(component)
        index = close + 1
    return grouped


def _convert_inline(
    node: SyntaxTreeNode, position: Position | None, lines: list[str], first_line: int
) -> ContentNode | None:
    node_type = _INLINE_TYPES.get(node.type)
    if node_type is None:
        return None
    converted = ContentNode(type=node_type, position=position)
    if node.type in {"text", "code_inline", "html_inline"}:
        converted.value = node.content
        return converted
    if node.type in {"em", "strong", "s"}:
        converted.data["marker"] = node.markup
    if node.type == "link":
        url = str(node.attrs.get("href", ""))
        converted.data["url"] = url
        converted.data["title"] = node.attrs.get("title")
        converted.position = _locate(url, lines, first_line) or position
    if node.type == "image":
        converted.data["url"] = str(node.attrs.get("src", ""))
        converted.data["title"] = node.attrs.get("title")
    converted.children = _convert_inline_children(node, position, lines, first_line)
    return converted


def _locate(url: str, lines: list[str], first_line: int) -> Position | None:
    """Find the source line of a link so diagnostics point at it."""
    needle = f"]({url}"
    for offset, line in enumerate(lines):
        column = line.find(needle)
        if column == -1:
            continue
        start = line.rfind("[", 0, column)
        end = line.find(")", column)
        return Position.from_lines(
            first_line + offset,
            start_column=(start if start != -1 else column) + 1,
            end_column=(end if end != -1 else len(line)) + 2,
        )
    return None


def visit(node: ContentNode, test: Callable[[ContentNode], bool] | None = None) -> Iterator[ContentNode]:
    """Yield ``node`` and its descendants in document order."""
    if test is None or test(node):
        yield node
    for child in node.children:
        yield from visit(child, test)


def find_components(node: ContentNode, name: str) -> Iterator[ContentNode]:
    return visit(node, lambda candidate: candidate.is_component(name))


def has_component(node: ContentNode, names: set[str] | str) -> bool:
    wanted = {names} if isinstance(names, str) else names
    return any(
        True for _ in visit(node, lambda candidate: candidate.type == "component" and candidate.name in wanted)
    )


def transform_tree(
    node: ContentNode,
    transform: Transform,
    *,
    skip: Callable[[ContentNode], bool] | None = None,
) -> ContentNode:
    """Return a new tree with ``transform`` applied top-down to every descendant.

    The root itself is never passed to ``transform``. A callback must not
    return a list containing the node it was given. Nodes matching ``skip``
    are kept without being passed to ``transform`` or descended into.
    Untouched subtrees are shared with the input, so callers that need
    isolation should :func:`clone_tree` first.
    """
    children: list[ContentNode] = []
    changed = False
    for child in node.children:
        results = _apply_transform(child, transform, skip)
        if len(results) != 1 or results[0] is not child:
            changed = True
        children.extend(results)
    if not changed:
        return node
    return node.model_copy(update={"children": children})


def _apply_transform(
    node: ContentNode, transform: Transform, skip: Callable[[ContentNode], bool] | None
) -> list[ContentNode]:
    if skip is not None and skip(node):
        return [node]
    # Spliced nodes go through the callback again; a single replacement is
    # only descended into.
    result = transform(node)
    if result is None:
        return []
    if isinstance(result, list):
        spliced: list[ContentNode] = []
        for item in result:
            spliced.extend(_apply_transform(item, transform, skip))
        return spliced
    return [transform_tree(result, transform, skip=skip)]


def clone_tree(node: ContentNode) -> ContentNode:
    return node.model_copy(deep=True)


def node_to_string(node: ContentNode) -> str:
    """Concatenated text content of a node, like the rendered plain text."""
    if node.type in {"text", "inline_code"}:
        return node.value or ""
    if node.type in {"softbreak", "hardbreak"}:
        return " "
    return "".join(node_to_string(child) for child in node.children)
