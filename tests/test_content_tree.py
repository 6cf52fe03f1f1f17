"""Tests for the MDX content tree adapter."""

from __future__ import annotations

import pytest

from sdkdocs.content_tree import (
    _component_from_tag,
    clone_tree,
    find_components,
    has_component,
    node_to_string,
    parse_attributes,
    parse_mdx,
    split_frontmatter,
    transform_tree,
    visit,
)
from sdkdocs.exceptions import ContentParseError
from sdkdocs.schemas.content import ContentNode


class TestSplitFrontmatter:
    """Tests for split_frontmatter."""

    def test_splits_block_and_body(self) -> None:
        """The block keeps its delimiters and the body line offset is returned."""
        block, body, offset = split_frontmatter("---\ntitle: A\n---\nBody\n")
        assert block == "---\ntitle: A\n---\n"
        assert body == "Body\n"
        assert offset == 3

    def test_no_frontmatter(self) -> None:
        """Documents without a leading block are returned unchanged."""
        assert split_frontmatter("# Title\n") == (None, "# Title\n", 0)


class TestParseAttributes:
    """Tests for parse_attributes."""

    def test_attribute_forms(self) -> None:
        """Quoted, expression, bare and unquoted attributes are read."""
        attributes = parse_attributes(' a="x" b=\'y\' c={["r", "v"]} d e=f')
        assert [(a.name, a.value, a.is_expression) for a in attributes] == [
            ("a", "x", False),
            ("b", "y", False),
            ("c", '["r", "v"]', True),
            ("d", None, False),
            ("e", "f", False),
        ]

    def test_nested_braces_in_expression(self) -> None:
        """Expressions keep nested braces."""
        attributes = parse_attributes(" style={{ color: 'red' }}")
        assert attributes[0].value == "{ color: 'red' }"
        assert attributes[0].is_expression


class TestParseMdx:
    """Tests for parse_mdx."""

    def test_markdown_blocks(self) -> None:
        """Plain Markdown becomes heading and paragraph nodes."""
        tree = parse_mdx("# Title\n\nSome text.\n")
        assert [child.type for child in tree.children] == ["heading", "paragraph"]
        assert tree.children[0].data["depth"] == 1
        assert node_to_string(tree.children[1]) == "Some text."

    def test_positions_use_line_offset(self) -> None:
        """Positions point at lines of the original file."""
        tree = parse_mdx("# Title\n\nText\n", line_offset=4)
        heading, paragraph = tree.children
        assert heading.position is not None and heading.position.start.line == 5
        assert paragraph.position is not None and paragraph.position.start.line == 7

    def test_block_component_with_children(self) -> None:
        """Component bodies are parsed as Markdown children."""
        tree = parse_mdx('<If sdk="react">\n\n## React only\n\n</If>\n')
        component = tree.children[0]
        assert component.is_component("If")
        assert component.get_attribute("sdk").value == "react"
        assert component.children[0].type == "heading"
        assert component.position is not None
        assert (component.position.start.line, component.position.end.line) == (1, 5)

    def test_indented_component_body(self) -> None:
        """Indented bodies are dedented before parsing."""
        tree = parse_mdx('<If sdk="vue">\n  ## Vue\n</If>\n')
        assert tree.children[0].children[0].type == "heading"

    def test_single_line_component(self) -> None:
        """Opening, body and closing tag may share a line."""
        tree = parse_mdx('<If sdk="react">Hello</If>\n')
        component = tree.children[0]
        assert node_to_string(component) == "Hello"

    def test_self_closing_component(self) -> None:
        """Self-closing components have no children."""
        tree = parse_mdx('Intro\n\n<Include src="_partials/setup" />\n')
        component = tree.children[1]
        assert component.is_component("Include")
        assert component.data["self_closing"] is True
        assert component.get_attribute("src").value == "_partials/setup"

    def test_multiline_tag(self) -> None:
        """Tags spanning several lines are read as one component."""
        tree = parse_mdx('<Include\n  src="_partials/setup"\n/>\n\nAfter\n')
        component = tree.children[0]
        assert component.get_attribute("src").value == "_partials/setup"
        assert node_to_string(tree.children[1]) == "After"

    def test_nested_components(self) -> None:
        """Components nest."""
        tree = parse_mdx("<Tabs>\n<Tab>\n\nA\n\n</Tab>\n</Tabs>\n")
        tabs = tree.children[0]
        assert tabs.name == "Tabs"
        assert tabs.children[0].name == "Tab"
        assert node_to_string(tabs.children[0]) == "A"

    def test_components_inside_fenced_code_are_text(self) -> None:
        """Tags inside fenced code are not parsed as components."""
        tree = parse_mdx('```mdx\n<If sdk="react">\n```\n')
        assert not has_component(tree, "If")
        assert tree.children[0].type == "code"
        assert tree.children[0].data["lang"] == "mdx"

    def test_links(self) -> None:
        """Links keep their url and get the source line as position."""
        tree = parse_mdx("Intro\n\nSee [the guide](/docs/guide#setup).\n")
        link = next(visit(tree, lambda node: node.type == "link"))
        assert link.data["url"] == "/docs/guide#setup"
        assert link.position is not None and link.position.start.line == 3

    def test_unclosed_component(self) -> None:
        """A component without closing tag is an error."""
        with pytest.raises(ContentParseError, match="Unclosed <If>"):
            parse_mdx('<If sdk="react">\n\ntext\n')

    def test_mismatched_closing_tag(self) -> None:
        """A closing tag must match the innermost open component."""
        with pytest.raises(ContentParseError, match="Expected </If>"):
            parse_mdx('<If sdk="react">\n\n</Tabs>\n')

    def test_unexpected_closing_tag(self) -> None:
        """A closing tag without an open component is an error."""
        with pytest.raises(ContentParseError, match="Unexpected closing tag"):
            parse_mdx("</If>\n")

    def test_text_after_tag_stays_in_paragraph(self) -> None:
        """A tag followed by text on its line is inline JSX in a paragraph."""
        tree = parse_mdx("<SignIn /> is the component.\n")
        paragraph = tree.children[0]
        assert paragraph.type == "paragraph"
        component, text = paragraph.children
        assert component.is_component("SignIn")
        assert component.data["inline"] is True
        assert text.value == " is the component."

    def test_inline_component_with_children(self) -> None:
        """Inline opening and closing tags wrap the nodes between them."""
        tree = parse_mdx('Hover <Tooltip src="_tooltips/auth">**auth**</Tooltip> here.\n')
        component = next(find_components(tree, "Tooltip"))
        assert component.get_attribute("src").value == "_tooltips/auth"
        assert [child.type for child in component.children] == ["strong"]
        assert node_to_string(tree) == "Hover auth here."

    def test_unmatched_inline_tag_stays_html(self) -> None:
        """An inline opening tag without its closing tag is left as HTML."""
        tree = parse_mdx("Use <Badge> here.\n")
        assert not has_component(tree, "Badge")

    def test_non_component_tag_is_rejected(self) -> None:
        """Only capitalised tags can be read as components."""
        with pytest.raises(ContentParseError, match="Not a component tag"):
            _component_from_tag("<div />", 3, 1)


class TestTreeOperations:
    """Tests for visiting and transforming trees."""

    def test_find_components(self) -> None:
        """Components are found at any depth."""
        tree = parse_mdx('<Tabs>\n<If sdk="react">\n\nA\n\n</If>\n</Tabs>\n')
        assert [node.name for node in find_components(tree, "If")] == ["If"]
        assert has_component(tree, {"Tabs", "Callout"})

    def test_transform_drop_and_splice(self) -> None:
        """Returning None drops a node and a list splices children in."""
        tree = parse_mdx('<Keep>\n\nA\n\n</Keep>\n\n<Drop>\n\nB\n\n</Drop>\n')

        def transform(node: ContentNode):
            if node.is_component("Drop"):
                return None
            if node.is_component("Keep"):
                return list(node.children)
            return node

        result = transform_tree(tree, transform)
        assert [child.type for child in result.children] == ["paragraph"]
        assert node_to_string(result) == "A"
        assert len(tree.children) == 2

    def test_transform_reprocesses_spliced_nodes(self) -> None:
        """Nodes spliced in by a list result go through the callback again."""
        tree = parse_mdx("<Outer>\n<Inner>\n\nText\n\n</Inner>\n</Outer>\n")

        def unwrap(node: ContentNode):
            return list(node.children) if node.type == "component" else node

        result = transform_tree(tree, unwrap)
        assert not has_component(result, {"Outer", "Inner"})
        assert node_to_string(result) == "Text"

    def test_transform_skip(self) -> None:
        """Skipped nodes are not passed to the callback nor descended into."""
        tree = parse_mdx("<Cards>\n\n[a](/docs/a)\n\n</Cards>\n")
        seen: list[str] = []

        def record(node: ContentNode) -> ContentNode:
            seen.append(node.type)
            return node

        transform_tree(tree, record, skip=lambda node: node.is_component("Cards"))
        assert seen == []

    def test_unchanged_tree_is_shared(self) -> None:
        """A transform that keeps every node returns the input tree."""
        tree = parse_mdx("# A\n")
        assert transform_tree(tree, lambda node: node) is tree

    def test_clone_is_deep(self) -> None:
        """Clones do not share nodes with the source."""
        tree = parse_mdx("# A\n")
        copy = clone_tree(tree)
        copy.children[0].children[0].value = "B"
        assert node_to_string(tree) == "A"
