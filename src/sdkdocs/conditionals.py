"""``<If>`` conditional blocks: syntax checks, scope validation and per-SDK filtering."""

from __future__ import annotations

from dataclasses import dataclass

from sdkdocs.content_tree import find_components, transform_tree
from sdkdocs.diagnostics import DiagnosticsCollector
from sdkdocs.schemas.content import ContentNode
from sdkdocs.schemas.diagnostics import Section
from sdkdocs.sdk import SdkScope, SdkUniverse, parse_if_sdk_prop

IF_COMPONENT = "If"


@dataclass(frozen=True)
class IfCondition:
    """The SDKs an ``<If>`` block names.

    ``sdks`` holds only valid SDKs, in universe order; ``negated`` is set for
    ``<If not="...">`` blocks, which show for every SDK except those named.
    """

    sdks: tuple[str, ...]
    invalid: tuple[str, ...] = ()
    negated: bool = False

    def matches(self, sdk: str) -> bool:
        return (sdk in self.sdks) != self.negated


def read_if_condition(
    node: ContentNode,
    universe: SdkUniverse,
    *,
    collector: DiagnosticsCollector | None = None,
    file: str = "",
    section: Section = "docs",
) -> IfCondition | None:
    """Read the condition of an ``<If>`` node.

    When ``collector`` is given, syntax problems are reported against
    ``file``; otherwise they are ignored silently.

    Returns:
        The condition, or ``None`` when the node has no readable SDK prop.
    """
    sdk_attribute = node.get_attribute("sdk")
    not_attribute = node.get_attribute("not")
    if sdk_attribute is not None and not_attribute is not None:
        if collector is not None:
            collector.safe_fail(
                "if-component-sdk-and-not-sdk-props-cannot-be-used-together",
                file=file,
                section=section,
                position=node.position,
            )
        return None

    attribute = sdk_attribute or not_attribute
    if attribute is None or attribute.value is None:
        if collector is not None:
            if not node.attributes:
                collector.safe_message(
                    "component-no-props", IF_COMPONENT, file=file, section=section, position=node.position
                )
            else:
                collector.safe_message(
                    "component-missing-attribute",
                    IF_COMPONENT,
                    "sdk",
                    file=file,
                    section=section,
                    position=node.position,
                )
        return None

    try:
        names = parse_if_sdk_prop(attribute.value, is_expression=attribute.is_expression)
    except ValueError:
        if collector is not None:
            raw = f"{{{attribute.value}}}" if attribute.is_expression else f'"{attribute.value}"'
            collector.safe_message(
                "invalid-if-sdk-prop", raw, file=file, section=section, position=node.position
            )
        return None

    invalid = universe.invalid(names)
    if invalid and collector is not None:
        if len(invalid) == 1:
            collector.safe_message(
                "invalid-sdk-in-if", invalid[0], file=file, section=section, position=node.position
            )
        else:
            collector.safe_message(
                "invalid-sdks-in-if", invalid, file=file, section=section, position=node.position
            )
    return IfCondition(
        sdks=universe.order(names),
        invalid=tuple(invalid),
        negated=attribute is not_attribute,
    )


def check_conditionals(
    tree: ContentNode,
    universe: SdkUniverse,
    *,
    collector: DiagnosticsCollector,
    file: str,
    section: Section = "docs",
) -> bool:
    """Report syntax problems of every ``<If>`` block.

    Returns:
        True if the tree contains any conditional block.
    """
    found = False
    for node in find_components(tree, IF_COMPONENT):
        found = True
        read_if_condition(node, universe, collector=collector, file=file, section=section)
    return found


def validate_conditionals(
    tree: ContentNode,
    universe: SdkUniverse,
    *,
    declared_sdk: SdkScope,
    manifest_sdk: SdkScope,
    href: str,
    collector: DiagnosticsCollector,
    file: str,
    section: Section = "docs",
) -> None:
    """Check that every SDK an ``<If>`` names is one the document supports.

    Documents declaring SDKs in their frontmatter are checked against that
    set; otherwise, documents scoped by the manifest are checked against the
    manifest's set.

    Raises:
        FatalDiagnosticError: For the first SDK outside the allowed set.
    """
    for node in find_components(tree, IF_COMPONENT):
        condition = read_if_condition(node, universe)
        if condition is None:
            continue
        for sdk in condition.sdks:
            if declared_sdk is not None:
                if sdk not in declared_sdk:
                    collector.safe_fail(
                        "if-component-sdk-not-in-frontmatter",
                        sdk,
                        declared_sdk,
                        file=file,
                        section=section,
                        position=node.position,
                    )
            elif manifest_sdk is not None and sdk not in manifest_sdk:
                collector.safe_fail(
                    "if-component-sdk-not-in-manifest",
                    sdk,
                    href,
                    file=file,
                    section=section,
                    position=node.position,
                )


def filter_conditionals(tree: ContentNode, sdk: str, universe: SdkUniverse) -> ContentNode:
    """Produce the ``sdk`` variant of a tree.

    Matching ``<If>`` blocks are replaced by their children; the others are
    dropped with their content. Blocks without a readable SDK prop are kept
    as they are.
    """

    def keep(node: ContentNode) -> ContentNode | list[ContentNode] | None:
        if not node.is_component(IF_COMPONENT):
            return node
        condition = read_if_condition(node, universe)
        if condition is None:
            return node
        if condition.matches(sdk):
            return list(node.children)
        return None

    return transform_tree(tree, keep)
