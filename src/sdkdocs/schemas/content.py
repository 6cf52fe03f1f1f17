"""Content tree models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from sdkdocs.schemas.diagnostics import Position


class ComponentAttribute(BaseModel):
    """A JSX-style attribute on an MDX component.

    ``value`` is ``None`` for bare boolean attributes. Expression values
    (``sdk={["react"]}``) keep the source between the braces.
    """

    name: str
    value: str | None = None
    is_expression: bool = False


class ContentNode(BaseModel):
    """A node of a parsed Markdown/MDX document."""

    type: str
    value: str | None = None
    name: str | None = None
    attributes: list[ComponentAttribute] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)
    children: list["ContentNode"] = Field(default_factory=list)
    position: Position | None = None

    def get_attribute(self, name: str) -> ComponentAttribute | None:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def is_component(self, name: str | None = None) -> bool:
        return self.type == "component" and (name is None or self.name == name)
