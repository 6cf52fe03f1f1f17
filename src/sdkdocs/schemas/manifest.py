"""Navigation manifest models."""

from __future__ import annotations

import json
from typing import Annotated, Any, List, Literal, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationInfo,
    field_validator,
)


def _check_sdk_field(value: Optional[Tuple[str, ...]], info: ValidationInfo) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    universe = (info.context or {}).get("universe")
    if universe is None:
        return tuple(dict.fromkeys(value))
    invalid = universe.invalid(value)
    if invalid:
        raise ValueError(
            f"Invalid SDK {json.dumps(invalid)}, the valid SDKs are "
            f"{json.dumps(list(universe.sdks))}"
        )
    return universe.order(value)


class _ManifestNodeBase(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str
    sdk: Optional[Tuple[str, ...]] = None
    tag: Optional[Literal["(Beta)", "(Community)"]] = None
    wrap: Optional[bool] = None
    icon: Optional[str] = None

    @field_validator("sdk")
    @classmethod
    def _validate_sdk(cls, value: Optional[Tuple[str, ...]], info: ValidationInfo) -> Optional[Tuple[str, ...]]:
        return _check_sdk_field(value, info)


class ManifestItem(_ManifestNodeBase):
    """A navigation leaf pointing at a document or an external URL."""

    href: str
    target: Optional[Literal["_blank"]] = None
    shortcut: Optional[bool] = None


class ManifestGroup(_ManifestNodeBase):
    """A navigation group holding columns of child nodes."""

    items: List[List["ManifestNode"]] = Field(default_factory=list)
    collapse: Optional[bool] = None
    hide_title: Optional[bool] = Field(default=None, alias="hideTitle")
    skip: Optional[bool] = None

    def without_items(self) -> ManifestGroup:
        return self.model_copy(update={"items": []})


def _node_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "group" if "items" in value else "item"
    return "group" if isinstance(value, ManifestGroup) else "item"


ManifestNode = Annotated[
    Union[
        Annotated[ManifestItem, Tag("item")],
        Annotated[ManifestGroup, Tag("group")],
    ],
    Discriminator(_node_kind),
]

# Columns of nodes; the root of the navigation and every group's ``items``.
Manifest = List[List[ManifestNode]]

ManifestGroup.model_rebuild()


class ManifestFile(BaseModel):
    """The top-level manifest document: ``{"navigation": [...]}``."""

    model_config = ConfigDict(extra="forbid")

    navigation: List[List[ManifestNode]]
