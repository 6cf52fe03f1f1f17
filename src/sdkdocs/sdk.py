"""SDK universe and ordered SDK set helpers."""

from __future__ import annotations

import json
import re
from typing import Iterable, Iterator, Optional, Tuple

# ``None`` means unscoped: the node applies to every SDK.
SdkScope = Optional[Tuple[str, ...]]

SDK_PLACEHOLDER = ":sdk:"

_QUOTED_RE = re.compile(r"""^(["'])(.*)\1$""", re.S)


class SdkUniverse:
    """The configured, ordered set of valid SDK identifiers.

    All SDK sets produced through a universe are tuples in universe order,
    so equal sets always compare and serialize identically.
    """

    def __init__(self, sdks: Iterable[str]) -> None:
        self._sdks = tuple(dict.fromkeys(sdk.strip() for sdk in sdks if sdk.strip()))
        self._index = {sdk: position for position, sdk in enumerate(self._sdks)}

    @property
    def sdks(self) -> tuple[str, ...]:
        return self._sdks

    def __len__(self) -> int:
        return len(self._sdks)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sdks)

    def __contains__(self, sdk: object) -> bool:
        return sdk in self._index

    def __repr__(self) -> str:
        return f"SdkUniverse({list(self._sdks)!r})"

    def invalid(self, values: Iterable[str]) -> list[str]:
        """Return entries that are not in the universe, deduplicated, in input order."""
        return list(dict.fromkeys(value for value in values if value not in self._index))

    def order(self, values: Iterable[str]) -> tuple[str, ...]:
        """Return the valid entries of ``values`` as an ordered set."""
        present = {value for value in values if value in self._index}
        return tuple(sorted(present, key=self._index.__getitem__))

    def expand(self, scope: SdkScope) -> tuple[str, ...]:
        """Return ``scope`` with unscoped expanded to the full universe."""
        return self._sdks if scope is None else scope

    def union(self, scopes: Iterable[Tuple[str, ...]]) -> tuple[str, ...]:
        merged: list[str] = []
        for scope in scopes:
            merged.extend(scope)
        return self.order(merged)

    def intersection(self, left: Iterable[str], right: Iterable[str]) -> tuple[str, ...]:
        right_set = set(right)
        return self.order(sdk for sdk in left if sdk in right_set)

    def covers(self, scope: Iterable[str]) -> bool:
        """True when ``scope`` names every SDK of the universe."""
        return set(self._sdks) <= set(scope)


def is_subset(scope: Iterable[str], parent: Iterable[str]) -> bool:
    return set(scope) <= set(parent)


def applies_to(scope: SdkScope, sdk: str) -> bool:
    """True when a node with ``scope`` belongs in the ``sdk`` variant."""
    return scope is None or sdk in scope


def parse_sdk_list(value: str | Iterable[str]) -> list[str]:
    """Split a comma-separated SDK string (or a list of them) into entries."""
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = [str(item) for item in value]
    return [part.strip() for part in parts if part.strip()]


def parse_if_sdk_prop(value: str, *, is_expression: bool = False) -> list[str]:
    """Read the SDKs named by a conditional block prop.

    Accepts ``"react"``, ``"react, vue"`` and expression arrays such as
    ``{["react", "vue"]}`` or ``{['react']}``, all yielding the same list.

    Raises:
        ValueError: If an expression value is not a string or an array of strings.
    """
    text = value.strip()
    if not is_expression:
        return parse_sdk_list(text)

    quoted = _QUOTED_RE.match(text)
    if quoted:
        return parse_sdk_list(quoted.group(2))
    if text.startswith("[") and text.endswith("]"):
        try:
            parsed = json.loads(re.sub(r"'([^']*)'", r'"\1"', text))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Unsupported sdk expression {text!r}") from exc
        if isinstance(parsed, list) and all(isinstance(item, str) for item in parsed):
            return parse_sdk_list(parsed)
    raise ValueError(f"Unsupported sdk expression {text!r}")


def scope_href_to_sdk(href: str, sdk: str, base_docs_link: str = "/docs/") -> str:
    """Namespace a docs href under ``sdk`` (or the ``:sdk:`` placeholder).

    ``/docs/quickstart`` becomes ``/docs/react/quickstart``. Hrefs outside
    the docs base, and hrefs already carrying the SDK segment, are returned
    unchanged.
    """
    if not href.startswith(base_docs_link):
        return href
    rest = href[len(base_docs_link):]
    if rest.split("/")[0].split("#")[0] == sdk:
        return href
    return f"{base_docs_link}{sdk}/{rest}"
