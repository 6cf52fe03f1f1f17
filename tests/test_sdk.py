"""Tests for SDK universe and scope helpers."""

from __future__ import annotations

import pytest

from sdkdocs.sdk import (
    SdkUniverse,
    applies_to,
    is_subset,
    parse_if_sdk_prop,
    parse_sdk_list,
    scope_href_to_sdk,
)


@pytest.fixture
def universe() -> SdkUniverse:
    return SdkUniverse(["react", "vue", "astro"])


class TestSdkUniverse:
    """Tests for SdkUniverse."""

    def test_order_follows_universe(self, universe: SdkUniverse) -> None:
        """Sets are returned in universe order regardless of input order."""
        assert universe.order(["astro", "react"]) == ("react", "astro")

    def test_order_drops_unknown_and_duplicates(self, universe: SdkUniverse) -> None:
        """Unknown SDKs and repeats are removed."""
        assert universe.order(["vue", "svelte", "vue"]) == ("vue",)

    def test_invalid_keeps_input_order(self, universe: SdkUniverse) -> None:
        """Invalid entries are reported once each, in input order."""
        assert universe.invalid(["svelte", "react", "solid", "svelte"]) == ["svelte", "solid"]

    def test_expand_unscoped(self, universe: SdkUniverse) -> None:
        """None expands to the whole universe."""
        assert universe.expand(None) == ("react", "vue", "astro")
        assert universe.expand(("vue",)) == ("vue",)

    def test_union(self, universe: SdkUniverse) -> None:
        """Union merges sets into universe order."""
        assert universe.union([("astro",), ("react", "astro")]) == ("react", "astro")

    def test_intersection(self, universe: SdkUniverse) -> None:
        """Intersection keeps shared SDKs only."""
        assert universe.intersection(("react", "vue"), ("vue", "astro")) == ("vue",)
        assert universe.intersection(("react",), ("vue",)) == ()

    def test_covers(self, universe: SdkUniverse) -> None:
        """Covers is true only when every SDK is named."""
        assert universe.covers(("astro", "vue", "react"))
        assert not universe.covers(("react", "vue"))

    def test_contains_and_len(self, universe: SdkUniverse) -> None:
        """Membership and size reflect the configured SDKs."""
        assert "vue" in universe
        assert "svelte" not in universe
        assert len(universe) == 3


class TestScopeHelpers:
    """Tests for subset, applicability and list parsing."""

    def test_is_subset(self) -> None:
        """Subset ignores order."""
        assert is_subset(("vue", "react"), ("react", "vue", "astro"))
        assert not is_subset(("react", "svelte"), ("react",))

    def test_applies_to_unscoped(self) -> None:
        """Unscoped nodes belong to every variant."""
        assert applies_to(None, "react")
        assert applies_to(("react",), "react")
        assert not applies_to(("vue",), "react")

    def test_parse_sdk_list_from_string(self) -> None:
        """Comma-separated strings are split and trimmed."""
        assert parse_sdk_list("react, vue ,") == ["react", "vue"]

    def test_parse_sdk_list_from_list(self) -> None:
        """Lists are trimmed and empty entries dropped."""
        assert parse_sdk_list([" react", "", "vue"]) == ["react", "vue"]


class TestParseIfSdkProp:
    """Tests for parse_if_sdk_prop."""

    def test_plain_string(self) -> None:
        """A quoted attribute names one or more SDKs."""
        assert parse_if_sdk_prop("react") == ["react"]
        assert parse_if_sdk_prop("react, vue") == ["react", "vue"]

    def test_expression_array(self) -> None:
        """Array expressions with either quote style are accepted."""
        assert parse_if_sdk_prop('["react", "vue"]', is_expression=True) == ["react", "vue"]
        assert parse_if_sdk_prop("['react']", is_expression=True) == ["react"]

    def test_expression_string(self) -> None:
        """A string literal expression behaves like a plain attribute."""
        assert parse_if_sdk_prop("'react'", is_expression=True) == ["react"]

    def test_unsupported_expression(self) -> None:
        """Identifiers and other expressions are rejected."""
        with pytest.raises(ValueError, match="Unsupported sdk expression"):
            parse_if_sdk_prop("currentSdk", is_expression=True)

    def test_array_of_non_strings(self) -> None:
        """Arrays must contain strings only."""
        with pytest.raises(ValueError):
            parse_if_sdk_prop("[1, 2]", is_expression=True)


class TestScopeHrefToSdk:
    """Tests for scope_href_to_sdk."""

    def test_inserts_sdk_segment(self) -> None:
        """The SDK becomes the first path segment after the docs base."""
        assert scope_href_to_sdk("/docs/quickstart", "react") == "/docs/react/quickstart"

    def test_placeholder(self) -> None:
        """The placeholder is inserted the same way."""
        assert scope_href_to_sdk("/docs/guides/auth", ":sdk:") == "/docs/:sdk:/guides/auth"

    def test_already_scoped(self) -> None:
        """Hrefs already carrying the segment are unchanged."""
        assert scope_href_to_sdk("/docs/react/quickstart", "react") == "/docs/react/quickstart"

    def test_external_href(self) -> None:
        """Hrefs outside the docs base are unchanged."""
        assert scope_href_to_sdk("https://example.com", "react") == "https://example.com"
