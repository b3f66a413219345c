"""Tests for version parsing and VersionConvergenceResolver."""

from __future__ import annotations

import pytest

from sdkforge.core.cancellation import CancellationToken, OperationCancelledError
from sdkforge.core.version_resolver import (
    SDK_PACKAGES,
    VersionConvergenceResolver,
    filter_to_desired,
)
from sdkforge.core.versions import is_newer_or_equal, parse_version
from tests.fakes import LATEST_VERSIONS, FakeVersionLookup


class TestParseVersion:
    def test_four_components(self):
        assert parse_version("1.2.3.4") == (1, 2, 3, 4)

    def test_zero_fills_short_versions(self):
        assert parse_version("1.5") == (1, 5, 0, 0)

    @pytest.mark.parametrize("text", ["", "7", "1.2-preview", "abc", "1..2", "1.2.3.4.5", None])
    def test_rejects_non_numeric(self, text):
        assert parse_version(text) is None

    def test_compares_numerically_not_lexically(self):
        assert parse_version("1.10.0") > parse_version("1.9.0")


class TestIsNewerOrEqual:
    def test_equal(self):
        assert is_newer_or_equal("1.5", "1.5.0.0") is True

    def test_newer(self):
        assert is_newer_or_equal("2.0", "1.9.9.9") is True

    def test_older(self):
        assert is_newer_or_equal("1.4", "1.5") is False

    def test_unparseable_is_none(self):
        assert is_newer_or_equal("1.4-beta", "1.5") is None
        assert is_newer_or_equal("1.4", None) is None

    def test_single_component_is_unparseable(self):
        assert is_newer_or_equal("2", "1.0.0.0") is None


class TestResolve:
    def test_prefer_pinned_never_calls_lookup(self):
        """With every package pinned, the registry is never consulted."""
        lookup = FakeVersionLookup()
        pinned = {"A": "1.0", "B": "2.0"}
        result = VersionConvergenceResolver(lookup).resolve(
            {"A", "B"}, pinned, allow_prerelease=False, prefer_pinned=True
        )
        assert result == pinned
        assert lookup.calls == []

    def test_unpinned_packages_are_looked_up(self):
        lookup = FakeVersionLookup({"A": "1.1", "B": "2.2"})
        result = VersionConvergenceResolver(lookup).resolve(
            ["A", "B"], {"A": "1.0"}, allow_prerelease=True, prefer_pinned=True
        )
        assert result == {"A": "1.0", "B": "2.2"}
        assert lookup.calls == [("B", True)]

    def test_ignores_pins_when_not_preferred(self):
        lookup = FakeVersionLookup({"A": "1.1"})
        result = VersionConvergenceResolver(lookup).resolve(
            ["A"], {"A": "1.0"}, allow_prerelease=False, prefer_pinned=False
        )
        assert result == {"A": "1.1"}

    def test_pin_lookup_is_case_insensitive(self):
        lookup = FakeVersionLookup({})
        result = VersionConvergenceResolver(lookup).resolve(
            ["microsoft.windowsappsdk"],
            {"Microsoft.WindowsAppSDK": "1.7.0"},
            allow_prerelease=False,
            prefer_pinned=True,
        )
        assert result == {"microsoft.windowsappsdk": "1.7.0"}

    def test_failed_lookup_omits_package(self):
        """A registry failure for one package drops it; the rest still resolve."""
        lookup = FakeVersionLookup({"A": "1.0", "B": "2.0"}, failing=["A"])
        result = VersionConvergenceResolver(lookup).resolve(
            ["A", "B"], None, allow_prerelease=False, prefer_pinned=False
        )
        assert result == {"B": "2.0"}

    def test_empty_version_is_omitted(self):
        lookup = FakeVersionLookup({"A": ""})
        result = VersionConvergenceResolver(lookup).resolve(
            ["A"], None, allow_prerelease=False, prefer_pinned=False
        )
        assert result == {}

    def test_empty_desired_set_is_empty_not_error(self):
        result = VersionConvergenceResolver(FakeVersionLookup()).resolve(
            [], {}, allow_prerelease=False, prefer_pinned=True
        )
        assert result == {}

    def test_lookups_run_in_sorted_order(self):
        lookup = FakeVersionLookup({"b": "1", "A": "1", "c": "1"})
        VersionConvergenceResolver(lookup).resolve(
            ["c", "b", "A"], None, allow_prerelease=False, prefer_pinned=False
        )
        assert [name for name, _ in lookup.calls] == ["A", "b", "c"]

    def test_cancellation_propagates(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            VersionConvergenceResolver(FakeVersionLookup()).resolve(
                ["A"], None, allow_prerelease=False, prefer_pinned=False, cancel=token
            )

    def test_default_versions_cover_sdk_set(self):
        result = VersionConvergenceResolver(FakeVersionLookup()).default_versions(
            allow_prerelease=False
        )
        assert set(result) == set(SDK_PACKAGES)
        assert result == {name: LATEST_VERSIONS[name] for name in SDK_PACKAGES}


class TestFilterToDesired:
    def test_drops_incidental_packages(self):
        used = {"Microsoft.WindowsAppSDK": "1.7", "Microsoft.Web.WebView2": "1.0"}
        assert filter_to_desired(used, SDK_PACKAGES) == {"Microsoft.WindowsAppSDK": "1.7"}

    def test_case_insensitive(self):
        assert filter_to_desired({"a.B": "1"}, ["A.b"]) == {"a.B": "1"}
