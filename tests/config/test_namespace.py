"""Tests for symbol handle binding plans."""

import pytest

from autokernel.config.namespace import (
    Binding,
    generated_identifiers,
    is_eligible,
    plan_bindings,
    validate_identifier,
)
from autokernel.core.errors import NamespaceError


class TestEligibility:
    @pytest.mark.parametrize("name,expected", [("FOO", True), ("2X", True), ("bar", False), ("", False), ("x_Y", True)])
    def test_is_eligible(self, name, expected):
        assert is_eligible(name) is expected


class TestPlanBindings:
    def test_example(self):
        assert generated_identifiers(["FOO", "bar", "2X"]) == {"CONFIG_FOO", "FOO", "CONFIG_2X"}

    def test_sorted_and_deduplicated(self):
        assert plan_bindings(["ZED", "ABC", "ZED"]) == [
            Binding("ABC", "CONFIG_ABC", "ABC"),
            Binding("ZED", "CONFIG_ZED", "ZED"),
        ]

    def test_leading_digit_has_no_alias(self):
        assert plan_bindings(["64BIT"]) == [Binding("64BIT", "CONFIG_64BIT", None)]

    def test_custom_prefix(self):
        assert generated_identifiers(["FOO"], prefix="AK_") == {"AK_FOO", "FOO"}

    def test_empty(self):
        assert plan_bindings([]) == []

    def test_invalid_character(self):
        with pytest.raises(NamespaceError):
            plan_bindings(["FOO-BAR"])

    @pytest.mark.parametrize("name", ["_G", "_VERSION", "_ENV"])
    def test_collision_with_lua_global(self, name):
        with pytest.raises(NamespaceError, match="global"):
            plan_bindings([name])

    def test_collision_with_prelude_global(self):
        with pytest.raises(NamespaceError, match="reserved global"):
            plan_bindings(["Symbol"])


class TestValidateIdentifier:
    @pytest.mark.parametrize("identifier", ["end", "1abc", "a b", "ak", "load_kconfig"])
    def test_rejects(self, identifier):
        with pytest.raises(NamespaceError):
            validate_identifier(identifier)

    def test_accepts(self):
        assert validate_identifier("CONFIG_FOO") == "CONFIG_FOO"
