"""Tests for the symbol value model and guest value marshalling."""

import pytest

from autokernel.bridge.values import (
    U64_MAX,
    AutoValue,
    BoolValue,
    NumberValue,
    SymbolType,
    Tristate,
    TristateValue,
    number_from_guest,
    parse_number_literal,
    parse_tristate,
    type_name,
    value_from_guest,
    value_to_text,
)
from autokernel.core.errors import NumberRangeError, TristateParseError, ValueConversionError


class TestTristate:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("y", Tristate.YES),
            ("Yes", Tristate.YES),
            ("m", Tristate.MODULE),
            ("MODULE", Tristate.MODULE),
            ("n", Tristate.NO),
            (" no ", Tristate.NO),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_tristate(text) is expected

    @pytest.mark.parametrize("text", ["maybe", "", "1", 1, None, True])
    def test_parse_rejects(self, text):
        with pytest.raises(TristateParseError):
            parse_tristate(text)

    def test_ordering(self):
        assert Tristate.NO.level < Tristate.MODULE.level < Tristate.YES.level

    def test_from_bool(self):
        assert Tristate.from_bool(True) is Tristate.YES
        assert Tristate.from_bool(False) is Tristate.NO


class TestNumberLiterals:
    def test_decimal(self):
        assert parse_number_literal("64") == 64

    def test_hex(self):
        assert parse_number_literal("0xFFFFFFFFFFFFFFFF") == U64_MAX

    def test_above_signed_range(self):
        assert parse_number_literal(str(2**63)) == 2**63

    @pytest.mark.parametrize("text", ["-1", "0x1" + "0" * 16, "twelve", "", "0x"])
    def test_rejects(self, text):
        with pytest.raises(NumberRangeError):
            parse_number_literal(text)


class TestNumberFromGuest:
    def test_integer(self):
        assert number_from_guest(4096) == 4096

    def test_integral_float(self):
        assert number_from_guest(8.0) == 8

    def test_string_literal(self):
        assert number_from_guest("18446744073709551615") == U64_MAX

    def test_negative_integer_is_rejected(self):
        """A negative Lua integer is what a wrapped u64 looks like."""
        with pytest.raises(NumberRangeError, match="2\\^63"):
            number_from_guest(-1)

    @pytest.mark.parametrize("value", [1.5, float("nan"), float("inf"), -2.0, float(2**53), 1e300])
    def test_inexact_floats_are_rejected(self, value):
        with pytest.raises(NumberRangeError):
            number_from_guest(value)

    def test_boolean_is_not_a_number(self):
        with pytest.raises(NumberRangeError):
            number_from_guest(True)

    def test_other_types(self):
        with pytest.raises(ValueConversionError):
            number_from_guest(object())


class TestNumberValue:
    def test_range_checked(self):
        with pytest.raises(NumberRangeError):
            NumberValue(-1)
        with pytest.raises(NumberRangeError):
            NumberValue(U64_MAX + 1)
        assert NumberValue(U64_MAX).value == U64_MAX


class TestValueFromGuest:
    def test_bool(self):
        assert value_from_guest(True, SymbolType.BOOLEAN) == BoolValue(True)

    def test_number(self):
        assert value_from_guest(3, SymbolType.NUMBER) == NumberValue(3)

    def test_text_for_tristate_symbol(self):
        assert value_from_guest("m", SymbolType.TRISTATE) == TristateValue(Tristate.MODULE)

    def test_bad_text_for_tristate_symbol(self):
        with pytest.raises(TristateParseError):
            value_from_guest("maybe", SymbolType.TRISTATE)

    def test_text_otherwise_auto(self):
        assert value_from_guest("quiet", SymbolType.STRING) == AutoValue("quiet")

    def test_unsupported(self):
        with pytest.raises(ValueConversionError):
            value_from_guest(None, SymbolType.STRING)


class TestValueToText:
    @pytest.mark.parametrize(
        "value,text",
        [
            (AutoValue("abc"), "abc"),
            (BoolValue(True), "y"),
            (BoolValue(False), "n"),
            (NumberValue(42), "42"),
            (TristateValue(Tristate.MODULE), "m"),
        ],
    )
    def test_render(self, value, text):
        assert value_to_text(value) == text

    def test_type_name(self):
        assert type_name(SymbolType.TRISTATE) == "Tristate"
