"""
Symbol value model shared by the Lua bridge and the Symbol Table.

A closed tagged union, ``SymbolValue``, is the only thing that crosses from
guest code into the Symbol Table. Every guest primitive goes through one of
the explicit conversion functions below; none of them guess or truncate.

Numeric boundary:
    Lua integers are signed 64-bit and Lua floats are doubles, so neither
    covers the unsigned 64-bit range kernel symbols use. A negative number
    coming out of Lua is taken as evidence of wrap-around and refused, as is
    any float that is fractional or at/above 2^53. Values >= 2^63 have to be
    written as text (``"0xffffffffffffffff"``) and are parsed here.

Examples:
    >>> parse_tristate("m")
    <Tristate.MODULE: 'm'>
    >>> number_from_guest("18446744073709551615")
    18446744073709551615
    >>> value_to_text(TristateValue(Tristate.YES))
    'y'

Tags:
    value-model, tagged-union, marshalling, autokernel
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from autokernel.core.errors import NumberRangeError, TristateParseError, ValueConversionError

U64_MAX = 2**64 - 1
FLOAT_EXACT_LIMIT = 2**53


class SymbolType(str, Enum):
    """Declared type of a symbol.

    The value doubles as the textual rendering handed to guest code by
    ``ak.symbol_get_type``.
    """

    BOOLEAN = "Boolean"
    TRISTATE = "Tristate"
    NUMBER = "Number"
    STRING = "String"
    AUTO = "Auto"


class Tristate(str, Enum):
    """Three-valued symbol state, ordered No < Module < Yes."""

    YES = "y"
    MODULE = "m"
    NO = "n"

    @property
    def level(self) -> int:
        return {"n": 0, "m": 1, "y": 2}[self.value]

    @classmethod
    def from_bool(cls, value: bool) -> Tristate:
        return cls.YES if value else cls.NO


_TRISTATE_TOKENS = {
    "y": Tristate.YES,
    "yes": Tristate.YES,
    "m": Tristate.MODULE,
    "module": Tristate.MODULE,
    "n": Tristate.NO,
    "no": Tristate.NO,
}


@dataclass(frozen=True)
class AutoValue:
    """Unresolved text; the Symbol Table coerces it to the declared type."""

    text: str


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class NumberValue:
    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= U64_MAX:
            raise NumberRangeError(f"{self.value} is outside the unsigned 64-bit range", value=self.value)


@dataclass(frozen=True)
class TristateValue:
    value: Tristate


SymbolValue = Union[AutoValue, BoolValue, NumberValue, TristateValue]


# =============================================================================
# GUEST -> HOST
# =============================================================================


def parse_tristate(text: Any) -> Tristate:
    """Parse ``y``/``yes``, ``m``/``module`` or ``n``/``no`` (any case)."""
    if isinstance(text, Tristate):
        return text
    if not isinstance(text, str):
        raise TristateParseError(text)
    try:
        return _TRISTATE_TOKENS[text.strip().lower()]
    except KeyError:
        raise TristateParseError(text) from None


def parse_number_literal(text: str) -> int:
    """Parse a decimal or ``0x`` hexadecimal literal into the u64 range."""
    literal = text.strip().replace("_", "")
    try:
        if literal[:2].lower() == "0x":
            number = int(literal[2:], 16)
        else:
            number = int(literal, 10)
    except ValueError:
        raise NumberRangeError(f"{text!r} is not a number literal", value=text) from None
    if number < 0:
        raise NumberRangeError(f"{text!r} is negative", value=text)
    if number > U64_MAX:
        raise NumberRangeError(f"{text!r} exceeds the unsigned 64-bit range", value=text)
    return number


def number_from_guest(value: Any) -> int:
    """Convert a Lua number (or a textual literal) to an unsigned 64-bit int."""
    if isinstance(value, bool):
        raise NumberRangeError("a boolean is not a number", value=value)
    if isinstance(value, str):
        return parse_number_literal(value)
    if isinstance(value, int):
        if value < 0:
            raise NumberRangeError(
                f"negative value {value}: Lua cannot represent values >= 2^63, pass them as a string",
                value=value,
            )
        if value > U64_MAX:
            raise NumberRangeError(f"{value} exceeds the unsigned 64-bit range", value=value)
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise NumberRangeError(f"{value!r} is not an integer", value=value)
        if value < 0:
            raise NumberRangeError(f"negative value {value!r}", value=value)
        if value >= FLOAT_EXACT_LIMIT:
            raise NumberRangeError(
                f"{value!r} lost precision as a Lua float, pass it as a string",
                value=value,
            )
        return int(value)
    raise ValueConversionError(f"cannot use {type(value).__name__} as a number", value=value)


def value_from_guest(value: Any, symbol_type: SymbolType) -> SymbolValue:
    """Pick the variant for an untyped guest value, guided by the declared type.

    Used by the convenience setters: booleans stay booleans, numbers become
    ``NumberValue`` and text is parsed as a tristate for tristate symbols,
    otherwise passed on as ``AutoValue``.
    """
    if isinstance(value, bool):
        return BoolValue(value)
    if isinstance(value, (int, float)):
        return NumberValue(number_from_guest(value))
    if isinstance(value, str):
        if symbol_type is SymbolType.TRISTATE:
            return TristateValue(parse_tristate(value))
        return AutoValue(value)
    raise ValueConversionError(f"cannot assign a {type(value).__name__} to a symbol", value=value)


# =============================================================================
# HOST -> GUEST
# =============================================================================


def value_to_text(value: SymbolValue) -> str:
    """Render a value the way ``.config`` files and ``symbol_get_string`` show it."""
    if isinstance(value, AutoValue):
        return value.text
    if isinstance(value, BoolValue):
        return "y" if value.value else "n"
    if isinstance(value, NumberValue):
        return str(value.value)
    if isinstance(value, TristateValue):
        return value.value.value
    raise ValueConversionError(f"not a symbol value: {value!r}", value=value)


def type_name(symbol_type: SymbolType) -> str:
    """Debug-style rendering of a type tag, e.g. ``"Tristate"``."""
    return symbol_type.value


__all__ = [
    "U64_MAX",
    "SymbolType",
    "Tristate",
    "AutoValue",
    "BoolValue",
    "NumberValue",
    "TristateValue",
    "SymbolValue",
    "parse_tristate",
    "parse_number_literal",
    "number_from_guest",
    "value_from_guest",
    "value_to_text",
    "type_name",
]
