"""
Symbol namespace generation.

Before a user script runs, every configuration symbol gets a first-class
Lua handle bound to a global, so scripts can write ``CONFIG_FOO`` or ``FOO``
instead of passing names as strings.

Rules:
    - a name is bound only if it is non-empty and contains an ASCII
      upper-case letter (lower-case names are internal helpers)
    - the prefixed binding ``<prefix><NAME>`` is always generated
    - the bare alias ``<NAME>`` is generated unless the name starts with a
      digit
    - every identifier must satisfy the Lua identifier grammar, must not be
      a Lua keyword and must not shadow a prelude global

Bindings are not produced as Lua source text. The plan computed here is
handed to the prelude's registration function as a table, so names never
pass through the Lua parser.

Examples:
    >>> sorted(generated_identifiers(["FOO", "bar", "2X"]))
    ['CONFIG_2X', 'CONFIG_FOO', 'FOO']
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from autokernel.core.errors import NamespaceError

LUA_KEYWORDS = frozenset(
    {
        "and", "break", "do", "else", "elseif", "end", "false", "for", "function", "goto", "if",
        "in", "local", "nil", "not", "or", "repeat", "return", "then", "true", "until", "while",
    }
)

# Globals owned by the prelude and the capability installation, plus Lua's own.
RESERVED_GLOBALS = frozenset(
    {"Symbol", "AK_API_VERSION", "ak", "load_kconfig", "symbol_set", "y", "m", "n", "_G", "_VERSION", "_ENV"}
)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


@dataclass(frozen=True)
class Binding:
    """Globals that refer to one symbol's handle."""

    symbol: str
    prefixed: str
    alias: str | None = None


def is_eligible(name: str) -> bool:
    return bool(name) and any("A" <= char <= "Z" for char in name)


def validate_identifier(identifier: str) -> str:
    if not _IDENTIFIER.match(identifier):
        raise NamespaceError(f"{identifier!r} is not a valid Lua identifier")
    if identifier in LUA_KEYWORDS:
        raise NamespaceError(f"{identifier!r} is a Lua keyword")
    if identifier in RESERVED_GLOBALS:
        raise NamespaceError(f"{identifier!r} collides with a reserved global")
    return identifier


def plan_bindings(names: Iterable[str], prefix: str = "CONFIG_") -> list[Binding]:
    """Compute the bindings for ``names`` in sorted, deterministic order."""
    bindings = []
    for name in sorted(set(names)):
        if not is_eligible(name):
            continue
        prefixed = validate_identifier(f"{prefix}{name}")
        alias = None if name[0].isdigit() else validate_identifier(name)
        bindings.append(Binding(name, prefixed, alias))
    return bindings


def generated_identifiers(names: Iterable[str], prefix: str = "CONFIG_") -> set[str]:
    """All global names ``plan_bindings`` would define."""
    identifiers = set()
    for binding in plan_bindings(names, prefix):
        identifiers.add(binding.prefixed)
        if binding.alias:
            identifiers.add(binding.alias)
    return identifiers


__all__ = [
    "Binding",
    "LUA_KEYWORDS",
    "RESERVED_GLOBALS",
    "is_eligible",
    "validate_identifier",
    "plan_bindings",
    "generated_identifiers",
]
