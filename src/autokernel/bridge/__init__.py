"""
Host side of the bridge: the symbol value model and the Symbol Table.
"""

from autokernel.bridge.symbols import Provenance, Symbol, SymbolTable
from autokernel.bridge.tree import read_kernel_version
from autokernel.bridge.values import (
    AutoValue,
    BoolValue,
    NumberValue,
    SymbolType,
    SymbolValue,
    Tristate,
    TristateValue,
    number_from_guest,
    parse_tristate,
    value_to_text,
)

__all__ = [
    "Provenance",
    "Symbol",
    "SymbolTable",
    "AutoValue",
    "BoolValue",
    "NumberValue",
    "SymbolType",
    "SymbolValue",
    "Tristate",
    "TristateValue",
    "number_from_guest",
    "parse_tristate",
    "value_to_text",
    "read_kernel_version",
]
