"""
Symbol Table: typed configuration symbols with provenance.

The table is the single shared mutable resource of one top-level apply.
Configuration sources never assign values directly: they hand a
``SymbolValue`` to :meth:`Symbol.set_value_tracked`, which coerces it to the
declared type, refuses it with :class:`SymbolRejectedError` if it does not
fit, and records who set it and from where.

Discovering the symbol universe from a kernel tree is not done here; tables
are built from a mapping of names to types or from a TOML declaration file::

    [env]
    KERNELVERSION = "6.6.1"

    [symbols]
    FOO = "bool"
    BAR = "tristate"
    NR_CPUS = { type = "int", range = [1, 8192] }
    PHYS_BASE = "hex"
    CMDLINE = "string"

Tags:
    symbol-table, provenance, coercion, autokernel
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from autokernel.bridge.dotconfig import parse_config, quote
from autokernel.bridge.values import (
    AutoValue,
    BoolValue,
    NumberValue,
    SymbolType,
    SymbolValue,
    Tristate,
    TristateValue,
    parse_number_literal,
    parse_tristate,
    value_to_text,
)
from autokernel.core.errors import AutokernelError, SymbolFileError, SymbolRejectedError
from autokernel.core.logging import get_logger

logger = get_logger(__name__)

_TYPE_NAMES: dict[str, tuple[SymbolType, bool]] = {
    "bool": (SymbolType.BOOLEAN, False),
    "boolean": (SymbolType.BOOLEAN, False),
    "tristate": (SymbolType.TRISTATE, False),
    "int": (SymbolType.NUMBER, False),
    "number": (SymbolType.NUMBER, False),
    "hex": (SymbolType.NUMBER, True),
    "string": (SymbolType.STRING, False),
    "auto": (SymbolType.AUTO, False),
}


@dataclass(frozen=True)
class Provenance:
    """Where an assignment came from.

    Attributes:
        source: Originating script or config file (``from`` in the guest API)
        traceback: Optional guest call chain explaining the assignment
    """

    source: str
    traceback: str | None = None


class Symbol:
    """A named, typed configuration item with a current value and history."""

    def __init__(
        self,
        name: str,
        symbol_type: SymbolType,
        *,
        is_hex: bool = False,
        value_range: tuple[int, int] | None = None,
    ):
        self.name = name
        self.symbol_type = symbol_type
        self.is_hex = is_hex
        self.value_range = value_range
        self.value: SymbolValue | None = None
        self.history: list[Provenance] = []

    def __repr__(self) -> str:
        return f"Symbol({self.name!r}, {self.symbol_type.value}, value={self.get_string_value()!r})"

    @property
    def provenance(self) -> Provenance | None:
        """Provenance of the assignment that produced the current value."""
        return self.history[-1] if self.history else None

    def get_string_value(self) -> str:
        if self.value is None:
            if self.symbol_type in (SymbolType.BOOLEAN, SymbolType.TRISTATE):
                return "n"
            return ""
        if isinstance(self.value, NumberValue) and self.is_hex:
            return hex(self.value.value)
        return value_to_text(self.value)

    def set_value_tracked(self, value: SymbolValue, source: str, traceback: str | None = None) -> None:
        """Coerce, validate and store ``value``, recording its provenance.

        Raises:
            SymbolRejectedError: the value does not fit the declared type.
        """
        self.value = self._coerce(value)
        self.history.append(Provenance(source, traceback))

    def assign_raw(self, text: str, source: str) -> None:
        """Store text without any validation (unchecked loads)."""
        self.value = AutoValue(text)
        self.history.append(Provenance(source))

    def reset(self) -> None:
        self.value = None
        self.history.clear()

    def _reject(self, value: SymbolValue, reason: str) -> SymbolRejectedError:
        return SymbolRejectedError(
            self.name,
            f"cannot set {self.symbol_type.value} symbol {self.name} to {value_to_text(value)!r}: {reason}",
        )

    def _coerce(self, value: SymbolValue) -> SymbolValue:
        kind = self.symbol_type

        if kind is SymbolType.AUTO:
            return value

        if kind is SymbolType.BOOLEAN:
            if isinstance(value, BoolValue):
                return value
            if isinstance(value, (AutoValue, TristateValue)):
                state = value.value if isinstance(value, TristateValue) else self._parse_state(value)
                if state is Tristate.MODULE:
                    raise self._reject(value, "boolean symbols cannot be built as modules")
                return BoolValue(state is Tristate.YES)
            raise self._reject(value, "expected a boolean")

        if kind is SymbolType.TRISTATE:
            if isinstance(value, TristateValue):
                return value
            if isinstance(value, BoolValue):
                return TristateValue(Tristate.from_bool(value.value))
            if isinstance(value, AutoValue):
                return TristateValue(self._parse_state(value))
            raise self._reject(value, "expected y, m or n")

        if kind is SymbolType.NUMBER:
            if isinstance(value, AutoValue):
                try:
                    value = NumberValue(parse_number_literal(value.text))
                except AutokernelError as exc:
                    raise self._reject(value, exc.message) from exc
            if not isinstance(value, NumberValue):
                raise self._reject(value, "expected a number")
            if self.value_range is not None:
                low, high = self.value_range
                if not low <= value.value <= high:
                    raise self._reject(value, f"outside range [{low}, {high}]")
            return value

        # String symbols keep their text in an AutoValue.
        if isinstance(value, AutoValue):
            return value
        raise self._reject(value, "expected a string")

    def _parse_state(self, value: AutoValue) -> Tristate:
        try:
            return parse_tristate(value.text)
        except AutokernelError as exc:
            raise self._reject(value, exc.message) from exc


# =============================================================================
# DECLARATION FILE SCHEMA
# =============================================================================


class SymbolDeclaration(BaseModel):
    """One entry of the ``[symbols]`` table."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["bool", "boolean", "tristate", "int", "number", "hex", "string", "auto"]
    range: tuple[int, int] | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"type": data}
        return data


class SymbolFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    env: dict[str, str] = {}
    symbols: dict[str, SymbolDeclaration] = {}


# =============================================================================
# TABLE
# =============================================================================


class SymbolTable:
    """Name-indexed set of symbols plus the environment scripts may query."""

    def __init__(self, symbols: list[Symbol] | None = None, env: Mapping[str, str] | None = None):
        self.name_to_symbol: dict[str, Symbol] = {}
        for sym in symbols or []:
            self.name_to_symbol[sym.name] = sym
        self.env: dict[str, str] = dict(env or {})

    @classmethod
    def from_types(
        cls,
        types: Mapping[str, str | SymbolType],
        env: Mapping[str, str] | None = None,
    ) -> SymbolTable:
        """Build a table from ``{name: type}``; types may be enum members or names like ``"hex"``."""
        symbols = []
        for name, kind in types.items():
            if isinstance(kind, SymbolType):
                symbols.append(Symbol(name, kind))
            else:
                symbol_type, is_hex = _TYPE_NAMES[kind.lower()]
                symbols.append(Symbol(name, symbol_type, is_hex=is_hex))
        return cls(symbols, env)

    @classmethod
    def from_file(cls, path: str | Path) -> SymbolTable:
        """Load a TOML symbol declaration file."""
        path = Path(path)
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
            parsed = SymbolFile.model_validate(data)
        except (OSError, tomllib.TOMLDecodeError, ValidationError) as exc:
            raise SymbolFileError(f"cannot load symbol file {path}: {exc}", cause=exc).with_context(
                source=str(path)
            ) from exc

        symbols = []
        for name, decl in parsed.symbols.items():
            symbol_type, is_hex = _TYPE_NAMES[decl.type]
            symbols.append(Symbol(name, symbol_type, is_hex=is_hex, value_range=decl.range))
        logger.debug("symbols.loaded", path=str(path), count=len(symbols))
        return cls(symbols, parsed.env)

    def __contains__(self, name: object) -> bool:
        return name in self.name_to_symbol

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.name_to_symbol.values())

    def __len__(self) -> int:
        return len(self.name_to_symbol)

    def symbol(self, name: str) -> Symbol | None:
        return self.name_to_symbol.get(name)

    def get_env(self, name: str) -> str | None:
        """Environment value, falling back to the process environment."""
        if name in self.env:
            return self.env[name]
        return os.environ.get(name)

    def read_config_unchecked(self, path: str | Path, *, prefix: str = "CONFIG_") -> None:
        """Apply a ``.config`` file verbatim, skipping type checks and unknown names."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SymbolFileError(f"cannot read {path}: {exc}", cause=exc).with_context(source=str(path)) from exc

        applied = 0
        for entry in parse_config(text, source=str(path), prefix=prefix):
            sym = self.symbol(entry.name)
            if sym is None:
                continue
            sym.assign_raw(entry.value, str(path))
            applied += 1
        logger.debug("config.unchecked.applied", path=str(path), assignments=applied)

    def reset(self) -> None:
        for sym in self:
            sym.reset()

    def snapshot(self) -> dict[str, str]:
        """Current textual value of every symbol."""
        return {sym.name: sym.get_string_value() for sym in self}

    def dump_config(self, *, prefix: str = "CONFIG_") -> str:
        """Render every assigned symbol as ``.config`` text."""
        lines = []
        for sym in self:
            if sym.value is None:
                continue
            text = sym.get_string_value()
            if sym.symbol_type in (SymbolType.BOOLEAN, SymbolType.TRISTATE) and text == "n":
                lines.append(f"# {prefix}{sym.name} is not set")
            elif sym.symbol_type is SymbolType.STRING:
                lines.append(f"{prefix}{sym.name}={quote(text)}")
            else:
                lines.append(f"{prefix}{sym.name}={text}")
        return "\n".join(lines) + ("\n" if lines else "")


__all__ = ["Provenance", "Symbol", "SymbolDeclaration", "SymbolFile", "SymbolTable"]
