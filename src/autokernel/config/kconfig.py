"""Declarative ``.config`` configuration source (checked mode)."""

from __future__ import annotations

from pathlib import Path

from autokernel.bridge.dotconfig import parse_config
from autokernel.bridge.symbols import SymbolTable
from autokernel.bridge.values import AutoValue
from autokernel.core.errors import ConfigLoadError, SymbolRejectedError
from autokernel.core.logging import LogContext, get_logger
from autokernel.core.settings import AutokernelSettings, get_settings

logger = get_logger(__name__)


class KConfig:
    """
    A ``.config`` file applied with full validation.

    Unlike ``SymbolTable.read_config_unchecked``, every line must name a
    known symbol and every value must fit the symbol's declared type; the
    first violation stops the apply with a ``ConfigLoadError`` pointing at
    the offending line. Lines before it stay applied.
    """

    def __init__(self, name: str, text: str, *, settings: AutokernelSettings | None = None):
        self._name = name
        self._text = text
        self._settings = settings or get_settings()

    @classmethod
    def from_file(cls, path: str | Path, *, settings: AutokernelSettings | None = None) -> KConfig:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigLoadError(f"cannot read {path}: {exc}", cause=exc).with_context(source=str(path)) from exc
        return cls(str(path), text, settings=settings)

    @property
    def name(self) -> str:
        return self._name

    def apply_kernel_config(self, table: SymbolTable) -> None:
        prefix = self._settings.symbol_prefix
        applied = 0
        with LogContext(source=self._name):
            logger.info("config.apply.started", kind="kconfig")
            for entry in parse_config(self._text, source=self._name, prefix=prefix):
                where = f"{self._name}:{entry.line}"
                sym = table.symbol(entry.name)
                if sym is None:
                    raise ConfigLoadError(f"{where}: unknown symbol {prefix}{entry.name}").with_context(
                        source=self._name, line=entry.line, symbol=entry.name
                    )
                try:
                    sym.set_value_tracked(AutoValue(entry.value), self._name, where)
                except SymbolRejectedError as exc:
                    raise ConfigLoadError(f"{where}: {exc.message}", cause=exc).with_context(
                        source=self._name, line=entry.line, symbol=entry.name
                    ) from exc
                applied += 1
            logger.info("config.apply.completed", kind="kconfig", assignments=applied)


__all__ = ["KConfig"]
