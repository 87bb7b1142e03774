"""
Configuration source protocol.

Every configuration source, scripted or declarative, implements one
capability: apply its settings onto a given Symbol Table. The recursive
loader and the CLI treat sources uniformly through this protocol.

Usage:
    from autokernel.config import load_config_source

    source = load_config_source("autokernel.lua")
    source.apply_kernel_config(table)
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from autokernel.bridge.symbols import SymbolTable
    from autokernel.core.settings import AutokernelSettings

LUA_SUFFIXES = frozenset({".lua"})


@runtime_checkable
class ConfigSource(Protocol):
    """
    Protocol for all configuration sources.

    Implementations must provide:
    - name: File name or other identifier used as provenance ``from``
    - apply_kernel_config(): Apply the source onto a Symbol Table
    """

    @property
    def name(self) -> str:
        """Identifier of the source (usually its path)."""
        ...

    def apply_kernel_config(self, table: SymbolTable) -> None:
        """
        Apply this source's settings onto ``table``.

        Assignments made before a failure stay applied.

        Raises:
            AutokernelError: the source could not be read or applied
        """
        ...


def load_config_source(
    path: str | Path,
    *,
    settings: AutokernelSettings | None = None,
    depth: int = 0,
) -> ConfigSource:
    """Pick the source implementation for ``path`` by its suffix."""
    from autokernel.config.kconfig import KConfig
    from autokernel.config.lua import LuaConfig

    path = Path(path)
    if path.suffix in LUA_SUFFIXES:
        return LuaConfig.from_file(path, settings=settings, depth=depth)
    return KConfig.from_file(path, settings=settings)


__all__ = ["ConfigSource", "load_config_source", "LUA_SUFFIXES"]
