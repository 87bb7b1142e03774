"""
Shared pytest fixtures for autokernel tests.

This module provides:
- Settings cache isolation
- A Symbol Table covering every symbol type
- Helpers to write source files and run Lua snippets

Usage:
    def test_something(table, run_lua):
        run_lua('FOO(true)')
        assert table.symbol("FOO").get_string_value() == "y"
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

# Ensure autokernel package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from autokernel.bridge.symbols import SymbolTable
from autokernel.config.lua import LuaConfig
from autokernel.core.logging import clear_context
from autokernel.core.settings import AutokernelSettings, clear_settings_cache

SYMBOL_TYPES = {
    "FOO": "bool",
    "BAR": "tristate",
    "NR_CPUS": "int",
    "PHYS_BASE": "hex",
    "CMDLINE": "string",
    "ANYTHING": "auto",
}


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run every test against default settings and a clean log context."""
    import os

    for key in list(os.environ):
        if key.startswith("AUTOKERNEL_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("KERNELVERSION", raising=False)
    clear_settings_cache()
    clear_context()
    yield
    clear_settings_cache()
    clear_context()


# =============================================================================
# Tables and settings
# =============================================================================


@pytest.fixture
def settings() -> AutokernelSettings:
    return AutokernelSettings()


@pytest.fixture
def table() -> SymbolTable:
    """One symbol of each type, nothing assigned."""
    return SymbolTable.from_types(SYMBOL_TYPES, env={"KERNELVERSION": "6.6.1"})


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write ``content`` to ``tmp_path / name`` and return the path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def run_lua(table: SymbolTable, settings: AutokernelSettings) -> Callable[..., SymbolTable]:
    """Apply a Lua snippet named ``test.cfg`` onto the ``table`` fixture."""

    def _run(code: str, *, name: str = "test.cfg", **overrides: Any) -> SymbolTable:
        effective = settings.model_copy(update=overrides) if overrides else settings
        LuaConfig(name, code, settings=effective).apply_kernel_config(table)
        return table

    return _run
