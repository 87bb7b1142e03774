"""
autokernel - kernel configuration written in Lua.

Packages:
- autokernel.core: errors, logging, settings
- autokernel.bridge: symbol value model and Symbol Table
- autokernel.config: configuration sources (Lua, ``.config``)
- autokernel.cli: command line interface
"""

__version__ = "0.1.0"

from autokernel.bridge import SymbolTable, SymbolType, Tristate  # noqa: E402
from autokernel.config import ConfigSource, KConfig, LuaConfig, load_config_source  # noqa: E402

__all__ = [
    "__version__",
    "SymbolTable",
    "SymbolType",
    "Tristate",
    "ConfigSource",
    "KConfig",
    "LuaConfig",
    "load_config_source",
]
