"""
Configuration sources: Lua scripts and declarative ``.config`` files.

Both implement :class:`ConfigSource`, so callers apply them the same way::

    from autokernel.config import load_config_source

    load_config_source("autokernel.lua").apply_kernel_config(table)
"""

from autokernel.config.base import ConfigSource, load_config_source
from autokernel.config.kconfig import KConfig
from autokernel.config.lua import CapabilityApi, ExecutionContext, ExecutionState, LuaConfig
from autokernel.config.namespace import generated_identifiers, plan_bindings

__all__ = [
    "ConfigSource",
    "load_config_source",
    "KConfig",
    "LuaConfig",
    "CapabilityApi",
    "ExecutionContext",
    "ExecutionState",
    "generated_identifiers",
    "plan_bindings",
]
