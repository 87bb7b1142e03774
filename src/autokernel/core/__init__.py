"""
autokernel core primitives: errors, logging and settings.
"""

from autokernel.core.errors import (
    AutokernelError,
    ConfigLoadError,
    ErrorCategory,
    ErrorContext,
    InternalBridgeError,
    NamespaceError,
    NumberRangeError,
    ScriptError,
    ScriptTimeoutError,
    SymbolFileError,
    SymbolRejectedError,
    TristateParseError,
    UnknownSymbolError,
    ValueConversionError,
)
from autokernel.core.logging import LogContext, configure_logging, get_logger
from autokernel.core.settings import AutokernelSettings, clear_settings_cache, get_settings

__all__ = [
    "AutokernelError",
    "ConfigLoadError",
    "ErrorCategory",
    "ErrorContext",
    "InternalBridgeError",
    "NamespaceError",
    "NumberRangeError",
    "ScriptError",
    "ScriptTimeoutError",
    "SymbolFileError",
    "SymbolRejectedError",
    "TristateParseError",
    "UnknownSymbolError",
    "ValueConversionError",
    "LogContext",
    "configure_logging",
    "get_logger",
    "AutokernelSettings",
    "clear_settings_cache",
    "get_settings",
]
