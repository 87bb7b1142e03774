"""
Structured error types for autokernel.

Provides a hierarchy of typed errors with metadata for deciding whether a
failure aborts the whole configuration run, whether the guest script may see
and react to it, and which configuration source it should be attributed to.

Instead of generic exceptions that lose context, AutokernelError and its
subclasses carry:
- **Category:** What kind of error (symbol, value, source, script, etc.)
- **Fatal:** Whether the failure aborts the whole top-level apply
- **Context:** Source file, symbol name, line and custom fields
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different layers
    - **Explicit Fatality:** Each error knows if it stops the whole run
    - **Rich Context:** Errors carry the originating source for reporting
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                      AutokernelError                             │
        │  (category, fatal, context, cause)                               │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  UnknownSymbolError  ValueConversionError  SymbolRejectedError  │
        │  (SYMBOL, fatal)     (VALUE)               (VALUE)              │
        │                           │                                      │
        │                      TristateParseError                          │
        │                      NumberRangeError                            │
        │                                                                  │
        │  ConfigLoadError     ScriptError           InternalBridgeError  │
        │  (SOURCE)            (SCRIPT)              (INTERNAL, fatal)    │
        │                           │                      │               │
        │                      ScriptTimeoutError     NamespaceError       │
        │                                                                  │
        │  SymbolFileError                                                 │
        │  (CONFIG)                                                        │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Attaching the originating source:

    >>> error = TristateParseError("x")
    >>> error.with_context(source="test.cfg", symbol="BAR")
    TristateParseError(...)
    >>> error.context.source
    'test.cfg'

    Chaining errors for root cause:

    >>> try:
    ...     open("/missing/.config")
    ... except OSError as e:
    ...     raise ConfigLoadError("cannot read /missing/.config", cause=e)
    Traceback (most recent call last):
    ...
    ConfigLoadError: cannot read /missing/.config

Guardrails:
    ❌ DON'T: Raise plain Exception from a capability function
    ✅ DO: Raise the AutokernelError subclass matching the failure

    ❌ DON'T: Mark value errors fatal
    ✅ DO: Let the error type's default_fatal decide

Tags:
    error-handling, exception-hierarchy, error-context, autokernel

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and reporting.

    Categories follow the layers of the bridge:
    - **SYMBOL:** name lookup against the Symbol Table
    - **VALUE:** conversion or validation of a proposed value
    - **SOURCE:** reading or applying a configuration source
    - **SCRIPT:** failure of guest code
    - **CONFIG:** autokernel's own settings and declaration files
    - **INTERNAL / UNKNOWN:** defects in the embedding itself
    """

    SYMBOL = "SYMBOL"
    VALUE = "VALUE"
    SOURCE = "SOURCE"
    SCRIPT = "SCRIPT"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        source: Configuration source (file path or ``<internal>``)
        symbol: Symbol name the failing operation referred to
        line: Line number within the source, when known
        traceback: Guest call-chain description, when known
        metadata: Additional key-value pairs
    """

    source: str | None = None
    symbol: str | None = None
    line: int | None = None
    traceback: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["source", "symbol", "line", "traceback"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AutokernelError(Exception):
    """
    Base exception for all autokernel errors.

    All AutokernelError instances carry:
    - **category:** ErrorCategory enum for classification
    - **fatal:** True if the failure must abort the whole top-level apply,
      even when the guest script tries to catch it
    - **context:** ErrorContext with structured metadata
    - **cause:** Optional underlying exception for chaining

    Subclasses set ``default_category`` and ``default_fatal`` class
    attributes to provide sensible defaults for their layer.

    Examples:
        >>> error = AutokernelError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.fatal
        False
        >>> error.to_dict()["error_type"]
        'AutokernelError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    default_fatal: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        fatal: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.fatal = fatal if fatal is not None else self.default_fatal
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AutokernelError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConfigLoadError("Failed").with_context(source="base.config", line=12)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "fatal": self.fatal,
        }
        if self.context:
            context_dict = self.context.to_dict()
            if context_dict:
                result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SYMBOL ERRORS
# =============================================================================


class UnknownSymbolError(AutokernelError):
    """
    A capability call referenced a name the Symbol Table does not know.

    Fatal by default: the name-to-symbol mapping is expected to be complete,
    so an unknown name points at a broken script or symbol universe rather
    than at a value the script could correct.
    """

    default_category = ErrorCategory.SYMBOL
    default_fatal = True

    def __init__(self, name: str, **kwargs: Any):
        self.symbol_name = name
        super().__init__(f"Unknown symbol: {name}", **kwargs)
        self.context.symbol = name


# =============================================================================
# VALUE ERRORS
# =============================================================================


class ValueConversionError(AutokernelError):
    """A guest value could not be converted into a SymbolValue."""

    default_category = ErrorCategory.VALUE

    def __init__(self, message: str, *, value: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class TristateParseError(ValueConversionError):
    """Text is not one of the recognised tristate tokens."""

    def __init__(self, text: Any, **kwargs: Any):
        super().__init__(
            f"Could not parse {text!r} as tristate (expected y, m or n)",
            value=text,
            **kwargs,
        )


class NumberRangeError(ValueConversionError):
    """Number cannot be represented exactly as an unsigned 64-bit value."""

    pass


class SymbolRejectedError(AutokernelError):
    """
    The Symbol Table refused a well-formed value.

    Type mismatches and values outside the declared domain end up here.
    These are reported back to the script, never raised through it.
    """

    default_category = ErrorCategory.VALUE

    def __init__(self, name: str, message: str, **kwargs: Any):
        self.symbol_name = name
        super().__init__(message, **kwargs)
        self.context.symbol = name


# =============================================================================
# SOURCE / SCRIPT ERRORS
# =============================================================================


class ConfigLoadError(AutokernelError):
    """Reading or applying a configuration source failed."""

    default_category = ErrorCategory.SOURCE


class ScriptError(AutokernelError):
    """
    A user script failed while running.

    This is the expected, reportable failure mode. ``context.source`` names
    the script and ``context.traceback`` holds the guest call chain.
    """

    default_category = ErrorCategory.SCRIPT

    def __init__(self, message: str, *, source: str, traceback: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.context.source = source
        self.context.traceback = traceback


class ScriptTimeoutError(ScriptError):
    """A script exceeded its execution deadline."""

    pass


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class SymbolFileError(AutokernelError):
    """A symbol declaration file is malformed."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# INTERNAL ERRORS
# =============================================================================


class InternalBridgeError(AutokernelError):
    """
    The embedding itself is broken.

    Raised when the prelude, the capability installation or the generated
    namespace fail, or when an execution context is driven out of order.
    """

    default_category = ErrorCategory.INTERNAL
    default_fatal = True


class NamespaceError(InternalBridgeError):
    """A generated binding is not a valid Lua identifier."""

    pass


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_fatal(error: BaseException) -> bool:
    """Check if an error must abort the whole top-level apply."""
    if isinstance(error, AutokernelError):
        return error.fatal
    return False


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, AutokernelError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.SOURCE
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALUE
    if isinstance(error, KeyError):
        return ErrorCategory.SYMBOL
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "AutokernelError",
    "UnknownSymbolError",
    "ValueConversionError",
    "TristateParseError",
    "NumberRangeError",
    "SymbolRejectedError",
    "ConfigLoadError",
    "ScriptError",
    "ScriptTimeoutError",
    "SymbolFileError",
    "InternalBridgeError",
    "NamespaceError",
    "is_fatal",
    "categorize_error",
]
