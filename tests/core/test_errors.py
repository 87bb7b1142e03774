"""Tests for autokernel.core.errors module."""

import pytest

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
    categorize_error,
    is_fatal,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.source is None
        assert ctx.symbol is None
        assert ctx.metadata == {}

    def test_to_dict_includes_set_fields(self):
        """to_dict includes only non-None fields."""
        ctx = ErrorContext(source="a.lua", line=3)
        assert ctx.to_dict() == {"source": "a.lua", "line": 3}

    def test_to_dict_merges_metadata(self):
        ctx = ErrorContext(symbol="FOO", metadata={"depth": 2})
        assert ctx.to_dict() == {"symbol": "FOO", "depth": 2}


class TestAutokernelError:
    """Test the base error class."""

    def test_defaults(self):
        error = AutokernelError("boom")
        assert error.message == "boom"
        assert str(error) == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.fatal is False
        assert error.cause is None

    def test_explicit_overrides(self):
        error = AutokernelError("boom", category=ErrorCategory.SCRIPT, fatal=True)
        assert error.category == ErrorCategory.SCRIPT
        assert error.fatal is True

    def test_cause_is_chained(self):
        cause = OSError("disk")
        error = ConfigLoadError("cannot read", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "disk"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ConfigLoadError("bad").with_context(source="x.config", line=4, depth=1)
        assert error.context.source == "x.config"
        assert error.context.line == 4
        assert error.context.metadata == {"depth": 1}

    def test_with_context_returns_self(self):
        error = ConfigLoadError("bad")
        assert error.with_context(source="x") is error

    def test_to_dict(self):
        data = ConfigLoadError("bad").with_context(source="x.config").to_dict()
        assert data == {
            "error_type": "ConfigLoadError",
            "message": "bad",
            "category": "SOURCE",
            "fatal": False,
            "context": {"source": "x.config"},
        }


class TestSymbolErrors:
    def test_unknown_symbol_is_fatal_by_default(self):
        error = UnknownSymbolError("NOPE")
        assert error.fatal is True
        assert error.category == ErrorCategory.SYMBOL
        assert error.message == "Unknown symbol: NOPE"
        assert error.context.symbol == "NOPE"

    def test_unknown_symbol_can_be_non_fatal(self):
        assert UnknownSymbolError("NOPE", fatal=False).fatal is False

    def test_symbol_rejected(self):
        error = SymbolRejectedError("FOO", "nope")
        assert error.symbol_name == "FOO"
        assert error.category == ErrorCategory.VALUE
        assert error.fatal is False


class TestValueErrors:
    def test_tristate_parse_error_message(self):
        error = TristateParseError("maybe")
        assert "'maybe'" in error.message
        assert error.value == "maybe"
        assert isinstance(error, ValueConversionError)

    def test_value_in_to_dict(self):
        data = NumberRangeError("too big", value=2**70).to_dict()
        assert data["value"] == repr(2**70)
        assert data["category"] == "VALUE"


class TestScriptErrors:
    def test_script_error_carries_source_and_traceback(self):
        error = ScriptError("x.lua:3: oops", source="x.lua", traceback="stack traceback:")
        assert error.context.source == "x.lua"
        assert error.context.traceback == "stack traceback:"
        assert str(error) == "x.lua:3: oops"

    def test_timeout_is_a_script_error(self):
        error = ScriptTimeoutError("late", source="x.lua")
        assert isinstance(error, ScriptError)
        assert error.category == ErrorCategory.SCRIPT


class TestInternalErrors:
    def test_internal_errors_are_fatal(self):
        assert InternalBridgeError("broken").fatal is True
        assert NamespaceError("bad identifier").fatal is True
        assert isinstance(NamespaceError("x"), InternalBridgeError)


class TestHelpers:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (UnknownSymbolError("X"), True),
            (ConfigLoadError("x"), False),
            (ValueError("x"), False),
        ],
    )
    def test_is_fatal(self, error, expected):
        assert is_fatal(error) is expected

    @pytest.mark.parametrize(
        "error,expected",
        [
            (SymbolFileError("x"), ErrorCategory.CONFIG),
            (FileNotFoundError("x"), ErrorCategory.SOURCE),
            (TypeError("x"), ErrorCategory.VALUE),
            (KeyError("x"), ErrorCategory.SYMBOL),
            (RuntimeError("x"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize_error(self, error, expected):
        assert categorize_error(error) == expected
