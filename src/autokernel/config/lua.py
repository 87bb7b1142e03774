"""
Lua configuration sources.

A Lua script manipulates the Symbol Table through a small, fixed capability
API. Each application of a script gets its own :class:`ExecutionContext`,
which owns a fresh Lua runtime and is discarded when the apply returns.

Architecture:
    ::

        LuaConfig.apply_kernel_config(table)
            │
            ▼
        ExecutionContext (one per apply, never reused)
            CREATED
              │ (a) LuaRuntime with debug library, no Python attribute access
              │ (b) run api.lua prelude             → PRELUDE_LOADED
              │ (c) install `ak` capability table
              │ (d) install `symbol_set`, `load_kconfig` → API_INSTALLED
              │ (e) register symbol handles         → NAMESPACE_INSTALLED
              │ (f) run user chunk "@<file>"        → USER_SCRIPT_RUNNING
              ▼
            COMPLETED | FAILED

        Lua  ──ak.symbol_set_bool(...)──▶ CapabilityApi ──SymbolValue──▶ Symbol
             ◀────── true | false, msg ──              (set_value_tracked)

Error policy:
    - value conversion failures raise a Lua error at the calling line
    - Symbol Table rejections return ``false, message`` to the script
    - unknown symbols are fatal (strict mode) even under ``pcall``
    - failures in steps (b)-(e) are ``InternalBridgeError``

Examples:
    >>> table = SymbolTable.from_types({"FOO": "bool", "BAR": "tristate"})
    >>> LuaConfig("test.cfg", 'FOO(true)\\nBAR "m"').apply_kernel_config(table)
    >>> table.snapshot()
    {'FOO': 'y', 'BAR': 'm'}

Tags:
    lua, embedding, capability-api, provenance, autokernel
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any

from lupa import LuaError, LuaRuntime

from autokernel.bridge.symbols import Symbol, SymbolTable
from autokernel.bridge.values import (
    AutoValue,
    BoolValue,
    NumberValue,
    SymbolValue,
    TristateValue,
    number_from_guest,
    parse_tristate,
    type_name,
    value_from_guest,
)
from autokernel.config.namespace import plan_bindings
from autokernel.core.errors import (
    AutokernelError,
    ConfigLoadError,
    InternalBridgeError,
    ScriptError,
    ScriptTimeoutError,
    SymbolRejectedError,
    UnknownSymbolError,
    ValueConversionError,
)
from autokernel.core.logging import LogContext, get_logger
from autokernel.core.settings import AutokernelSettings, get_settings

logger = get_logger(__name__)

PRELUDE_NAME = "api.lua"
NAMESPACE_CHUNK = "<internal>::define_all_syms"
HOOK_INSTRUCTION_COUNT = 10_000

_HOST_HOOKS = (
    "__ak_wrap",
    "__ak_bind_handle_setter",
    "__ak_run",
    "__ak_set_deadline",
    "__ak_define_symbols",
)

GuestReply = tuple[Any, ...]


@functools.cache
def prelude_source() -> str:
    """The versioned prelude shipped with the package."""
    return resources.files("autokernel.config").joinpath(PRELUDE_NAME).read_text(encoding="utf-8")


def _deny_attribute_access(obj: Any, attr_name: str, is_setting: bool) -> str:
    raise AttributeError(f"access to Python attribute {attr_name!r} is not allowed")


def _expect_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValueConversionError(f"{what} must be a string, got {type(value).__name__}", value=value)
    return value


class ExecutionState(str, Enum):
    CREATED = "created"
    PRELUDE_LOADED = "prelude_loaded"
    API_INSTALLED = "api_installed"
    NAMESPACE_INSTALLED = "namespace_installed"
    USER_SCRIPT_RUNNING = "user_script_running"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# CAPABILITY API
# =============================================================================


class CapabilityApi:
    """
    Host functions exposed to guest code.

    Stateless façade over one Symbol Table for the lifetime of one execution
    context. Every method answers in the guest reply convention understood
    by the prelude wrapper: ``("ok", *results)`` or ``("error", message)``.
    Fatal errors are additionally handed to ``record_fatal`` so the context
    can re-raise them after the script stopped.
    """

    def __init__(
        self,
        table: SymbolTable,
        *,
        source: str,
        settings: AutokernelSettings,
        depth: int,
        record_fatal: Callable[[AutokernelError], None],
    ):
        self._table = table
        self._source = source
        self._settings = settings
        self._depth = depth
        self._record_fatal = record_fatal

    @property
    def kernel_version(self) -> str:
        return self._table.get_env("KERNELVERSION") or ""

    def functions(self) -> dict[str, Callable[..., GuestReply]]:
        """Members of the ``ak`` table, by guest name."""
        return {
            "symbol_set_auto": self.guest_function(self.set_auto),
            "symbol_set_bool": self.guest_function(self.set_bool),
            "symbol_set_number": self.guest_function(self.set_number),
            "symbol_set_tristate": self.guest_function(self.set_tristate),
            "symbol_get_string": self.guest_function(self.get_string),
            "symbol_get_type": self.guest_function(self.get_type),
        }

    def guest_function(self, method: Callable[..., Any]) -> Callable[..., GuestReply]:
        """Adapt a host method to the guest reply convention."""

        @functools.wraps(method)
        def call(*args: Any) -> GuestReply:
            try:
                result = method(*args)
            except AutokernelError as exc:
                if exc.fatal:
                    self._record_fatal(exc)
                return ("error", exc.message)
            if isinstance(result, tuple):
                return ("ok", *result)
            return ("ok", result)

        return call

    # ── lookups ──────────────────────────────────────────────────

    def _symbol(self, name: Any) -> Symbol:
        name = _expect_str(name, "symbol name")
        sym = self._table.symbol(name)
        if sym is None:
            raise UnknownSymbolError(name, fatal=self._settings.strict_symbols).with_context(source=self._source)
        return sym

    def get_string(self, name: Any = None) -> str:
        return self._symbol(name).get_string_value()

    def get_type(self, name: Any = None) -> str:
        return type_name(self._symbol(name).symbol_type)

    # ── setters ──────────────────────────────────────────────────

    def _set(
        self,
        sym: Symbol,
        value: SymbolValue,
        source: Any,
        traceback: Any,
    ) -> bool | tuple[bool, str]:
        origin = source if isinstance(source, str) else self._source
        trace = traceback if isinstance(traceback, str) else None
        try:
            sym.set_value_tracked(value, origin, trace)
        except SymbolRejectedError as exc:
            logger.warning("symbol.set.rejected", symbol=sym.name, reason=exc.message, origin=origin)
            return (False, exc.message)
        return True

    def set_auto(self, name: Any = None, text: Any = None, source: Any = None, traceback: Any = None):
        sym = self._symbol(name)
        return self._set(sym, AutoValue(_expect_str(text, "value")), source, traceback)

    def set_bool(self, name: Any = None, value: Any = None, source: Any = None, traceback: Any = None):
        sym = self._symbol(name)
        if not isinstance(value, bool):
            raise ValueConversionError(f"expected a boolean for {sym.name}, got {type(value).__name__}", value=value)
        return self._set(sym, BoolValue(value), source, traceback)

    def set_number(self, name: Any = None, value: Any = None, source: Any = None, traceback: Any = None):
        sym = self._symbol(name)
        return self._set(sym, NumberValue(number_from_guest(value)), source, traceback)

    def set_tristate(self, name: Any = None, value: Any = None, source: Any = None, traceback: Any = None):
        sym = self._symbol(name)
        return self._set(sym, TristateValue(parse_tristate(value)), source, traceback)

    def set_any(self, name: Any = None, value: Any = None, source: Any = None, traceback: Any = None):
        """``symbol_set``: choose the variant from the Lua type of ``value``."""
        sym = self._symbol(name)
        return self._set(sym, value_from_guest(value, sym.symbol_type), source, traceback)

    # ── recursion ────────────────────────────────────────────────

    def load_kconfig(self, path: Any = None, nocheck: Any = False) -> bool:
        """Apply another configuration source onto the same table."""
        from autokernel.config.base import load_config_source

        target = Path(_expect_str(path, "path"))
        if not target.is_absolute() and self._source_dir is not None:
            target = self._source_dir / target

        if self._depth + 1 > self._settings.max_load_depth:
            raise ConfigLoadError(
                f"cannot load {target}: nesting deeper than {self._settings.max_load_depth} sources"
            )

        logger.info("config.load.nested", path=str(target), nocheck=bool(nocheck), depth=self._depth + 1)
        try:
            if nocheck:
                self._table.read_config_unchecked(target, prefix=self._settings.symbol_prefix)
            else:
                source = load_config_source(target, settings=self._settings, depth=self._depth + 1)
                source.apply_kernel_config(self._table)
        except AutokernelError as exc:
            if exc.fatal:
                raise
            raise ConfigLoadError(f"load_kconfig({target}) failed: {exc.message}", cause=exc) from exc
        return True

    @property
    def _source_dir(self) -> Path | None:
        if self._source.startswith("<"):
            return None
        return Path(self._source).parent


# =============================================================================
# EXECUTION CONTEXT
# =============================================================================


class ExecutionContext:
    """
    One Lua runtime driving exactly one configuration application.

    The steps run strictly in order and only once; a context that completed
    or failed cannot be restarted. Create a new one for every apply.
    """

    def __init__(
        self,
        table: SymbolTable,
        *,
        source: str,
        code: str,
        settings: AutokernelSettings,
        depth: int = 0,
    ):
        self.table = table
        self.source = source
        self.code = code
        self.settings = settings
        self.depth = depth
        self.state = ExecutionState.CREATED
        self._fatal: AutokernelError | None = None
        self._timed_out = False
        self._hooks: dict[str, Any] = {}
        self.api = CapabilityApi(
            table,
            source=source,
            settings=settings,
            depth=depth,
            record_fatal=self._record_fatal,
        )
        # (a) debug stays enabled: the prelude builds provenance tracebacks with it.
        self._lua: LuaRuntime | None = LuaRuntime(
            unpack_returned_tuples=True,
            register_eval=False,
            register_builtins=False,
            attribute_filter=_deny_attribute_access,
        )

    def _record_fatal(self, error: AutokernelError) -> None:
        if self._fatal is None:
            self._fatal = error

    def _advance(self, expected: ExecutionState, new: ExecutionState) -> None:
        if self.state is not expected:
            raise InternalBridgeError(
                f"execution context for {self.source} is {self.state.value}, expected {expected.value}"
            )
        self.state = new

    @property
    def lua(self) -> LuaRuntime:
        if self._lua is None:
            raise InternalBridgeError(f"execution context for {self.source} was already closed")
        return self._lua

    def _compile(self, code: str, chunkname: str) -> tuple[Any, str | None]:
        result = self.lua.globals().load(code, chunkname, "t")
        if isinstance(result, tuple):
            return result[0], (result[1] if len(result) > 1 else None)
        return result, None

    # ── steps ────────────────────────────────────────────────────

    def load_prelude(self) -> None:
        """(b) Run the prelude and take its host hooks out of the global table."""
        self._advance(ExecutionState.CREATED, ExecutionState.PRELUDE_LOADED)
        chunk, message = self._compile(prelude_source(), f"@{PRELUDE_NAME}")
        if chunk is None:
            raise InternalBridgeError(f"prelude does not compile: {message}")
        try:
            chunk()
        except LuaError as exc:
            raise InternalBridgeError(f"prelude failed: {exc}", cause=exc) from exc

        lua_globals = self.lua.globals()
        for hook in _HOST_HOOKS:
            self._hooks[hook] = lua_globals[hook]
            lua_globals[hook] = None
        if any(hook is None for hook in self._hooks.values()):
            raise InternalBridgeError("prelude does not define all host hooks")

    def install_api(self) -> None:
        """(c) Install ``ak``, (d) the direct globals and the sandbox."""
        self._advance(ExecutionState.PRELUDE_LOADED, ExecutionState.API_INSTALLED)
        wrap = self._hooks["__ak_wrap"]
        lua_globals = self.lua.globals()
        try:
            members: dict[str, Any] = {"kernel_version": self.api.kernel_version}
            for guest_name, function in self.api.functions().items():
                members[guest_name] = wrap(function, 2)
            lua_globals["ak"] = self.lua.table_from(members)

            symbol_set = self.api.guest_function(self.api.set_any)
            lua_globals["symbol_set"] = wrap(symbol_set, 2)
            lua_globals["load_kconfig"] = wrap(self.api.guest_function(self.api.load_kconfig), 2)
            # Handle methods sit two frames deeper than a direct call.
            self._hooks["__ak_bind_handle_setter"](wrap(symbol_set, 4))

            if self.settings.script_timeout_seconds is not None:
                self._hooks["__ak_set_deadline"](self._deadline_check(), HOOK_INSTRUCTION_COUNT)
        except LuaError as exc:
            raise InternalBridgeError(f"cannot install capability API: {exc}", cause=exc) from exc

        if self.settings.sandbox:
            self._restrict(lua_globals)

    def _restrict(self, lua_globals: Any) -> None:
        for name in ("io", "dofile", "loadfile", "python"):
            lua_globals[name] = None
        for name in ("execute", "remove", "rename", "exit", "tmpname"):
            lua_globals.os[name] = None
        lua_globals.package.loadlib = None
        lua_globals.package.cpath = ""
        for name in ("sethook", "getupvalue", "setupvalue", "upvaluejoin", "getlocal", "setlocal", "getregistry"):
            lua_globals.debug[name] = None

    def _deadline_check(self) -> Callable[[], GuestReply]:
        limit = self.settings.script_timeout_seconds
        deadline = time.monotonic() + limit

        def check() -> GuestReply:
            if time.monotonic() <= deadline:
                return ("ok",)
            self._timed_out = True
            return ("error", f"script exceeded its {limit:g}s deadline")

        return check

    def install_namespace(self) -> None:
        """(e) Bind one handle per eligible symbol name."""
        self._advance(ExecutionState.API_INSTALLED, ExecutionState.NAMESPACE_INSTALLED)
        bindings = plan_bindings(self.table.name_to_symbol.keys(), self.settings.symbol_prefix)
        entries = self.lua.table_from(
            [self.lua.table_from([b.symbol, b.prefixed, b.alias or False]) for b in bindings]
        )
        try:
            self._hooks["__ak_define_symbols"](entries)
        except LuaError as exc:
            raise InternalBridgeError(f"{NAMESPACE_CHUNK} failed: {exc}", cause=exc) from exc
        logger.debug("namespace.generated", source=self.source, bindings=len(bindings))

    def run_script(self) -> None:
        """(f) Run the user script; failures become ``ScriptError``."""
        self._advance(ExecutionState.NAMESPACE_INSTALLED, ExecutionState.USER_SCRIPT_RUNNING)
        chunk, message = self._compile(self.code, f"@{self.source}")
        if chunk is None:
            raise ScriptError(message or "syntax error", source=self.source)

        reply = self._hooks["__ak_run"](chunk)
        if self._fatal is not None:
            raise self._fatal

        message, trace = None, None
        if reply is not True:
            _, message, trace = (tuple(reply) + (None, None, None))[:3]
        # A script may pcall() the deadline error away; it still timed out.
        if self._timed_out:
            limit = self.settings.script_timeout_seconds
            raise ScriptTimeoutError(
                message or f"script exceeded its {limit:g}s deadline", source=self.source, traceback=trace
            )
        if reply is not True:
            raise ScriptError(message or "script failed", source=self.source, traceback=trace)

    def execute(self) -> None:
        """Drive all steps; the context is closed afterwards either way."""
        try:
            self.load_prelude()
            self.install_api()
            self.install_namespace()
            self.run_script()
        except AutokernelError:
            self.state = ExecutionState.FAILED
            raise
        else:
            self.state = ExecutionState.COMPLETED
        finally:
            self.close()

    def close(self) -> None:
        self._hooks.clear()
        self._lua = None


# =============================================================================
# SOURCE
# =============================================================================


class LuaConfig:
    """A Lua script implementing the configuration source protocol."""

    def __init__(
        self,
        name: str,
        code: str,
        *,
        settings: AutokernelSettings | None = None,
        depth: int = 0,
    ):
        self._name = name
        self._code = code
        self._settings = settings or get_settings()
        self._depth = depth

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        *,
        settings: AutokernelSettings | None = None,
        depth: int = 0,
    ) -> LuaConfig:
        path = Path(path)
        try:
            code = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigLoadError(f"cannot read {path}: {exc}", cause=exc).with_context(source=str(path)) from exc
        return cls(str(path), code, settings=settings, depth=depth)

    @property
    def name(self) -> str:
        return self._name

    def apply_kernel_config(self, table: SymbolTable) -> None:
        context = ExecutionContext(
            table,
            source=self._name,
            code=self._code,
            settings=self._settings,
            depth=self._depth,
        )
        with LogContext(source=self._name, depth=self._depth):
            logger.info("config.apply.started", kind="lua")
            try:
                context.execute()
            except AutokernelError as exc:
                logger.error("config.apply.failed", kind="lua", **exc.to_dict())
                raise
            logger.info("config.apply.completed", kind="lua")


__all__ = [
    "PRELUDE_NAME",
    "CapabilityApi",
    "ExecutionContext",
    "ExecutionState",
    "LuaConfig",
    "prelude_source",
]
