"""Sandboxed evaluation of short Lua snippets embedded in transformation text.

Each call gets a fresh Lua 5.4 runtime. The snippet is loaded in text mode
with an environment table that only holds whitelisted symbols, and it runs in
its own coroutine with an instruction-count hook attached. Every failure is
turned into a :class:`SandboxResult` carrying a :class:`SandboxError`.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
import re
import secrets
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Sequence, Tuple

from lupa.lua54 import LuaError, LuaMemoryError, LuaRuntime, lua_type

from .metatable import MetaTableBuilder
from .utils import bool_from_env, int_from_env

logger = logging.getLogger("tfshift.sandbox")

WHITELIST: Tuple[str, ...] = (
    "assert",
    "error",
    "ipairs",
    "next",
    "pairs",
    "pcall",
    "select",
    "tonumber",
    "tostring",
    "type",
    "_VERSION",
    "xpcall",
    "string.byte",
    "string.char",
    "string.find",
    "string.format",
    "string.gmatch",
    "string.gsub",
    "string.len",
    "string.lower",
    "string.match",
    "string.rep",
    "string.reverse",
    "string.sub",
    "string.upper",
    "table.concat",
    "table.insert",
    "table.pack",
    "table.remove",
    "table.sort",
    "table.unpack",
    "math.abs",
    "math.acos",
    "math.asin",
    "math.atan",
    "math.ceil",
    "math.cos",
    "math.deg",
    "math.exp",
    "math.floor",
    "math.fmod",
    "math.huge",
    "math.log",
    "math.max",
    "math.maxinteger",
    "math.min",
    "math.mininteger",
    "math.modf",
    "math.pi",
    "math.rad",
    "math.random",
    "math.randomseed",
    "math.sin",
    "math.sqrt",
    "math.tan",
    "math.tointeger",
    "math.type",
    "math.ult",
)

TIME_FUNCTIONS: Tuple[str, ...] = ("os.clock", "os.time")

TIMEOUT_SENTINEL = "tfshift:instruction-limit-exceeded"

_NIL_ACCESS_PATTERN = re.compile(
    r"attempt to (?:call|index) a nil value \((global|field|method|local|upvalue) '([^']+)'\)"
)

# Loaded once per runtime. Runs the snippet in a coroutine so that the count
# hook only sees the snippet's own instructions.
#
# xpcall is replaced: the stock one runs the message handler inside the hook
# that raised the timeout, where hooks are off and nothing is counted. The
# replacement calls the handler after unwinding and never once the budget is
# spent.
_RUNNER_SOURCE = """
local ceiling, step, sentinel = ...
local pack, unpack = table.pack, table.unpack
return function(code, env)
    local exhausted = false
    if env.xpcall ~= nil then
        env.xpcall = function(f, handler, ...)
            local results = pack(pcall(f, ...))
            if results[1] then
                return unpack(results, 1, results.n)
            end
            if exhausted then
                error(sentinel, 0)
            end
            return false, (handler(results[2]))
        end
    end
    local chunk, err = load(code, "=snippet", "t", env)
    if not chunk then
        return false, tostring(err)
    end
    local worker = coroutine.create(chunk)
    local executed = 0
    local function guard()
        executed = executed + step
        if executed >= ceiling then
            exhausted = true
            debug.sethook(worker, guard, "", 1)
            error(sentinel, 0)
        end
    end
    debug.sethook(worker, guard, "", step)
    local ok, value = coroutine.resume(worker)
    debug.sethook(worker)
    if not ok then
        return false, tostring(value)
    end
    if value == nil then
        return true, ""
    end
    return true, tostring(value)
end
"""


class SandboxErrorKind(enum.Enum):
    FORBIDDEN = "forbidden"
    TIMEOUT = "timeout"
    OTHER = "other"


@dataclass(frozen=True)
class SandboxError:
    kind: SandboxErrorKind
    message: str
    symbol: Optional[str] = None


@dataclass(frozen=True)
class SandboxResult:
    value: Optional[str] = None
    error: Optional[SandboxError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: str) -> "SandboxResult":
        return cls(value=value)

    @classmethod
    def failure(
        cls, kind: SandboxErrorKind, message: str, symbol: Optional[str] = None
    ) -> "SandboxResult":
        return cls(error=SandboxError(kind, message, symbol))


@dataclass(frozen=True)
class SandboxSettings:
    instruction_limit: int = 10_000_000
    hook_interval: int = 1000
    max_memory: int = 16 * 1024 * 1024
    allow_time: bool = False

    @classmethod
    def from_env(cls) -> "SandboxSettings":
        defaults = cls()
        instruction_limit = int_from_env("TFSHIFT_SANDBOX_INSTRUCTION_LIMIT", defaults.instruction_limit)
        hook_interval = int_from_env("TFSHIFT_SANDBOX_HOOK_INTERVAL", defaults.hook_interval)
        if instruction_limit < 1:
            logger.warning("Sandbox instruction limit must be positive; using %s.", defaults.instruction_limit)
            instruction_limit = defaults.instruction_limit
        if hook_interval < 1:
            logger.warning("Sandbox hook interval must be positive; using %s.", defaults.hook_interval)
            hook_interval = defaults.hook_interval
        return cls(
            instruction_limit=instruction_limit,
            hook_interval=hook_interval,
            max_memory=max(0, int_from_env("TFSHIFT_SANDBOX_MAX_MEMORY", defaults.max_memory)),
            allow_time=bool_from_env("TFSHIFT_SANDBOX_ALLOW_TIME", defaults.allow_time),
        )


class ScriptSandbox:
    """Run untrusted Lua snippets against a fixed whitelist."""

    def __init__(
        self,
        settings: Optional[SandboxSettings] = None,
        whitelist: Optional[Sequence[str]] = None,
    ) -> None:
        self.settings = settings or SandboxSettings()
        entries = list(whitelist if whitelist is not None else WHITELIST)
        if self.settings.allow_time:
            entries.extend(TIME_FUNCTIONS)
        self._builder = MetaTableBuilder("env").with_entries(entries)
        self.whitelist = frozenset(self._builder.entries)
        self._preamble = self._builder.build()

    def execute_snippet(
        self, snippet: str, variables: Optional[Mapping[str, Any]] = None
    ) -> SandboxResult:
        if snippet[:1] == "\x1b":
            return SandboxResult.failure(SandboxErrorKind.OTHER, "binary bytecode prohibited")

        try:
            with self._runtime_scope() as runtime:
                return self._run(runtime, snippet, variables or {})
        except LuaMemoryError:
            return SandboxResult.failure(SandboxErrorKind.OTHER, "not enough memory")
        except LuaError as exc:
            return self._classify(None, snippet, str(exc))
        except MemoryError:
            return SandboxResult.failure(SandboxErrorKind.OTHER, "not enough memory")
        except Exception as exc:
            logger.exception("Unexpected failure while running a Lua snippet.")
            return SandboxResult.failure(SandboxErrorKind.OTHER, str(exc) or type(exc).__name__)

    def execute_script(
        self, source: str, variables: Optional[Mapping[str, Any]] = None
    ) -> SandboxResult:
        """Run a whole script file. Scripts obey the same limits as snippets."""
        return self.execute_snippet(source, variables)

    async def execute_snippet_async(
        self, snippet: str, variables: Optional[Mapping[str, Any]] = None
    ) -> SandboxResult:
        return await asyncio.to_thread(self.execute_snippet, snippet, variables)

    @contextlib.contextmanager
    def _runtime_scope(self) -> Iterator[LuaRuntime]:
        max_memory = self.settings.max_memory or None
        runtime = LuaRuntime(
            register_eval=False,
            register_builtins=False,
            unpack_returned_tuples=True,
            max_memory=max_memory,
        )
        try:
            yield runtime
        finally:
            try:
                runtime.execute("debug.sethook()")
            except LuaError as exc:
                logger.debug("Could not disarm the instruction hook: %s", exc)
            del runtime

    def _run(self, runtime: LuaRuntime, snippet: str, variables: Mapping[str, Any]) -> SandboxResult:
        runtime.execute(self._preamble)
        env = runtime.globals()["env"]
        for name, value in variables.items():
            env[name] = _to_lua(runtime, value)

        step = min(self.settings.hook_interval, self.settings.instruction_limit)
        # Unguessable per call, so a snippet cannot raise it itself.
        sentinel = f"{TIMEOUT_SENTINEL}:{secrets.token_hex(16)}"
        runner = runtime.execute(_RUNNER_SOURCE, self.settings.instruction_limit, step, sentinel)
        ok, value = runner(snippet, env)
        if ok:
            return SandboxResult.success(value)
        return self._classify(runtime, snippet, value, sentinel)

    def _classify(
        self,
        runtime: Optional[LuaRuntime],
        snippet: str,
        message: str,
        sentinel: Optional[str] = None,
    ) -> SandboxResult:
        if sentinel is not None and message == sentinel:
            logger.debug("Lua snippet exceeded %s instructions.", self.settings.instruction_limit)
            return SandboxResult.failure(SandboxErrorKind.TIMEOUT, "timeout!")

        symbol = _erroring_symbol(message, snippet)
        if symbol is not None and symbol not in self.whitelist and _is_known_symbol(runtime, symbol):
            logger.debug("Lua snippet tried to use %s.", symbol)
            return SandboxResult.failure(
                SandboxErrorKind.FORBIDDEN, f"Usage of {symbol} is prohibited.", symbol
            )
        return SandboxResult.failure(SandboxErrorKind.OTHER, message)


def _erroring_symbol(message: str, snippet: str) -> Optional[str]:
    """Recover the qualified name of the nil value a snippet tried to use.

    Tied to the Lua 5.4 wording, e.g. ``attempt to call a nil value (field
    'execute')``. The table part of a field name is read back from the source.
    """
    match = _NIL_ACCESS_PATTERN.search(message)
    if match is None:
        return None
    kind, name = match.group(1), match.group(2)
    is_index = "attempt to index" in match.group(0)

    if kind in ("global", "local", "upvalue"):
        if is_index:
            member = re.search(rf"\b{re.escape(name)}\s*[.:]\s*([A-Za-z_]\w*)", snippet)
            if member is not None:
                return f"{name}.{member.group(1)}"
        return name

    owner = re.search(rf"([A-Za-z_][\w.]*?)\s*[.:]\s*{re.escape(name)}\b", snippet)
    if owner is None:
        return name
    return f"{owner.group(1)}.{name}"


def _is_known_symbol(runtime: Optional[LuaRuntime], symbol: str) -> bool:
    """Whether the name exists in an unrestricted Lua state."""
    if runtime is None:
        runtime = LuaRuntime(register_eval=False, register_builtins=False)
    node: Any = runtime.globals()
    for part in symbol.split("."):
        if lua_type(node) != "table":
            return False
        node = node[part]
        if node is None:
            return False
    return True


def _to_lua(runtime: LuaRuntime, value: Any) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return runtime.table_from(value, recursive=True)
    return str(value)


__all__ = [
    "SandboxError",
    "SandboxErrorKind",
    "SandboxResult",
    "SandboxSettings",
    "ScriptSandbox",
    "TIME_FUNCTIONS",
    "WHITELIST",
]
