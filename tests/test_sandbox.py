import asyncio
import os
import unittest
from unittest import mock

from tfshift.bodyparts import Bodypart
from tfshift.models import AppearanceComponent
from tfshift.sandbox import (
    SandboxErrorKind,
    SandboxSettings,
    ScriptSandbox,
    TIME_FUNCTIONS,
    _erroring_symbol,
)

from tests.fixtures import ContentSet, make_builder, make_transformation


class SandboxSuccessTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sandbox = ScriptSandbox()

    def test_returns_value_as_text(self) -> None:
        result = self.sandbox.execute_snippet("return math.floor(3.7)")
        self.assertTrue(result.is_success)
        self.assertEqual(result.value, "3")

    def test_nil_result_is_empty(self) -> None:
        self.assertEqual(self.sandbox.execute_snippet("local x = 1").value, "")
        self.assertEqual(self.sandbox.execute_snippet("return nil").value, "")

    def test_whitelisted_libraries(self) -> None:
        result = self.sandbox.execute_snippet('return string.upper("fin") .. table.concat({1, 2}, ",")')
        self.assertEqual(result.value, "FIN1,2")

    def test_variables_are_visible(self) -> None:
        result = self.sandbox.execute_snippet(
            'return character .. " " .. #items .. " " .. tags.kind',
            {"character": "Amby", "items": ["x", "y"], "tags": {"kind": "shark"}},
        )
        self.assertEqual(result.value, "Amby 2 shark")

    def test_pcall_traps_ordinary_errors(self) -> None:
        result = self.sandbox.execute_snippet('local ok = pcall(error, "boom") return tostring(ok)')
        self.assertEqual(result.value, "false")

    def test_xpcall_handler_runs_for_ordinary_errors(self) -> None:
        result = self.sandbox.execute_snippet(
            'local ok, m = xpcall(error, function(m) return "handled: " .. m end, "boom") return m'
        )
        self.assertTrue(result.value.startswith("handled: "))
        self.assertIn("boom", result.value)

    def test_async_execution(self) -> None:
        result = asyncio.run(self.sandbox.execute_snippet_async("return 6 * 7"))
        self.assertEqual(result.value, "42")


class SandboxFailureTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sandbox = ScriptSandbox(SandboxSettings(instruction_limit=1000, hook_interval=100))

    def test_os_execute_is_forbidden(self) -> None:
        result = self.sandbox.execute_snippet('return os.execute("ls")')
        self.assertFalse(result.is_success)
        self.assertIs(result.error.kind, SandboxErrorKind.FORBIDDEN)
        self.assertEqual(result.error.symbol, "os.execute")
        self.assertEqual(result.error.message, "Usage of os.execute is prohibited.")

    def test_require_is_forbidden(self) -> None:
        result = self.sandbox.execute_snippet('return require("x")')
        self.assertIs(result.error.kind, SandboxErrorKind.FORBIDDEN)
        self.assertEqual(result.error.symbol, "require")

    def test_missing_member_of_whitelisted_table_is_forbidden(self) -> None:
        result = self.sandbox.execute_snippet("return string.dump(tostring)")
        self.assertIs(result.error.kind, SandboxErrorKind.FORBIDDEN)
        self.assertEqual(result.error.symbol, "string.dump")

    def test_undefined_user_function_is_not_forbidden(self) -> None:
        result = self.sandbox.execute_snippet("return frobnicate()")
        self.assertIs(result.error.kind, SandboxErrorKind.OTHER)
        self.assertIn("frobnicate", result.error.message)

    def test_infinite_loop_times_out(self) -> None:
        result = self.sandbox.execute_snippet("while true do end")
        self.assertIs(result.error.kind, SandboxErrorKind.TIMEOUT)
        self.assertEqual(result.error.message, "timeout!")

    def test_pcall_cannot_trap_the_timeout(self) -> None:
        result = self.sandbox.execute_snippet(
            'local ok = pcall(function() while true do end end) return "escaped"'
        )
        self.assertIs(result.error.kind, SandboxErrorKind.TIMEOUT)

    def test_xpcall_handler_cannot_outlive_the_timeout(self) -> None:
        result = self.sandbox.execute_snippet(
            "local r = {xpcall(function() while true do end end, function(m) while true do end end)} "
            'return "escaped"'
        )
        self.assertIs(result.error.kind, SandboxErrorKind.TIMEOUT)

    def test_hundred_instruction_ceiling(self) -> None:
        sandbox = ScriptSandbox(SandboxSettings(instruction_limit=100))
        result = sandbox.execute_snippet("while true do end")
        self.assertIs(result.error.kind, SandboxErrorKind.TIMEOUT)
        self.assertEqual(result.error.message, "timeout!")

    def test_snippet_cannot_fake_a_timeout(self) -> None:
        result = self.sandbox.execute_snippet('error("tfshift:instruction-limit-exceeded", 0)')
        self.assertIs(result.error.kind, SandboxErrorKind.OTHER)
        self.assertEqual(result.error.message, "tfshift:instruction-limit-exceeded")

    def test_bytecode_is_rejected(self) -> None:
        result = self.sandbox.execute_snippet("\x1bLua")
        self.assertIs(result.error.kind, SandboxErrorKind.OTHER)
        self.assertEqual(result.error.message, "binary bytecode prohibited")

    def test_syntax_error(self) -> None:
        result = self.sandbox.execute_snippet("return (")
        self.assertIs(result.error.kind, SandboxErrorKind.OTHER)

    def test_runtime_error_message_is_kept(self) -> None:
        result = self.sandbox.execute_snippet('error("boom")')
        self.assertIs(result.error.kind, SandboxErrorKind.OTHER)
        self.assertIn("boom", result.error.message)

    def test_each_call_gets_a_fresh_state(self) -> None:
        self.sandbox.execute_snippet("leaked = 1")
        self.assertEqual(self.sandbox.execute_snippet("return tostring(leaked)").value, "nil")


class SandboxSettingsTests(unittest.TestCase):
    def test_time_functions_are_opt_in(self) -> None:
        self.assertFalse(set(TIME_FUNCTIONS) & ScriptSandbox().whitelist)
        self.assertTrue(set(TIME_FUNCTIONS) <= ScriptSandbox(SandboxSettings(allow_time=True)).whitelist)

    def test_from_env(self) -> None:
        env = {
            "TFSHIFT_SANDBOX_INSTRUCTION_LIMIT": "5000",
            "TFSHIFT_SANDBOX_HOOK_INTERVAL": "0",
            "TFSHIFT_SANDBOX_ALLOW_TIME": "yes",
        }
        with mock.patch.dict(os.environ, env):
            settings = SandboxSettings.from_env()
        self.assertEqual(settings.instruction_limit, 5000)
        self.assertEqual(settings.hook_interval, SandboxSettings().hook_interval)
        self.assertTrue(settings.allow_time)


class ErroringSymbolTests(unittest.TestCase):
    def test_field_is_qualified_from_source(self) -> None:
        message = "snippet:1: attempt to call a nil value (field 'execute')"
        self.assertEqual(_erroring_symbol(message, 'os.execute("ls")'), "os.execute")

    def test_indexed_global(self) -> None:
        message = "snippet:1: attempt to index a nil value (global 'io')"
        self.assertEqual(_erroring_symbol(message, 'return io.open("x")'), "io.open")

    def test_unrelated_message(self) -> None:
        self.assertIsNone(_erroring_symbol("snippet:1: attempt to perform arithmetic", "return 1 + {}"))


class ScriptTokenTests(unittest.TestCase):
    def test_script_runs_with_component_variables(self) -> None:
        content = ContentSet()
        appearance = content.appearance()
        tail = make_transformation(
            Bodypart.TAIL,
            content.shark,
            scripts={
                "length": 'return string.format("%.1f metres", height * 0.6)',
                "broken": "return os.exit()",
            },
        )
        component = AppearanceComponent.create_from(tail)
        appearance.add_component(component)
        builder = make_builder(sandbox=ScriptSandbox())

        self.assertEqual(builder.replace_tokens_with_content("{@sc|length}", appearance, component), "1.1 metres")
        self.assertEqual(
            builder.replace_tokens_with_content("{@script|broken}", appearance, component),
            "[Usage of os.exit is prohibited.]",
        )
        self.assertEqual(
            builder.replace_tokens_with_content("{@sc|missing}", appearance, component),
            "[unknown script missing]",
        )


if __name__ == "__main__":
    unittest.main()
