from __future__ import annotations

import importlib.util
import os
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest import mock


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None

REPO_PLUGINS = Path(__file__).resolve().parents[1] / "plugins"


class _RecordingHost:
    def __init__(self, result) -> None:
        self.result = result
        self.calls = []

    def execute(self, library, args):
        self.calls.append((library, [str(arg) for arg in args]))
        return self.result


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for plugin tests")
class PluginHostTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.plugin_dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_plugin(self, name: str, body: str) -> None:
        (self.plugin_dir / f"{name}.py").write_text(textwrap.dedent(body), encoding="utf-8")

    def test_call_form_delegates_library_and_evaluated_args(self) -> None:
        from calc_jax.evaluator import Environment, run
        from calc_jax.values import int_value

        host = _RecordingHost(int_value(42))
        env = Environment({"x": int_value(2)})
        self.assertEqual(run("call(lib, x + 1_, [1, 2])", env, host), "42")
        self.assertEqual(host.calls, [("lib", ["3", "[ 1 2 ]"])])

    def test_call_form_requires_a_library_name(self) -> None:
        from calc_jax.evaluator import Environment, run
        from calc_jax.values import int_value

        host = _RecordingHost(int_value(0))
        self.assertEqual(
            run("call(1, 2)", Environment(), host),
            "Error: Function 'call' expects a library name as its first argument",
        )
        self.assertEqual(
            run("call()", Environment(), host),
            "Error: Function 'call' expects at least 1 argument(s), got 0",
        )
        self.assertEqual(host.calls, [])

    def test_module_host_loads_and_caches_plugins(self) -> None:
        from calc_jax.plugin import ModulePluginHost
        from calc_jax.values import float_value, list_value

        self._write_plugin(
            "pack",
            """
            from calc_jax.values import list_value

            LOADS = []
            LOADS.append(1)


            def execute(args):
                return list_value(args)
            """,
        )
        host = ModulePluginHost(self.plugin_dir)
        first = host.execute("pack", [float_value(1.0), float_value(2.0)])
        second = host.execute("pack", [])
        self.assertEqual(first.to_string(), "[ 1 2 ]")
        self.assertEqual(second, list_value([]))
        self.assertEqual(len(host._modules), 1)
        self.assertEqual(next(iter(host._modules.values())).LOADS, [1])

    def test_module_host_errors(self) -> None:
        from calc_jax.errors import CalcPluginError
        from calc_jax.plugin import ModulePluginHost

        self._write_plugin("no_entry", "VALUE = 1\n")
        self._write_plugin("bad_result", "def execute(args):\n    return 5\n")
        host = ModulePluginHost(self.plugin_dir)

        with self.assertRaisesRegex(CalcPluginError, "does not exist"):
            host.execute("missing", [])
        with self.assertRaisesRegex(CalcPluginError, "has no execute function"):
            host.execute("no_entry", [])
        with self.assertRaisesRegex(CalcPluginError, "returned int"):
            host.execute("bad_result", [])
        with self.assertRaisesRegex(CalcPluginError, "Plugin directory"):
            ModulePluginHost(self.plugin_dir / "absent").execute("anything", [])

    def test_plugin_errors_render_through_the_evaluator(self) -> None:
        from calc_jax.evaluator import Environment, run
        from calc_jax.plugin import ModulePluginHost

        out = run("call(missing, 1)", Environment(), ModulePluginHost(self.plugin_dir))
        self.assertEqual(out, "Error: Plugin library 'missing' does not exist")

    def test_shipped_example_plugin(self) -> None:
        from calc_jax.evaluator import StatefulEvaluate
        from calc_jax.plugin import ModulePluginHost

        calc = StatefulEvaluate(plugins=ModulePluginHost(REPO_PLUGINS))
        self.assertEqual(calc("call(ex_plug, 5)"), "5")
        self.assertEqual(calc("call(ex_plug, [1, 2_])"), "[ 1 2 ]")
        self.assertEqual(calc("call(ex_plug, 1, 2)"), "Error: Function 'ex_plug' expects 1 argument(s), got 2")

    def test_default_plugin_directory_resolution(self) -> None:
        from calc_jax.plugin import default_plugin_dir

        with mock.patch.dict(os.environ, {"CALC_JAX_PLUGIN_DIR": str(self.plugin_dir)}):
            self.assertEqual(default_plugin_dir(), self.plugin_dir)

        with mock.patch.dict(os.environ, {"XDG_CONFIG_HOME": str(self.plugin_dir)}):
            os.environ.pop("CALC_JAX_PLUGIN_DIR", None)
            self.assertEqual(default_plugin_dir(), self.plugin_dir / "calc" / "plugins")

        with mock.patch.dict(os.environ, {}):
            os.environ.pop("CALC_JAX_PLUGIN_DIR", None)
            os.environ.pop("XDG_CONFIG_HOME", None)
            self.assertEqual(default_plugin_dir(), Path.home() / ".config" / "calc" / "plugins")


if __name__ == "__main__":
    unittest.main()
