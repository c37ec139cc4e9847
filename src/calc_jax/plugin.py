"""External single-entry-point functions reached through ``call(lib, ...)``.

A plugin is a Python file ``<plugin dir>/<lib>.py`` exposing
``execute(args: list[Value]) -> Value``. The call is synchronous with no
timeout; whatever the plugin does inside ``execute`` is not contained.
"""

from __future__ import annotations

import importlib.util
import logging
import os
from pathlib import Path
from types import ModuleType
from typing import Final, Protocol

from .errors import CalcPluginError
from .values import Value

logger = logging.getLogger(__name__)

CALL_FUNCTION: Final[str] = "call"


class PluginHost(Protocol):
    def execute(self, library: str, args: list[Value]) -> Value:
        ...


def default_plugin_dir() -> Path:
    override = os.environ.get("CALC_JAX_PLUGIN_DIR")
    if override:
        return Path(override).expanduser()
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home).expanduser() if config_home else Path.home() / ".config"
    return base / "calc" / "plugins"


class ModulePluginHost:
    """Loads plugins from a directory of Python files, once per path."""

    def __init__(self, plugin_dir: Path | str | None = None) -> None:
        self.plugin_dir = Path(plugin_dir) if plugin_dir is not None else default_plugin_dir()
        self._modules: dict[Path, ModuleType] = {}

    def _load(self, library: str) -> ModuleType:
        if not self.plugin_dir.is_dir():
            raise CalcPluginError(f"Plugin directory '{self.plugin_dir}' does not exist")
        path = self.plugin_dir / f"{library}.py"
        if path in self._modules:
            return self._modules[path]
        if not path.is_file():
            raise CalcPluginError(f"Plugin library '{library}' does not exist")

        spec = importlib.util.spec_from_file_location(f"calc_jax_plugin_{library}", path)
        if spec is None or spec.loader is None:
            raise CalcPluginError(f"Plugin library '{library}' could not be loaded")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        logger.debug("loaded plugin %r from %s", library, path)
        self._modules[path] = module
        return module

    def execute(self, library: str, args: list[Value]) -> Value:
        entry = getattr(self._load(library), "execute", None)
        if not callable(entry):
            raise CalcPluginError(f"Plugin library '{library}' has no execute function")
        result = entry(list(args))
        if not isinstance(result, Value):
            raise CalcPluginError(
                f"Plugin library '{library}' returned {type(result).__name__}, expected a value"
            )
        return result
