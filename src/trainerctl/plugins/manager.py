"""Plugin discovery, registration and fault-isolated hook dispatch.

Third-party plugins are pip-installed packages exposing an entry point in
the ``trainerctl.plugins`` group. The activity-log builtin is registered
directly by the Studio.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from trainerctl.plugins.hookspecs import TrainerctlHookSpec

PROJECT_NAME = "trainerctl"
ENTRY_POINT_GROUP = "trainerctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Owns the pluggy manager for one studio."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(TrainerctlHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        """Whether entry-point discovery has run."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins; returns every registered plugin name."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        logger.debug("Loaded %d entry-point plugin(s)", count)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin: %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> list[str]:
        """Call every implementation of *hook_name* with *payload*.

        Each implementing plugin gets its own subset hook caller, in
        pluggy's call order, so one failing plugin does not stop the others
        and wrapper impls still run as wrappers. Returns the names of the
        plugins that raised.

        Raises:
            ValueError: If *hook_name* is not a trainerctl hook.
        """
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            raise ValueError(f"Unknown hook: {hook_name}")

        failed: list[str] = []
        plugins = self.get_plugins()
        for impl in reversed(caller.get_hookimpls()):
            others = [p for p in plugins if p is not impl.plugin]
            try:
                self._pm.subset_hook_caller(hook_name, remove_plugins=others)(**payload)
            except Exception:
                logger.warning(
                    "Plugin %s failed in %s", impl.plugin_name, hook_name, exc_info=True
                )
                failed.append(impl.plugin_name)
        return failed

    def _normalize_plugin_instances(self) -> None:
        """Swap entry points that name a hook class for an instance of it.

        Hooks registered on a bare class would be called with ``self``
        unbound.
        """
        for plugin in self.get_plugins():
            if not inspect.isclass(plugin) or not self._has_hook_impls(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Cannot instantiate plugin %s; skipped", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """True when any public attribute of *cls* carries the ``@hookimpl`` marker."""
        marker = f"{PROJECT_NAME}_impl"
        return any(
            callable(member) and getattr(member, marker, None)
            for attr, member in inspect.getmembers(cls)
            if not attr.startswith("_")
        )
