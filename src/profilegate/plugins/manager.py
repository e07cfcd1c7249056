"""Pluggy wiring for friend-request and audience lifecycle hooks.

Two sources of plugins:

- packages exposing an entry point in the ``profilegate.plugins`` group
- objects the Store registers itself (the built-in notifications plugin)
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from profilegate.plugins.hookspecs import ProfileGateHookSpec

PROJECT_NAME = "profilegate"
ENTRY_POINT_GROUP = "profilegate.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ProfileGateHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        """True once :meth:`discover_and_load` has run."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Load installed entry-point plugins and return every registered name."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        if count:
            logger.debug("Loaded %d entry-point plugin(s)", count)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._name_of(p) for p in self._pm.get_plugins()]

    def implementations(self, hook_name: str) -> list[str]:
        """Names of the plugins implementing *hook_name*, in call order.

        Empty for hooks nobody implements and for names that are not hooks.
        """
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            return []
        return [impl.plugin_name for impl in reversed(caller.get_hookimpls())]

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or getattr(plugin, "__name__", type(plugin).__name__)

    def _normalize_plugin_instances(self) -> None:
        """Swap entry points that registered a class for an instance of it.

        Hooks called on a class object run with ``self`` unbound.
        """
        for plugin in self.get_plugins():
            if not inspect.isclass(plugin) or not self._has_hook_impls(plugin):
                continue

            name = self._name_of(plugin)
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Could not instantiate plugin %s; skipped", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)

    def _has_hook_impls(self, cls: type) -> bool:
        """True if any public attribute of *cls* is marked with ``@hookimpl``."""
        return any(
            self._pm.parse_hookimpl_opts(cls, attr) is not None
            for attr in dir(cls)
            if not attr.startswith("_")
        )
