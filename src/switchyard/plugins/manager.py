"""Plugin discovery, loading, and handler-set collection.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery from ``.switchyard/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

import pluggy

from switchyard.dispatch.builder import Configuration, ConfigurationBuilder
from switchyard.dispatch.mappers import RequestMapper
from switchyard.plugins.hookspecs import SwitchyardHookSpec

PROJECT_NAME = "switchyard"
ENTRY_POINT_GROUP = "switchyard.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and handler-set collection."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SwitchyardHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Uses pluggy's setuptools entry_point discovery for the
        ``switchyard.plugins`` group, then scans *local_dir* (typically
        ``.switchyard/plugins/``) for single-file Python plugins.

        Returns a list of loaded plugin names.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load entry-point plugins", exc_info=True)
        self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered plugins."""
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Handler sets
    # ------------------------------------------------------------------

    def collect_handler_sets(self, warnings: list[str] | None = None) -> list[Configuration]:
        """Build the handler set contributed by each plugin.

        Each plugin's request mappers are renamed ``plugin:<name>`` so
        route listings show where a chain came from.  A plugin that raises
        or returns an unsupported value is skipped with a warning.  Plugins
        are visited in pluggy's call order: last registered first, unless
        ``tryfirst`` or ``trylast`` says otherwise.
        """
        handler_sets: list[Configuration] = []
        # get_hookimpls() lists in reverse call order.
        for impl in reversed(self._pm.hook.register_handler_set.get_hookimpls()):
            configuration = self._collect_plugin_handler_set(impl.function, impl.plugin_name)
            if configuration is None:
                continue
            if isinstance(configuration, str):
                if warnings is not None:
                    warnings.append(configuration)
                continue
            handler_sets.append(configuration)
        return handler_sets

    @staticmethod
    def _collect_plugin_handler_set(
        hook: Callable[[], Any], plugin_name: str
    ) -> Configuration | str | None:
        """Return the plugin's Configuration, ``None``, or a warning message."""
        try:
            result = hook()
        except Exception:
            logger.warning(
                "Failed to collect handler set from plugin %s",
                plugin_name,
                exc_info=True,
            )
            return f"Plugin {plugin_name} failed to register its handler set"

        if result is None:
            return None
        if isinstance(result, ConfigurationBuilder):
            result = result.build()
        if not isinstance(result, Configuration):
            logger.warning(
                "Plugin %s returned %s instead of a handler set",
                plugin_name,
                type(result).__name__,
            )
            return f"Plugin {plugin_name} returned an unsupported handler set"

        mappers = tuple(
            RequestMapper(m.chains, name=f"plugin:{plugin_name}") for m in result.request_mappers
        )
        return replace(result, request_mappers=mappers)

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python plugins.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module.  Classes inside the module that carry pluggy
        hookimpl-decorated methods are instantiated and registered.

        Errors are logged as warnings but never raised: a broken local
        plugin must not prevent the rest of the skill from starting.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"switchyard_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name:
                    continue  # skip imported classes
                if not self._has_hook_impls(obj):
                    continue
                try:
                    instance = obj()
                    self.register_plugin(instance, name=f"{module_name}.{obj.__name__}")
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly.  Hook
        calls against class objects leave ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("switchyard")`` sets a
        ``switchyard_impl`` attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "switchyard_impl", None):
                return True
        return False
