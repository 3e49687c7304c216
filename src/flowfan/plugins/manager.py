# src/flowfan/plugins/manager.py
"""Plugin manager for discovery, registration, and lookup.

Uses pluggy for hook-based plugin registration.
"""

from typing import Any

import pluggy

from flowfan.plugins.base import BaseProcessor
from flowfan.plugins.hookspecs import PROJECT_NAME, FlowfanProcessorSpec


class PluginManager:
    """Manages processor discovery, registration, and lookup.

    Usage:
        manager = PluginManager()
        manager.register_builtin_plugins()

        processor = manager.create_processor("duplicate_by_attribute", options)
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FlowfanProcessorSpec)

        # Cache - maps name to plugin class for duplicate detection
        self._processors: dict[str, type[BaseProcessor]] = {}

    def register_builtin_plugins(self) -> None:
        """Discover and register all built-in processors.

        Call this once at startup to make built-in plugins discoverable.
        """
        from flowfan.plugins.discovery import create_dynamic_hookimpl, discover_all_plugins

        self.register(create_dynamic_hookimpl(discover_all_plugins(), "flowfan_get_processors"))

    def register(self, plugin: Any) -> None:
        """Register a plugin.

        Args:
            plugin: Plugin instance implementing hook methods

        Raises:
            ValueError: If a processor with the same name is already registered
        """
        self._pm.register(plugin)
        try:
            self._refresh_caches()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def _refresh_caches(self) -> None:
        new_processors: dict[str, type[BaseProcessor]] = {}

        for processors in self._pm.hook.flowfan_get_processors():
            for cls in processors:
                name = cls.name
                if name in new_processors:
                    raise ValueError(f"Duplicate processor plugin name: '{name}'. Already registered by {new_processors[name].__name__}")
                new_processors[name] = cls

        self._processors = new_processors

    def get_processors(self) -> list[type[BaseProcessor]]:
        """Get all registered processor plugins, sorted by name."""
        return [self._processors[name] for name in sorted(self._processors)]

    def get_processor_by_name(self, name: str) -> type[BaseProcessor] | None:
        """Get processor plugin by name."""
        return self._processors.get(name)

    def create_processor(self, name: str, options: dict[str, Any]) -> BaseProcessor:
        """Instantiate a registered processor.

        Raises:
            ValueError: If no processor with that name is registered
            PluginConfigError: If options are invalid for the processor
        """
        cls = self.get_processor_by_name(name)
        if cls is None:
            available = ", ".join(sorted(self._processors)) or "(none)"
            raise ValueError(f"Unknown processor plugin: '{name}'. Available: {available}")
        return cls(options)
