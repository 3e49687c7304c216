# src/flowfan/plugins/__init__.py
"""Plugin system: processors via pluggy.

- Base class: BaseProcessor with lifecycle hooks
- Config: PluginConfig and PluginConfigError
- Context: ProcessContext carrying run metadata and the error sink
- Manager: Plugin discovery and registration
- Hookspecs: pluggy hook definitions
"""

from flowfan.plugins.base import BaseProcessor
from flowfan.plugins.config_base import PluginConfig, PluginConfigError
from flowfan.plugins.context import ProcessContext
from flowfan.plugins.hookspecs import hookimpl, hookspec
from flowfan.plugins.manager import PluginManager

__all__ = [
    "BaseProcessor",
    "PluginConfig",
    "PluginConfigError",
    "PluginManager",
    "ProcessContext",
    "hookimpl",
    "hookspec",
]
