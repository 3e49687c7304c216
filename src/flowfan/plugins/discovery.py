"""Dynamic plugin discovery by folder scanning.

Scans the processors package for classes that:
1. Inherit from BaseProcessor
2. Have a `name` class attribute
3. Are not abstract (no @abstractmethod methods without implementation)
"""

import importlib
import inspect
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Files that should never be scanned for plugins
EXCLUDED_FILES: frozenset[str] = frozenset({"__init__.py"})

PROCESSORS_PACKAGE = "flowfan.plugins.processors"


def discover_plugins_in_package(package: str, base_class: type) -> list[type]:
    """Discover plugin classes in every module of a package directory.

    Modules are imported under their canonical dotted name so discovered
    classes are the same objects a direct import returns.

    Args:
        package: Dotted package name to scan (non-recursive)
        base_class: Base class that plugins must inherit from

    Returns:
        List of discovered plugin classes, sorted by module file name
    """
    pkg = importlib.import_module(package)
    directory = Path(pkg.__file__).parent  # type: ignore[arg-type]
    discovered: list[type] = []

    for py_file in sorted(directory.glob("*.py")):
        if py_file.name in EXCLUDED_FILES:
            continue

        # Plugin code is SYSTEM-OWNED. Import errors are bugs - let them propagate.
        module = importlib.import_module(f"{package}.{py_file.stem}")
        discovered.extend(_discover_in_module(module, base_class))

    return discovered


def _discover_in_module(module: Any, base_class: type) -> list[type]:
    discovered: list[type] = []
    for name, obj in inspect.getmembers(module, inspect.isclass):
        # Must be defined in this module (not imported)
        if obj.__module__ != module.__name__:
            continue

        if not issubclass(obj, base_class) or obj is base_class:
            continue

        if inspect.isabstract(obj):
            continue

        plugin_name = getattr(obj, "name", None)
        if not plugin_name:
            logger.warning(
                "Class %s in %s inherits from %s but has no/empty 'name' attribute - skipping",
                name,
                module.__name__,
                base_class.__name__,
            )
            continue

        discovered.append(obj)

    return discovered


def discover_all_plugins() -> list[type]:
    """Discover all built-in processor plugins.

    Raises:
        ValueError: If two built-in processors share a name
    """
    from flowfan.plugins.base import BaseProcessor

    discovered = discover_plugins_in_package(PROCESSORS_PACKAGE, BaseProcessor)
    seen: dict[str, type] = {}
    for cls in discovered:
        cls_name: str = cls.name  # type: ignore[attr-defined]
        if cls_name in seen:
            raise ValueError(
                f"Duplicate processor plugin name '{cls_name}': "
                f"found in both {seen[cls_name].__module__} and {cls.__module__}. "
                f"Plugin names must be unique."
            )
        seen[cls_name] = cls
    return discovered


def get_plugin_description(plugin_cls: type) -> str:
    """Extract description from plugin class docstring.

    Returns the first non-empty line of the docstring, or a name-based
    default if the class has no docstring.
    """
    if plugin_cls.__doc__:
        for line in plugin_cls.__doc__.strip().split("\n"):
            cleaned = line.strip()
            if cleaned:
                return cleaned

    name = getattr(plugin_cls, "name", plugin_cls.__name__)
    return f"{name} plugin"


def create_dynamic_hookimpl(plugin_classes: list[type], hook_method_name: str) -> object:
    """Create a pluggy hookimpl object returning the given plugin classes.

    Args:
        plugin_classes: List of plugin classes to register
        hook_method_name: Name of the hook method (e.g., "flowfan_get_processors")

    Returns:
        Object instance with the decorated hook method
    """
    from flowfan.plugins.hookspecs import hookimpl

    class DynamicHookImpl:
        """Dynamically generated hook implementer."""

        pass

    def hook_method(self: Any) -> list[type]:
        return plugin_classes

    setattr(DynamicHookImpl, hook_method_name, hookimpl(hook_method))

    return DynamicHookImpl()
