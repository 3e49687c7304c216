# src/flowfan/plugins/hookspecs.py
"""pluggy hook specifications for flowfan plugins.

Plugins implement these hooks to register themselves with the framework.
The plugin manager calls these hooks during discovery.

Usage (implementing a plugin):
    from flowfan.plugins.hookspecs import hookimpl

    class MyPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def flowfan_get_processors(self):
            return [MyProcessor]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from flowfan.plugins.base import BaseProcessor

# Project name for pluggy
PROJECT_NAME = "flowfan"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class FlowfanProcessorSpec:
    """Hook specifications for processor plugins."""

    @hookspec
    def flowfan_get_processors(self) -> list[type["BaseProcessor"]]:  # type: ignore[empty-body]
        """Return processor plugin classes.

        Returns:
            List of processor classes (not instances)
        """
