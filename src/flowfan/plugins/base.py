# src/flowfan/plugins/base.py
"""Base class for processor implementations.

Processors MUST subclass BaseProcessor. Plugin discovery uses issubclass()
checks against it, and the class attributes below are what the host reads
to wire a processor into a flow.

Lifecycle Contract (all hooks called on the runner's main thread):
    on_start(ctx) -> [process per unit] -> on_complete(ctx) -> close()

- on_start: Per-run initialization. If on_start raises, neither
  on_complete nor close is called.
- process: Called once per unit, possibly from several worker threads at
  once. Must not keep per-unit state on the instance.
- on_complete: Processing finished (success or error).
- close: Pure resource teardown. Called even if processing crashed.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from flowfan.contracts import FlowUnit, ProcessResult, Relationship
from flowfan.plugins.config_base import PluginConfig
from flowfan.plugins.context import ProcessContext


class BaseProcessor(ABC):
    """Base class for all unit processors.

    A processor takes exactly one unit per invocation and returns a
    ProcessResult describing every unit to emit and where. It never talks
    to the session directly; the runner transfers and commits.

        class Tagger(BaseProcessor):
            name = "tagger"
            relationships = frozenset({Relationship.SUCCESS})
            config_model = TaggerConfig

            def process(self, unit, ctx):
                return ProcessResult.routed(unit.with_attribute("tag", "x"), Relationship.SUCCESS)
    """

    name: ClassVar[str]
    plugin_version: ClassVar[str] = "0.0.0"
    relationships: ClassVar[frozenset[Relationship]]
    config_model: ClassVar[type[PluginConfig]]
    node_id: str | None = None  # Set by the runner

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize with configuration.

        Args:
            config: Plugin configuration
        """
        self.config = config

    @abstractmethod
    def process(self, unit: FlowUnit, ctx: ProcessContext) -> ProcessResult:
        """Process a single unit.

        Args:
            unit: Input unit (immutable)
            ctx: Process context

        Returns:
            ProcessResult whose relationships are all declared by this processor
        """

    @classmethod
    def describe(cls) -> dict[str, Any]:
        """Describe the processor for host wiring.

        Returns the declared configuration schema and relationship names.
        """
        return {
            "name": cls.name,
            "version": cls.plugin_version,
            "relationships": sorted(str(r) for r in cls.relationships),
            "config_schema": cls.config_model.model_json_schema(),
        }

    def close(self) -> None:  # noqa: B027 - optional override, not abstract
        """Release resources (connections, clients, pools)."""
        pass

    # === Lifecycle Hooks ===
    # Intentionally empty - optional hooks for subclasses to override.

    def on_start(self, ctx: ProcessContext) -> None:  # noqa: B027 - optional hook
        """Called once before any unit is processed."""
        pass

    def on_complete(self, ctx: ProcessContext) -> None:  # noqa: B027 - optional hook
        """Called after all units are processed (or after a processing error)."""
        pass
