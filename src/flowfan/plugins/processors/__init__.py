"""Built-in processor plugins.

Processors are accessed via PluginManager, not direct imports:
    manager = PluginManager()
    manager.register_builtin_plugins()
    processor = manager.create_processor("duplicate_by_attribute", options)
"""
