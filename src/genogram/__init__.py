"""Genogram Editor Core - entity graph and interaction state machines.

The in-memory model of people, relationships, households and text
annotations, the mutations that keep it referentially consistent, and the
state machines that turn pointer/keyboard input into graph edits.
"""

__version__ = "0.1.0"

# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    if name == "GenogramEditor":
        from genogram.editor import GenogramEditor
        return GenogramEditor
    if name == "GraphStore":
        from genogram.store import GraphStore
        return GraphStore
    if name == "models":
        from genogram import models
        return models
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
