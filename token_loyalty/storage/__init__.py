"""
State export for TokenLoyalty sessions.

Serializes session state to JSON and hands it to a file-save sink.
"""

from .export import DirectorySink, export_state, serialize_state

__all__ = ["DirectorySink", "export_state", "serialize_state"]
