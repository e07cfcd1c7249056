"""Lifecycle hooks for friend requests and audience changes.

Hooks run through :class:`EventBus`; a failing plugin produces a warning on
the ServiceResult and a ``failed`` WAL row, never an error.
"""

from profilegate.plugins.event_bus import EventBus
from profilegate.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
