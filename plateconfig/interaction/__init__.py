"""Interaction — the stateful half of the configurator.

Submodules:
  viewport    Debounced canvas size and the current layout pass.
  controller  Drag/click state machine over the socket store.
"""

from .viewport import ViewportTracker
from .controller import InteractionController, DragSession

__all__ = ["ViewportTracker", "InteractionController", "DragSession"]
