"""Plate configurator — lay out wall plates and position socket cutouts.

Packages:

  config       Design rules and canvas constants (single source of truth)
  geometry     Low-level rectangle helpers (bounding boxes, AABB gaps, hit tests)
  layout       Scaling, socket projection, placement validation, serialization
  interaction  Drag/click state machine and debounced viewport tracking
  store        Dimension + socket stores with pluggable persistence
  session      One user's plates, socket groups and interaction state
  scene        Render-layer draw primitives
  web          FastAPI server exposing the configurator to a browser canvas
"""
