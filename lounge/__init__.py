"""Lounge — frame-driven AABB overlap and proximity events for 3D scenes."""

__version__ = "0.1.0"
