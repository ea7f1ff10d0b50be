"""Geometry module: Point and segment queries against triangles."""

from surface_mc.geometry.triangle_operation import distance, closest_point, is_pierce

__all__ = ["distance", "closest_point", "is_pierce"]
