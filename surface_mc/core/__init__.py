"""Core module: Particle identities, barycentric coordinates and triangles."""

from surface_mc.core.particle import ParticleID, Voxel, Particle
from surface_mc.core.barycentric import Barycentric
from surface_mc.core.triangle import Triangle

__all__ = ["ParticleID", "Voxel", "Particle", "Barycentric", "Triangle"]
