"""
SURFACE_MC: particle transport on triangulated surfaces and voxel graphs

Geometry and occupancy core for Monte Carlo simulation of particles that
diffuse on membranes and other structures.

Modules:
    core: Particle identities, barycentric coordinates, triangles
    geometry: Closest point and segment intersection on triangles
    space: Voxel pools and the off-lattice occupancy store
    config: Space configuration and logging setup
"""

__version__ = "0.1.0"

from surface_mc.core.particle import ParticleID, ParticleIDGenerator, Voxel, Particle
from surface_mc.core.barycentric import (
    Barycentric, first_cross_edge, force_put_inside, to_barycentric, to_absolute)
from surface_mc.core.triangle import Triangle
from surface_mc.geometry.triangle_operation import distance, is_pierce
from surface_mc.space.offlattice import OffLatticeSpace
from surface_mc.config import SpaceConfig, load_config, setup_logging

__all__ = [
    "ParticleID",
    "ParticleIDGenerator",
    "Voxel",
    "Particle",
    "Barycentric",
    "first_cross_edge",
    "force_put_inside",
    "to_barycentric",
    "to_absolute",
    "Triangle",
    "distance",
    "is_pierce",
    "OffLatticeSpace",
    "SpaceConfig",
    "load_config",
    "setup_logging",
]
