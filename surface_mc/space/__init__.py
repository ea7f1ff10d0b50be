"""Space module: Voxel pools and the off-lattice occupancy store."""

from surface_mc.space.pool import VoxelPool, PoolRegistry
from surface_mc.space.offlattice import OffLatticeSpace

__all__ = ["VoxelPool", "PoolRegistry", "OffLatticeSpace"]
