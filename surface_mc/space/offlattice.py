"""
Off-lattice voxel space.

Voxels are an arbitrary graph: every coordinate has a fixed absolute
position and a fixed list of adjacent coordinates. Occupancy is tracked
per coordinate as a pool handle; species may only be placed on voxels
held by their location (substrate) pool.

Example:
    space = OffLatticeSpace(voxel_radius=1.0,
                            positions=[(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)],
                            adjoining_pairs=[(0, 1), (1, 2), (2, 3), (3, 0)])
    space.update_voxel(ParticleID(0, 1), Voxel('A', 0))   # True (inserted)
    space.move(0, 1)                                      # True
    space.get_coord(ParticleID(0, 1))                     # 1
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import h5py
import numpy as np
from scipy.spatial.distance import cdist

from surface_mc import __version__
from surface_mc.config import SpaceConfig, setup_logging
from surface_mc.core.particle import (
    CoordinateIdPair, NULL_PID, Particle, ParticleID, Voxel, VOXEL_DTYPE,
    pairs_to_records, pool_dtype)
from surface_mc.exceptions import (
    IllegalState, InvalidArgument, LogicError, NotFound, NotSupported, OutOfBounds)
from surface_mc.space.pool import (
    KIND_MOLECULAR, KIND_STRUCTURE, KIND_VACANT, PoolRegistry, VACANT,
    VACANT_SPECIES, VoxelPool)

logger = logging.getLogger(__name__)

PoolRef = Union[int, VoxelPool]


def _handle(pool: PoolRef) -> int:
    return pool.handle if isinstance(pool, VoxelPool) else int(pool)


class OffLatticeSpace:
    """
    Occupancy store over an unstructured voxel graph.

    Invariants:
        - every coordinate is claimed by exactly one pool
        - coordinate c is listed in pool p if and only if the handle table
          maps c to p

    All public mutators validate before changing anything, so a call that
    raises or returns False leaves the space untouched.
    """

    def __init__(self, voxel_radius: float,
                 positions: Optional[Sequence] = None,
                 adjoining_pairs: Optional[Sequence[Tuple[int, int]]] = None):
        """
        Initialize an off-lattice space.

        Parameters:
            voxel_radius: Radius of a voxel [m]
            positions: (N, 3) absolute voxel positions
            adjoining_pairs: Unordered coordinate pairs that are adjacent
        """
        self.voxel_radius = voxel_radius

        self._registry = PoolRegistry()
        self._positions = np.zeros((0, 3), dtype=np.float64)
        self._adjoinings: List[List[int]] = []
        self._pairs = np.zeros((0, 2), dtype=np.int64)
        self._voxels = np.zeros(0, dtype=np.int64)

        if positions is not None:
            self.reset(positions, adjoining_pairs if adjoining_pairs is not None else [])

    @classmethod
    def from_config(cls, config: SpaceConfig, positions: Sequence,
                    adjoining_pairs: Sequence[Tuple[int, int]]) -> "OffLatticeSpace":
        """Build a space with `config.voxel_radius` and log at `config.log_level`."""
        setup_logging(config.log_level)
        return cls(config.voxel_radius, positions, adjoining_pairs)

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def reset(self, positions: Sequence, adjoining_pairs: Sequence[Tuple[int, int]]):
        """
        Rebuild the position, adjacency and occupancy tables.

        Every coordinate starts in the vacant pool. Pools survive a reset
        but lose all their voxels.

        Raises:
            InvalidArgument: `positions` is not an (N, 3) array
            IllegalState: a pair references a coordinate outside [0, N)
        """
        new_positions = np.array(positions, dtype=np.float64)
        if new_positions.size == 0:
            new_positions = new_positions.reshape(0, 3)
        if new_positions.ndim != 2 or new_positions.shape[1] != 3:
            raise InvalidArgument(
                f"positions must have shape (N, 3), got {new_positions.shape}")

        pairs = np.array(adjoining_pairs, dtype=np.int64).reshape(-1, 2)
        size = len(new_positions)
        invalid = (pairs < 0) | (pairs >= size)
        if np.any(invalid):
            bad = pairs[np.any(invalid, axis=1)][0]
            raise IllegalState(
                f"A given pair is invalid: ({bad[0]}, {bad[1]}) with {size} coordinates")

        adjoinings: List[List[int]] = [[] for _ in range(size)]
        for coord0, coord1 in pairs.tolist():
            adjoinings[coord0].append(coord1)
            adjoinings[coord1].append(coord0)

        self._positions = new_positions
        self._positions.setflags(write=False)
        self._adjoinings = adjoinings
        self._pairs = pairs
        self._pairs.setflags(write=False)
        self._voxels = np.full(size, VACANT, dtype=np.int64)

        self._registry.clear_entries()
        vacant = self._registry.vacant
        for coord in range(size):
            vacant.add_voxel(CoordinateIdPair(NULL_PID, coord))

        logger.info(f"Reset space: {size} voxels, {len(pairs)} adjoining pairs")

    @property
    def size(self) -> int:
        return len(self._positions)

    def __len__(self) -> int:
        return self.size

    def is_in_range(self, coord: int) -> bool:
        return 0 <= coord < self.size

    def _check_range(self, coord: int):
        if not self.is_in_range(coord):
            raise OutOfBounds(f"Coordinate {coord} is out of bounds [0, {self.size})")

    @property
    def positions(self) -> np.ndarray:
        """(N, 3) read-only position table."""
        return self._positions

    def coordinate2position(self, coord: int) -> np.ndarray:
        self._check_range(coord)
        return self._positions[coord].copy()

    def position2coordinate(self, point) -> int:
        """
        Coordinate nearest to `point`; the lowest index wins ties.

        Raises:
            InvalidArgument: `point` is not a 3D point
            IllegalState: the space has no coordinates
        """
        p = np.asarray(point, dtype=np.float64)
        if p.shape != (3,):
            raise InvalidArgument(f"Expected a 3D point, got shape {p.shape}")
        if self.size == 0:
            raise IllegalState("The space has no coordinates")
        distances = cdist(p.reshape(1, 3), self._positions)[0]
        return int(np.argmin(distances))

    nearest_coordinate = position2coordinate

    def num_neighbors(self, coord: int) -> int:
        self._check_range(coord)
        return len(self._adjoinings[coord])

    def neighbors(self, coord: int) -> List[int]:
        self._check_range(coord)
        return list(self._adjoinings[coord])

    def get_neighbor(self, coord: int, nrand: int) -> int:
        """The `nrand`-th adjacent coordinate of `coord`."""
        self._check_range(coord)
        adjoining = self._adjoinings[coord]
        if not 0 <= nrand < len(adjoining):
            raise OutOfBounds(
                f"Coordinate {coord} has {len(adjoining)} neighbors, asked for {nrand}")
        return adjoining[nrand]

    # ------------------------------------------------------------------
    # Pools
    # ------------------------------------------------------------------

    @property
    def pools(self) -> PoolRegistry:
        return self._registry

    @property
    def vacant(self) -> VoxelPool:
        return self._registry.vacant

    def _resolve_location(self, loc: str) -> int:
        if loc == VACANT_SPECIES:
            return VACANT
        handle = self._registry.find(loc)
        if handle is not None:
            return handle
        # The real parameters are unknown until the location species is
        # declared; make_molecular_pool refines the placeholder once.
        pool = self._registry.create(loc, VACANT, radius=0.0, D=0.0, placeholder=True)
        logger.info(f"Location '{loc}' is not declared yet. "
                    f"Created a placeholder pool with radius 0 and D 0.")
        return pool.handle

    def make_molecular_pool(self, species: str, radius: float, D: float,
                            loc: str = VACANT_SPECIES) -> bool:
        """
        Declare a molecular species.

        Returns:
            True if a pool was created or a placeholder was refined,
            False if an identical declaration already exists

        Raises:
            IllegalState: the species is a structure type, or the
                declaration conflicts with an earlier one
        """
        handle = self._registry.find(species)
        if handle is None:
            location = self._resolve_location(loc)
            self._registry.create(species, location, radius, D, kind=KIND_MOLECULAR)
            return True

        pool = self._registry[handle]
        if pool.kind != KIND_MOLECULAR:
            raise IllegalState(
                f"The given species '{species}' is already assigned to the "
                f"VoxelPool with no voxels.")

        if pool.placeholder:
            return self._refine_placeholder(pool, radius, D, loc)

        if (pool.radius == radius and pool.D == D
                and self._registry.location_serial(handle) == loc):
            return False
        raise IllegalState(
            f"Species '{species}' is already declared with radius={pool.radius}, "
            f"D={pool.D}, loc='{self._registry.location_serial(handle)}'")

    def _refine_placeholder(self, pool: VoxelPool, radius: float, D: float,
                            loc: str) -> bool:
        if loc == pool.species:
            raise IllegalState(f"Species '{loc}' cannot be its own location")

        current_loc = self._registry.location_serial(pool.handle)
        if loc != current_loc:
            if len(pool) > 0:
                raise IllegalState(
                    f"Cannot move '{pool.species}' from location '{current_loc}' "
                    f"to '{loc}' while it holds {len(pool)} voxels")
            location = self._registry.find(loc) if loc != VACANT_SPECIES else VACANT
            handle = location
            while handle is not None and handle != VACANT:
                if handle == pool.handle:
                    raise IllegalState(
                        f"Location '{loc}' of '{pool.species}' forms a cycle")
                handle = self._registry[handle].location
            pool.location = self._resolve_location(loc)

        pool.radius = radius
        pool.D = D
        pool.placeholder = False
        logger.info(f"Refined placeholder pool '{pool.species}': "
                    f"radius={radius}, D={D}, loc='{loc}'")
        return True

    def make_structure_type(self, species: str, loc: str = VACANT_SPECIES) -> bool:
        """
        Declare a structure species (e.g. a membrane).

        Returns:
            True if created, False if it already exists

        Raises:
            IllegalState: the species is already declared as molecular
        """
        handle = self._registry.find(species)
        if handle is not None:
            if self._registry[handle].is_structure:
                return False
            raise IllegalState(f"Species '{species}' is already a molecular species")
        location = self._resolve_location(loc)
        self._registry.create(species, location, kind=KIND_STRUCTURE)
        return True

    def get_voxel_pool(self, voxel: Voxel) -> VoxelPool:
        """Pool for `voxel.species`, created from the voxel's metadata if missing."""
        handle = self._registry.find(voxel.species)
        if handle is not None:
            return self._registry[handle]
        if not self.make_molecular_pool(voxel.species, voxel.radius, voxel.D, voxel.loc):
            logger.error(f"Pool for '{voxel.species}' was neither found nor created")
            raise LogicError("get_voxel_pool: never reach here")
        return self._registry.get(voxel.species)

    pool_for = get_voxel_pool

    def find_voxel_pool(self, species: str) -> VoxelPool:
        return self._registry.get(species)

    def get_voxel_pool_at(self, coord: int) -> VoxelPool:
        self._check_range(coord)
        return self._registry[self._voxels[coord]]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_voxel_at(self, coord: int) -> Tuple[ParticleID, Voxel]:
        pool = self.get_voxel_pool_at(coord)
        return (pool.get_particle_id(coord),
                Voxel(pool.species, coord, pool.radius, pool.D,
                      self._registry.location_serial(pool.handle)))

    voxel_at = get_voxel_at

    def particle_at(self, coord: int) -> Particle:
        pool = self.get_voxel_pool_at(coord)
        return Particle(pool.species, self._positions[coord], pool.radius, pool.D)

    def get_coord(self, pid: ParticleID) -> Optional[int]:
        """Coordinate holding `pid`, or None. Scans every molecular pool."""
        if pid.is_null():
            return None
        for pool in self._registry.molecular_pools():
            coord = pool.find(pid)
            if coord is not None:
                return coord
        return None

    locate = get_coord

    def has_voxel(self, pid: ParticleID) -> bool:
        return self.get_coord(pid) is not None

    def get_voxel(self, pid: ParticleID) -> Tuple[ParticleID, Voxel]:
        coord = self.get_coord(pid)
        if coord is None:
            raise NotFound(f"Particle {pid} is not found")
        return self.get_voxel_at(coord)

    def list_species(self) -> List[str]:
        return [pool.species for pool in self._registry if not pool.is_vacant]

    def num_voxels(self, species: Optional[str] = None) -> int:
        """Number of molecules, of one species or of all molecular species."""
        if species is None:
            return sum(len(pool) for pool in self._registry.molecular_pools())
        handle = self._registry.find(species)
        return 0 if handle is None else len(self._registry[handle])

    def list_coordinates(self, species: str) -> List[int]:
        handle = self._registry.find(species)
        return [] if handle is None else self._registry[handle].coordinates()

    def list_voxels(self, species: Optional[str] = None) -> List[Tuple[ParticleID, Voxel]]:
        if species is None:
            pools = list(self._registry.molecular_pools())
        else:
            handle = self._registry.find(species)
            pools = [] if handle is None else [self._registry[handle]]

        voxels = []
        for pool in pools:
            loc = self._registry.location_serial(pool.handle)
            for pid, coord in pool:
                voxels.append((pid, Voxel(pool.species, coord, pool.radius, pool.D, loc)))
        return voxels

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def _claim(self, pool: VoxelPool, pid: ParticleID, coord: int):
        """Give `coord` to `pool`. The previous holder must already have let go."""
        pool.add_voxel(CoordinateIdPair(pid, coord))
        self._voxels[coord] = pool.handle

    def _release(self, pool: VoxelPool, coord: int):
        """Return `coord` from `pool` to the pool's location."""
        pool.remove_voxel_if_exists(coord)
        self._claim(self._registry[pool.location], NULL_PID, coord)

    def update_voxel(self, pid: ParticleID, voxel: Voxel) -> bool:
        """
        Place `pid` as `voxel.species` on `voxel.coordinate`.

        Returns:
            True if the particle was inserted, False if it was moved

        Raises:
            OutOfBounds: the destination is not a coordinate of this space
            NotSupported: the destination is not held by the species' location
        """
        to_coord = voxel.coordinate
        self._check_range(to_coord)

        new_vp = self.get_voxel_pool(voxel)
        dest_vp = self._registry[self._voxels[to_coord]]
        if dest_vp.handle != new_vp.location:
            raise NotSupported(
                f"Mismatch in the location. Failed to place '{new_vp.species}' "
                f"to '{dest_vp.species}'.")

        from_coord = self.get_coord(pid)
        if from_coord is None:
            dest_vp.remove_voxel_if_exists(to_coord)
            self._claim(new_vp, pid, to_coord)
            logger.debug(f"Inserted {pid} as '{new_vp.species}' at {to_coord}")
            return True

        src_vp = self._registry[self._voxels[from_coord]]
        if from_coord == to_coord:
            # the particle sits on its own new location
            src_vp.remove_voxel_if_exists(from_coord)
        else:
            self._release(src_vp, from_coord)
            dest_vp.remove_voxel_if_exists(to_coord)
        self._claim(new_vp, pid, to_coord)
        logger.debug(f"Moved {pid} from {from_coord} ('{src_vp.species}') "
                     f"to {to_coord} ('{new_vp.species}')")
        return False

    update = update_voxel

    def remove_voxel(self, pid: ParticleID) -> bool:
        """Remove particle `pid`; False if it is not in the space."""
        if pid.is_null():
            return False
        for pool in self._registry.molecular_pools():
            coord = pool.find(pid)
            if coord is not None:
                self._release(pool, coord)
                logger.debug(f"Removed {pid} from {coord}")
                return True
        return False

    def remove_voxel_at(self, coord: int) -> bool:
        """Empty `coord` back to its location; False if it is already vacant."""
        pool = self.get_voxel_pool_at(coord)
        if pool.is_vacant:
            return False
        self._release(pool, coord)
        logger.debug(f"Removed '{pool.species}' at {coord}")
        return True

    def can_move(self, src: int, dest: int) -> bool:
        """True if the occupant of `src` may swap with `dest`."""
        src_vp = self.get_voxel_pool_at(src)
        dest_vp = self.get_voxel_pool_at(dest)
        if src == dest or src_vp.is_vacant:
            return False
        return dest_vp.handle == src_vp.location

    def move(self, src: int, dest: int, candidate: Optional[int] = None) -> bool:
        """
        Swap the occupant of `src` with the location voxel at `dest`.

        Parameters:
            src: Coordinate of the mover
            dest: Target coordinate, must be held by the mover's location
            candidate: Index of the mover within its pool, if known

        Returns:
            True if moved, False if rejected (nothing changed)
        """
        if not self.can_move(src, dest):
            return False
        src_vp = self._registry[self._voxels[src]]
        dest_vp = self._registry[self._voxels[dest]]

        src_vp.replace_voxel(src, dest, candidate)
        dest_vp.replace_voxel(dest, src)
        self._voxels[src] = dest_vp.handle
        self._voxels[dest] = src_vp.handle
        return True

    def move_to_neighbor(self, src_pool: PoolRef, location_pool: PoolRef,
                         info: CoordinateIdPair, nrand: int) -> Tuple[int, bool]:
        """
        Try to move the occupant described by `info` to its `nrand`-th neighbor.

        Returns:
            (destination coordinate, whether the move happened)

        Raises:
            IllegalState: `info.coordinate` is not held by `src_pool`
        """
        src_handle = _handle(src_pool)
        loc_handle = _handle(location_pool)
        src = info.coordinate
        dest = self.get_neighbor(src, nrand)

        if self._voxels[src] != src_handle:
            raise IllegalState(
                f"Coordinate {src} is not held by pool {src_handle}")
        if self._voxels[dest] != loc_handle:
            return dest, False

        self._registry[src_handle].replace_voxel(src, dest)
        self._registry[loc_handle].replace_voxel(dest, src)
        self._voxels[src] = loc_handle
        self._voxels[dest] = src_handle
        return dest, True

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    def check_consistency(self):
        """
        Verify both occupancy invariants.

        Raises:
            LogicError: a coordinate is unclaimed, claimed twice, or its
                handle does not match the pool listing it
        """
        seen = np.zeros(self.size, dtype=np.int64)
        for pool in self._registry:
            for _, coord in pool:
                if not self.is_in_range(coord):
                    raise LogicError(f"{pool} lists out-of-range coordinate {coord}")
                if self._voxels[coord] != pool.handle:
                    raise LogicError(
                        f"{pool} lists coordinate {coord} held by pool "
                        f"{self._voxels[coord]}")
                seen[coord] += 1
        if np.any(seen != 1):
            coord = int(np.flatnonzero(seen != 1)[0])
            raise LogicError(f"Coordinate {coord} is listed {seen[coord]} times")

    # ------------------------------------------------------------------
    # HDF5
    # ------------------------------------------------------------------

    def save(self, filepath: Union[str, Path]):
        """Write positions, adjacency, pools and occupancy to an HDF5 file."""
        filepath = str(filepath)
        logger.info(f"Saving space to: {filepath}")

        names = [pool.species.encode('utf-8') for pool in self._registry]
        # the name field is as wide as the longest encoded name
        width = max(64, max(len(name) for name in names))
        pools = np.zeros(len(self._registry), dtype=pool_dtype(width))
        voxels = []
        for pool in self._registry:
            pools[pool.handle] = (pool.handle, names[pool.handle],
                                  pool.radius, pool.D, pool.location,
                                  pool.kind.encode('utf-8'), pool.placeholder)
            voxels.append(pairs_to_records(pool.handle, pool))
        voxels = np.concatenate(voxels) if voxels else np.zeros(0, dtype=VOXEL_DTYPE)

        with h5py.File(filepath, "w") as f:
            f.attrs["version"] = __version__
            f.attrs["voxel_radius"] = self.voxel_radius
            f.create_dataset("positions", data=self._positions)
            f.create_dataset("adjoining_pairs", data=self._pairs)
            f.create_dataset("pools", data=pools)
            f.create_dataset("voxels", data=voxels)

        logger.info(f"Space saved: {self.size} voxels, {len(pools)} pools")

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> "OffLatticeSpace":
        """Rebuild a space written by `save`."""
        filepath = str(filepath)
        logger.info(f"Loading space from: {filepath}")
        if not h5py.is_hdf5(filepath):
            raise InvalidArgument(f"File '{filepath}' is not a valid HDF5 file.")

        with h5py.File(filepath, "r") as f:
            voxel_radius = float(f.attrs["voxel_radius"])
            positions = f["positions"][()]
            pairs = f["adjoining_pairs"][()]
            pools = f["pools"][()]
            voxels = f["voxels"][()]

        space = cls(voxel_radius, positions, pairs)
        registry = space._registry

        for record in sorted(pools, key=lambda r: int(r['handle'])):
            kind = record['kind'].decode('utf-8')
            if kind == KIND_VACANT:
                continue
            pool = registry.create(record['species'].decode('utf-8'), VACANT,
                                   float(record['radius']), float(record['D']),
                                   kind=kind, placeholder=bool(record['placeholder']))
            if pool.handle != int(record['handle']):
                raise InvalidArgument(f"Pool table in '{filepath}' is not contiguous")
        for record in pools:
            registry[int(record['handle'])].location = int(record['location'])

        registry.clear_entries()
        for record in voxels:
            pool = registry[int(record['pool'])]
            pid = ParticleID(int(record['lot']), int(record['serial']))
            space._claim(pool, pid, int(record['coordinate']))
        space.check_consistency()

        logger.info(f"Space loaded: {space.size} voxels, {len(registry)} pools")
        return space

    def __repr__(self) -> str:
        return (f"OffLatticeSpace(n={self.size}, species={len(self._registry) - 1}, "
                f"molecules={self.num_voxels()})")


# ============================================================================
# Example usage
# ============================================================================

if __name__ == "__main__":
    print("Building a 10x10 square voxel grid...")

    n = 10
    positions = [(i, j, 0.0) for j in range(n) for i in range(n)]
    pairs = [(j * n + i, j * n + i + 1) for j in range(n) for i in range(n - 1)]
    pairs += [(j * n + i, (j + 1) * n + i) for j in range(n - 1) for i in range(n)]

    space = OffLatticeSpace(voxel_radius=0.5, positions=positions, adjoining_pairs=pairs)

    # membrane along the diagonal
    space.make_structure_type('membrane')
    for k in range(n):
        space.update_voxel(NULL_PID, Voxel('membrane', k * n + k))

    space.make_molecular_pool('A', radius=0.5, D=1.0)
    space.make_molecular_pool('M', radius=0.5, D=0.1, loc='membrane')
    space.update_voxel(ParticleID(0, 1), Voxel('A', 1))
    space.update_voxel(ParticleID(0, 2), Voxel('M', 0))

    print(f"\nInitialized: {space}")
    print(f"  Species: {space.list_species()}")
    print(f"  Membrane voxels: {sorted(space.list_coordinates('membrane'))}")

    print(f"\nMoving 'M' along the membrane...")
    print(f"  0 -> 11: {space.move(0, 11)}")
    print(f"  11 -> 12 (bulk): {space.move(11, 12)}")
    print(f"  'M' is at {space.get_coord(ParticleID(0, 2))}")

    space.check_consistency()
    print(f"\nAfter moves: {space}")
