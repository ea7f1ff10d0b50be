"""
Voxel pools: which coordinates each species currently claims.

Pools live in a PoolRegistry arena and refer to each other (and are
referred to by the space) through integer handles. Handle 0 is always
the vacant pool, which is its own location.

Every pool, the vacant pool included, lists exactly the coordinates it
claims. A pool's entries and the space's coordinate -> handle table form
one invariant and are only updated together by OffLatticeSpace.
"""

import logging
from typing import Dict, Iterator, List, Optional

from surface_mc.core.particle import CoordinateIdPair, NULL_PID, ParticleID
from surface_mc.exceptions import IllegalState, InvalidArgument, LogicError, NotFound

logger = logging.getLogger(__name__)

VACANT = 0
VACANT_SPECIES = ""

KIND_VACANT = 'vacant'
KIND_MOLECULAR = 'molecular'
KIND_STRUCTURE = 'structure'
POOL_KINDS = (KIND_VACANT, KIND_MOLECULAR, KIND_STRUCTURE)


class VoxelPool:
    """
    Coordinates held by one species, in insertion order.

    Entries are kept in a list for cheap indexed access (move candidates)
    plus a coordinate -> slot index; removal swaps the last entry into
    the freed slot.
    """

    def __init__(self, handle: int, species: str, location: int,
                 radius: float = 0.0, D: float = 0.0,
                 kind: str = KIND_MOLECULAR, placeholder: bool = False):
        if kind not in POOL_KINDS:
            raise InvalidArgument(f"Unknown pool kind '{kind}'. Available: {list(POOL_KINDS)}")
        self.handle = handle
        self.species = species
        self.location = location
        self.radius = radius
        self.D = D
        self.kind = kind
        self.placeholder = placeholder

        self._entries: List[CoordinateIdPair] = []
        self._slots: Dict[int, int] = {}

    @property
    def is_vacant(self) -> bool:
        return self.kind == KIND_VACANT

    @property
    def is_structure(self) -> bool:
        return self.kind == KIND_STRUCTURE

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CoordinateIdPair]:
        return iter(list(self._entries))

    def __contains__(self, coord: int) -> bool:
        return coord in self._slots

    def entry_at(self, index: int) -> CoordinateIdPair:
        return self._entries[index]

    def coordinates(self) -> List[int]:
        return [entry.coordinate for entry in self._entries]

    def find(self, pid: ParticleID) -> Optional[int]:
        """Coordinate of `pid` in this pool, or None. Linear scan."""
        if pid.is_null():
            return None
        for entry in self._entries:
            if entry.pid == pid:
                return entry.coordinate
        return None

    def get_particle_id(self, coord: int) -> ParticleID:
        slot = self._slots.get(coord)
        if slot is None:
            return NULL_PID
        return self._entries[slot].pid

    def add_voxel(self, info: CoordinateIdPair):
        if info.coordinate in self._slots:
            logger.error(f"Pool '{self.species}' already holds coordinate {info.coordinate}")
            raise LogicError(
                f"Coordinate {info.coordinate} is already registered in '{self.species}'")
        self._slots[info.coordinate] = len(self._entries)
        self._entries.append(info)

    def remove_voxel_if_exists(self, coord: int) -> bool:
        slot = self._slots.pop(coord, None)
        if slot is None:
            return False
        last = self._entries.pop()
        if slot < len(self._entries):
            self._entries[slot] = last
            self._slots[last.coordinate] = slot
        return True

    def replace_voxel(self, from_coord: int, to_coord: int,
                      candidate: Optional[int] = None) -> bool:
        """
        Move the entry at `from_coord` to `to_coord`, keeping its identity.

        `candidate` is a hint for the entry's slot; a wrong hint falls back
        to the coordinate index.
        """
        if (candidate is not None and 0 <= candidate < len(self._entries)
                and self._entries[candidate].coordinate == from_coord):
            slot = candidate
        else:
            slot = self._slots.get(from_coord)
            if slot is None:
                return False
        if to_coord in self._slots:
            logger.error(f"Pool '{self.species}' cannot move {from_coord} onto "
                         f"its own coordinate {to_coord}")
            raise LogicError(
                f"Coordinate {to_coord} is already registered in '{self.species}'")

        pid = self._entries[slot].pid
        self._entries[slot] = CoordinateIdPair(pid, to_coord)
        del self._slots[from_coord]
        self._slots[to_coord] = slot
        return True

    def clear(self):
        self._entries.clear()
        self._slots.clear()

    def __repr__(self) -> str:
        name = self.species if self.species else '<vacant>'
        return (f"VoxelPool({self.handle}, '{name}', kind={self.kind}, "
                f"location={self.location}, n={len(self)})")


class PoolRegistry:
    """Arena of pools keyed by species name."""

    def __init__(self):
        self._pools: List[VoxelPool] = []
        self._handles: Dict[str, int] = {}
        self.create(VACANT_SPECIES, VACANT, kind=KIND_VACANT)

    @property
    def vacant(self) -> VoxelPool:
        return self._pools[VACANT]

    def __len__(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[VoxelPool]:
        return iter(self._pools)

    def __getitem__(self, handle: int) -> VoxelPool:
        return self._pools[handle]

    def __contains__(self, species: str) -> bool:
        return species in self._handles

    def find(self, species: str) -> Optional[int]:
        return self._handles.get(species)

    def get(self, species: str) -> VoxelPool:
        handle = self._handles.get(species)
        if handle is None:
            raise NotFound(f"No pool for species '{species}'")
        return self._pools[handle]

    def location_of(self, handle: int) -> VoxelPool:
        return self._pools[self._pools[handle].location]

    def create(self, species: str, location: int, radius: float = 0.0,
               D: float = 0.0, kind: str = KIND_MOLECULAR,
               placeholder: bool = False) -> VoxelPool:
        if species in self._handles:
            logger.error(f"Pool for '{species}' created twice")
            raise LogicError(f"A pool for '{species}' already exists")
        handle = len(self._pools)
        if kind == KIND_VACANT:
            location = handle
        elif not 0 <= location < handle:
            raise IllegalState(f"Location handle {location} does not exist")

        pool = VoxelPool(handle, species, location, radius, D, kind, placeholder)
        self._pools.append(pool)
        self._handles[species] = handle
        logger.debug(f"Created {pool}")
        return pool

    def molecular_pools(self) -> Iterator[VoxelPool]:
        return (pool for pool in self._pools if pool.kind == KIND_MOLECULAR)

    def location_serial(self, handle: int) -> str:
        """Species name of a pool's location, "" when it is the vacant pool."""
        location = self.location_of(handle)
        return VACANT_SPECIES if location.is_vacant else location.species

    def clear_entries(self):
        for pool in self._pools:
            pool.clear()
