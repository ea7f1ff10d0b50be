"""
Particle identities and the value types exchanged with an off-lattice space.

Structured dtypes mirror the records written to HDF5 snapshots.
"""

import numpy as np
from dataclasses import dataclass
from typing import NamedTuple, Tuple, Union


# Occupant record of a pool (one per claimed coordinate)
VOXEL_DTYPE = np.dtype([
    ('pool', np.int64),               # pool handle
    ('lot', np.int64),                # ParticleID.lot
    ('serial', np.int64),             # ParticleID.serial
    ('coordinate', np.int64),         # voxel index
])


def pool_dtype(species_width: int = 64) -> np.dtype:
    """Pool metadata record with room for `species_width` bytes of UTF-8 name."""
    return np.dtype([
        ('handle', np.int64),
        ('species', np.dtype(f'S{species_width}')),
        ('radius', np.float64),           # [m]
        ('D', np.float64),                # diffusion coefficient [m²/s]
        ('location', np.int64),           # handle of the substrate pool
        ('kind', np.dtype('S16')),        # 'vacant', 'molecular' or 'structure'
        ('placeholder', np.bool_),
    ])


POOL_DTYPE = pool_dtype()


class ParticleID(NamedTuple):
    """Particle identity. ParticleID() is the null identity."""

    lot: int = 0
    serial: int = 0

    def is_null(self) -> bool:
        return self.lot == 0 and self.serial == 0


NULL_PID = ParticleID()


class ParticleIDGenerator:
    """Hands out fresh ParticleIDs with increasing serials."""

    def __init__(self, lot: int = 0, serial: int = 0):
        self.lot = lot
        self.serial = serial

    def __call__(self) -> ParticleID:
        self.serial += 1
        return ParticleID(self.lot, self.serial)


class CoordinateIdPair(NamedTuple):
    """Entry of a pool: which particle sits on which coordinate."""

    pid: ParticleID
    coordinate: int


@dataclass(frozen=True)
class Voxel:
    """
    A species placed on one coordinate.

    Parameters:
        species: Species name
        coordinate: Voxel index in the space
        radius: Particle radius [m]
        D: Diffusion coefficient [m²/s]
        loc: Name of the substrate species, "" for vacant/bulk
    """

    species: str
    coordinate: int
    radius: float = 0.0
    D: float = 0.0
    loc: str = ""


class Particle:
    """Single particle in absolute coordinates."""

    def __init__(self, species: str,
                 position: Union[np.ndarray, Tuple[float, float, float]],
                 radius: float, D: float):
        """
        Initialize a single particle.

        Parameters:
            species: Species name
            position: (x, y, z) position [m]
            radius: Particle radius [m]
            D: Diffusion coefficient [m²/s]
        """
        self.species = species
        self.position = np.array(position, dtype=np.float64)
        self.radius = radius
        self.D = D

    def __eq__(self, other) -> bool:
        if not isinstance(other, Particle):
            return NotImplemented
        return (self.species == other.species
                and np.array_equal(self.position, other.position)
                and self.radius == other.radius
                and self.D == other.D)

    def __repr__(self) -> str:
        x, y, z = self.position
        return (f"Particle('{self.species}', pos=({x:.3g}, {y:.3g}, {z:.3g}), "
                f"r={self.radius:.3g}, D={self.D:.3g})")


def pairs_to_records(pool: int, pairs) -> np.ndarray:
    """Convert an iterable of CoordinateIdPair into a VOXEL_DTYPE array."""
    pairs = list(pairs)
    records = np.zeros(len(pairs), dtype=VOXEL_DTYPE)
    for i, (pid, coord) in enumerate(pairs):
        records['pool'][i] = pool
        records['lot'][i] = pid.lot
        records['serial'][i] = pid.serial
        records['coordinate'][i] = coord
    return records
