import numpy as np
import pytest

from surface_mc.core.triangle import Triangle
from surface_mc.space.offlattice import OffLatticeSpace


@pytest.fixture
def unit_triangle():
    return Triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))


@pytest.fixture
def square_space():
    """Four voxels on the corners of a unit square, connected in a cycle."""
    positions = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
    pairs = [(0, 1), (1, 2), (2, 3), (3, 0)]
    return OffLatticeSpace(voxel_radius=0.5, positions=positions, adjoining_pairs=pairs)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
