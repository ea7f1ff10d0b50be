import numpy as np
import pytest

from surface_mc.core.particle import (
    NULL_PID, Particle, ParticleID, ParticleIDGenerator, Voxel, pairs_to_records,
    CoordinateIdPair)
from surface_mc.core.triangle import Triangle
from surface_mc.exceptions import InvalidArgument


def test_right_triangle():
    tri = Triangle((0.0, 0.0, 0.0), (3.0, 0.0, 0.0), (0.0, 4.0, 0.0))

    assert np.allclose(tri.edges, [[3, 0, 0], [-3, 4, 0], [0, -4, 0]])
    assert np.allclose(tri.lengths_of_edges, [3.0, 5.0, 4.0])
    assert tri.length_of_edge_at(1) == pytest.approx(5.0)
    assert np.allclose(tri.normal, [0.0, 0.0, 1.0])
    assert tri.area == pytest.approx(6.0)
    assert np.allclose(tri.centroid, [1.0, 4.0 / 3.0, 0.0])
    assert np.allclose(tri.incenter, [1.0, 1.0, 0.0])


def test_normal_follows_vertex_order():
    tri = Triangle((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (1.0, 0.0, 0.0))
    assert np.allclose(tri.normal, [0.0, 0.0, -1.0])


def test_vertex_and_edge_access(unit_triangle):
    assert np.all(unit_triangle.vertex_at(2) == [0.0, 1.0, 0.0])
    assert np.all(unit_triangle.edge_at(2) == [0.0, -1.0, 0.0])
    assert np.allclose(unit_triangle.edges.sum(axis=0), 0.0)


def test_from_array(unit_triangle):
    tri = Triangle.from_array(unit_triangle.vertices)
    assert np.all(tri.vertices == unit_triangle.vertices)

    with pytest.raises(InvalidArgument):
        Triangle.from_array(np.zeros((4, 3)))


def test_invalid_triangles():
    with pytest.raises(InvalidArgument):
        Triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    with pytest.raises(InvalidArgument):
        Triangle((0.0, 0.0), (1.0, 0.0), (0.0, 1.0))
    with pytest.raises(ValueError):
        Triangle((1.0, 1.0, 1.0), (1.0, 1.0, 1.0), (0.0, 1.0, 0.0))


def test_triangle_is_read_only(unit_triangle):
    assert not unit_triangle.vertices.flags.writeable
    with pytest.raises(ValueError):
        unit_triangle.vertices[0, 0] = 5.0
    with pytest.raises(ValueError):
        unit_triangle.normal[2] = 0.0


def test_particle_id():
    assert NULL_PID.is_null()
    assert ParticleID() == NULL_PID
    assert not ParticleID(0, 1).is_null()
    assert ParticleID(1, 2) == ParticleID(1, 2)
    assert ParticleID(1, 2) != ParticleID(2, 1)

    gen = ParticleIDGenerator(lot=3)
    assert gen() == ParticleID(3, 1)
    assert gen() == ParticleID(3, 2)


def test_voxel_and_particle():
    voxel = Voxel('A', 4, 0.5, 1.0)
    assert voxel.loc == ""
    assert voxel == Voxel('A', 4, 0.5, 1.0, "")
    with pytest.raises(AttributeError):
        voxel.coordinate = 5

    p = Particle('A', (1.0, 2.0, 3.0), 0.5, 1.0)
    assert p == Particle('A', np.array([1.0, 2.0, 3.0]), 0.5, 1.0)
    assert p != Particle('B', (1.0, 2.0, 3.0), 0.5, 1.0)


def test_pairs_to_records():
    records = pairs_to_records(2, [CoordinateIdPair(ParticleID(0, 1), 7),
                                   CoordinateIdPair(NULL_PID, 3)])
    assert len(records) == 2
    assert np.all(records['pool'] == 2)
    assert list(records['coordinate']) == [7, 3]
    assert list(records['serial']) == [1, 0]

    assert len(pairs_to_records(0, [])) == 0
