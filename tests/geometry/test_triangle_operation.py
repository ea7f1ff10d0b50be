import numpy as np
import pytest

from surface_mc.core.triangle import Triangle
from surface_mc.exceptions import InvalidArgument
from surface_mc.geometry.triangle_operation import (
    closest_point, closest_region, distance, is_pierce, match_edge, project_to_plane)

SQRT2 = np.sqrt(2.0)


def test_distance_zero_on_triangle(unit_triangle):
    # vertices, edge interiors and face interior
    for point in [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0),
                  (0.5, 0.0, 0.0), (0.0, 0.5, 0.0), (0.5, 0.5, 0.0),
                  (0.2, 0.2, 0.0)]:
        assert distance(point, unit_triangle) == pytest.approx(0.0, abs=1e-12)


@pytest.mark.parametrize("point, expected, region", [
    ((-1.0, -1.0, 0.0), SQRT2, 'vertex_a'),
    ((2.0, -1.0, 0.0), SQRT2, 'vertex_b'),
    ((-1.0, 2.0, 0.0), SQRT2, 'vertex_c'),
    ((0.5, -1.0, 0.0), 1.0, 'edge_ab'),
    ((-1.0, 0.5, 0.0), 1.0, 'edge_ac'),
    ((1.0, 1.0, 0.0), np.sqrt(0.5), 'edge_bc'),
    ((0.2, 0.2, 3.0), 3.0, 'face'),
    ((0.2, 0.2, -2.0), 2.0, 'face'),
])
def test_distance_by_region(unit_triangle, point, expected, region):
    assert distance(point, unit_triangle) == pytest.approx(expected)
    assert closest_region(point, unit_triangle) == region


def test_distance_on_region_boundary(unit_triangle):
    # equidistant from vertex A and edge AB, either answer gives 1
    assert distance((0.0, -1.0, 0.0), unit_triangle) == pytest.approx(1.0)
    assert distance((-1.0, 0.0, 1.0), unit_triangle) == pytest.approx(SQRT2)


def test_closest_point(unit_triangle):
    assert np.allclose(closest_point((0.2, 0.2, 3.0), unit_triangle), [0.2, 0.2, 0.0])
    assert np.allclose(closest_point((1.0, 1.0, 1.0), unit_triangle), [0.5, 0.5, 0.0])
    assert np.allclose(closest_point((-3.0, -3.0, 0.0), unit_triangle), [0.0, 0.0, 0.0])


def test_distance_tilted_triangle():
    tri = Triangle((0.0, 0.0, 0.0), (1.0, 0.0, 1.0), (0.0, 1.0, 0.0))
    normal = tri.normal
    assert np.allclose(normal, [-1.0, 0.0, 1.0] / SQRT2)

    point = tri.centroid + 0.7 * normal
    assert distance(point, tri) == pytest.approx(0.7)


def test_distance_rejects_bad_points(unit_triangle):
    with pytest.raises(InvalidArgument):
        distance((1.0, 2.0), unit_triangle)


def test_is_pierce_hits(unit_triangle):
    hit, point = is_pierce((0.2, 0.2, 1.0), (0.2, 0.2, -1.0), unit_triangle)
    assert hit
    assert np.allclose(point, [0.2, 0.2, 0.0])

    hit, point = is_pierce((0.0, 0.0, 1.0), (1.0, 1.0, -1.0), unit_triangle)
    assert hit
    assert np.allclose(point, [0.5, 0.5, 0.0])


def test_is_pierce_misses(unit_triangle):
    # from behind the normal
    assert is_pierce((0.2, 0.2, -1.0), (0.2, 0.2, 1.0), unit_triangle) == (False, None)
    # beside the triangle
    assert is_pierce((2.0, 2.0, 1.0), (2.0, 2.0, -1.0), unit_triangle) == (False, None)
    # stops short of the plane
    assert is_pierce((0.2, 0.2, 2.0), (0.2, 0.2, 1.0), unit_triangle) == (False, None)
    # parallel to the plane
    assert is_pierce((0.2, 0.2, 1.0), (0.5, 0.2, 1.0), unit_triangle) == (False, None)
    # lies in the plane
    assert is_pierce((0.1, 0.1, 0.0), (0.3, 0.3, 0.0), unit_triangle) == (False, None)


def test_is_pierce_segment_ending_on_plane(unit_triangle):
    hit, point = is_pierce((0.3, 0.3, 1.0), (0.3, 0.3, 0.0), unit_triangle)
    assert hit
    assert np.allclose(point, [0.3, 0.3, 0.0])


def test_project_to_plane(unit_triangle):
    assert np.allclose(project_to_plane((0.3, 0.4, 2.0), unit_triangle), [0.3, 0.4, 0.0])
    assert np.allclose(project_to_plane((5.0, -1.0, -3.0), unit_triangle), [5.0, -1.0, 0.0])


def test_match_edge(unit_triangle):
    assert match_edge((1.0, 0.0, 0.0), unit_triangle) == 0
    assert match_edge((-1.0, 1.0, 0.0), unit_triangle) == 1
    assert match_edge((0.0, -1.0, 0.0), unit_triangle) == 2
    with pytest.raises(InvalidArgument):
        match_edge((5.0, 5.0, 5.0), unit_triangle)
