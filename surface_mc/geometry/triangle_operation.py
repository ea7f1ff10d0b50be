"""
Point and segment queries against a single triangle.

Closest point and segment intersection follow Ericson,
Real-Time Collision Detection (2005), pp. 141-142 and 190-194.

References:
    - C. Ericson, Real-Time Collision Detection, Morgan Kaufmann (2005)
    - T. Möller, B. Trumbore, J. Graphics Tools 2, 21 (1997)
"""

import numpy as np
import numba
from typing import Optional, Tuple, Union

from surface_mc.core.triangle import Triangle
from surface_mc.exceptions import InvalidArgument

Point = Union[np.ndarray, Tuple[float, float, float]]

# Region codes returned by the closest-point kernel
REGION_VERTEX_A = 0
REGION_VERTEX_B = 1
REGION_EDGE_AB = 2
REGION_VERTEX_C = 3
REGION_EDGE_AC = 4
REGION_EDGE_BC = 5
REGION_FACE = 6

REGION_NAMES = {
    REGION_VERTEX_A: 'vertex_a',
    REGION_VERTEX_B: 'vertex_b',
    REGION_EDGE_AB: 'edge_ab',
    REGION_VERTEX_C: 'vertex_c',
    REGION_EDGE_AC: 'edge_ac',
    REGION_EDGE_BC: 'edge_bc',
    REGION_FACE: 'face',
}


@numba.njit(cache=True)
def _dot(x: np.ndarray, y: np.ndarray) -> float:
    return x[0] * y[0] + x[1] * y[1] + x[2] * y[2]


@numba.njit(cache=True)
def _cross(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    out = np.empty(3)
    out[0] = x[1] * y[2] - x[2] * y[1]
    out[1] = x[2] * y[0] - x[0] * y[2]
    out[2] = x[0] * y[1] - x[1] * y[0]
    return out


@numba.njit(cache=True)
def closest_point_kernel(p: np.ndarray, a: np.ndarray, b: np.ndarray,
                         c: np.ndarray) -> Tuple[np.ndarray, int]:
    """
    Closest point on triangle abc to p.

    Regions are tested in the order vertex A, vertex B, edge AB,
    vertex C, edge AC, edge BC, face; the inequalities partition space.

    Returns:
        (closest point, region code)
    """
    ab = b - a
    ac = c - a

    # vertex region outside A
    ap = p - a
    d1 = _dot(ab, ap)
    d2 = _dot(ac, ap)
    if d1 <= 0.0 and d2 <= 0.0:
        return a.copy(), REGION_VERTEX_A

    # vertex region outside B
    bp = p - b
    d3 = _dot(ab, bp)
    d4 = _dot(ac, bp)
    if d3 >= 0.0 and d4 <= d3:
        return b.copy(), REGION_VERTEX_B

    # edge region of AB
    vc = d1 * d4 - d3 * d2
    if vc <= 0.0 and d1 >= 0.0 and d3 <= 0.0:
        v = d1 / (d1 - d3)
        return a + ab * v, REGION_EDGE_AB

    # vertex region outside C
    cp = p - c
    d5 = _dot(ab, cp)
    d6 = _dot(ac, cp)
    if d6 >= 0.0 and d5 <= d6:
        return c.copy(), REGION_VERTEX_C

    # edge region of AC
    vb = d5 * d2 - d1 * d6
    if vb <= 0.0 and d2 >= 0.0 and d6 <= 0.0:
        w = d2 / (d2 - d6)
        return a + ac * w, REGION_EDGE_AC

    # edge region of BC
    va = d3 * d6 - d5 * d4
    if va <= 0.0 and (d4 - d3) >= 0.0 and (d5 - d6) >= 0.0:
        w = (d4 - d3) / ((d4 - d3) + (d5 - d6))
        return b + (c - b) * w, REGION_EDGE_BC

    # face region, u = va * denom = 1 - v - w
    denom = 1.0 / (va + vb + vc)
    v = vb * denom
    w = vc * denom
    return a + ab * v + ac * w, REGION_FACE


@numba.njit(cache=True)
def pierce_kernel(begin: np.ndarray, end: np.ndarray, a: np.ndarray,
                  b: np.ndarray, c: np.ndarray) -> Tuple[bool, np.ndarray]:
    """
    One-sided segment/triangle intersection.

    Only segments entering from the side the normal (b-a)x(c-a) points
    to are reported; segments from behind or parallel to the plane miss.
    """
    line = begin - end
    ab = b - a
    ac = c - a
    normal = _cross(ab, ac)

    d = _dot(line, normal)
    if d <= 0.0:
        return False, np.zeros(3)

    ap = begin - a
    t = _dot(ap, normal)
    if t < 0.0 or d < t:
        return False, np.zeros(3)

    e = _cross(line, ap)
    v = _dot(ac, e)
    if v < 0.0 or d < v:
        return False, np.zeros(3)
    w = -_dot(ab, e)
    if w < 0.0 or d < v + w:
        return False, np.zeros(3)

    ood = 1.0 / d
    v *= ood
    w *= ood
    u = 1.0 - v - w
    return True, a * u + b * v + c * w


def _as_point(point: Point) -> np.ndarray:
    p = np.ascontiguousarray(point, dtype=np.float64)
    if p.shape != (3,):
        raise InvalidArgument(f"Expected a 3D point, got shape {p.shape}")
    return p


def closest_point(point: Point, triangle: Triangle) -> np.ndarray:
    """Point on `triangle` closest to `point`."""
    v = triangle.vertices
    q, _ = closest_point_kernel(_as_point(point), v[0], v[1], v[2])
    return q


def closest_region(point: Point, triangle: Triangle) -> str:
    """Name of the Voronoi region of `triangle` that contains `point`."""
    v = triangle.vertices
    _, region = closest_point_kernel(_as_point(point), v[0], v[1], v[2])
    return REGION_NAMES[region]


def distance(point: Point, triangle: Triangle) -> float:
    """Euclidean distance from `point` to the nearest point of `triangle`."""
    p = _as_point(point)
    v = triangle.vertices
    q, _ = closest_point_kernel(p, v[0], v[1], v[2])
    return float(np.linalg.norm(q - p))


def is_pierce(begin: Point, end: Point,
              triangle: Triangle) -> Tuple[bool, Optional[np.ndarray]]:
    """
    Test whether the segment begin -> end crosses `triangle`.

    The test is one-sided: the segment must travel against the triangle's
    normal (start on the front side, end on or behind the plane).

    Returns:
        (True, intersection point) or (False, None)
    """
    v = triangle.vertices
    hit, point = pierce_kernel(_as_point(begin), _as_point(end), v[0], v[1], v[2])
    if not hit:
        return False, None
    return True, point


def project_to_plane(point: Point, triangle: Triangle) -> np.ndarray:
    """Orthogonal projection of `point` onto the plane of `triangle`."""
    p = _as_point(point)
    normal = triangle.normal
    dist = float(np.dot(normal, p - triangle.vertex_at(0)))
    return p - normal * dist


def match_edge(vector: Point, triangle: Triangle, tolerance: float = 1e-10) -> int:
    """
    Index of the edge of `triangle` equal to `vector`.

    Raises:
        InvalidArgument: no edge matches within `tolerance`
    """
    vec = _as_point(vector)
    for i in range(3):
        if np.allclose(vec, triangle.edge_at(i), rtol=0.0, atol=tolerance):
            return i
    raise InvalidArgument(f"{vec} does not match any edge of {triangle}")
