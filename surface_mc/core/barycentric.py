"""
Barycentric coordinates on a triangle and edge-crossing classification.

A Barycentric (u, v, w) weights the triangle's vertices 0, 1, 2. A point
lies on the triangle's plane when u + v + w == 1 and inside the triangle
when, in addition, every component is within [0, 1]. Displacements are
differences of two positions and therefore sum to zero.

Edge e runs from vertex e to vertex (e+1) % 3; the component that drops
to zero when a trajectory crosses it is the one of the opposite vertex,
index 2 for edge 0 and e - 1 otherwise.
"""

import logging
import math
import numpy as np
import numba
from typing import NamedTuple, Optional, Tuple, Union

from surface_mc.config import PLANE_TOLERANCE
from surface_mc.core.triangle import Triangle
from surface_mc.exceptions import InvalidArgument, LogicError

logger = logging.getLogger(__name__)


class Barycentric(NamedTuple):
    """Barycentric coordinate triple (value type)."""

    u: float
    v: float
    w: float

    def __add__(self, other: "Barycentric") -> "Barycentric":
        return Barycentric(self[0] + other[0], self[1] + other[1], self[2] + other[2])

    def __sub__(self, other: "Barycentric") -> "Barycentric":
        return Barycentric(self[0] - other[0], self[1] - other[1], self[2] - other[2])

    def __mul__(self, factor: float) -> "Barycentric":
        return Barycentric(self[0] * factor, self[1] * factor, self[2] * factor)

    __rmul__ = __mul__

    def __neg__(self) -> "Barycentric":
        return Barycentric(-self[0], -self[1], -self[2])

    def to_array(self) -> np.ndarray:
        return np.array(self, dtype=np.float64)

    def __repr__(self) -> str:
        return f"Barycentric({self[0]!r}, {self[1]!r}, {self[2]!r})"


def on_plane(bary: Barycentric, tolerance: float = PLANE_TOLERANCE) -> bool:
    """True if the components sum to one within `tolerance`."""
    return abs(bary[0] + bary[1] + bary[2] - 1.0) < tolerance


def is_inside(bary: Barycentric, tolerance: Optional[float] = None) -> bool:
    """
    True if `bary` is on-plane and each component lies in [0, 1].

    With a tolerance the accepted range widens to [-tolerance, 1 + tolerance].
    """
    if not on_plane(bary):
        return False
    if tolerance is None:
        return all(0.0 <= x <= 1.0 for x in bary)
    return all(-tolerance <= x <= 1.0 + tolerance for x in bary)


def opposite_component(edge: int) -> int:
    """Index of the barycentric component opposite to `edge`."""
    return 2 if edge == 0 else edge - 1


def cross_section(pos: Barycentric, disp: Barycentric, edge: int) -> float:
    """
    Fraction of `disp` at which the trajectory from `pos` meets `edge`'s line.

    A displacement parallel to the edge never meets it and gives inf.
    """
    idx = opposite_component(edge)
    if disp[idx] == 0.0:
        return math.inf
    return -pos[idx] / disp[idx]


# ============================================================================
# Edge crossing
# ============================================================================

# Key: which components of pos + disp are strictly positive.
# One edge: the trajectory leaves through that edge.
# Two edges: (preferred, other); `other` wins only if its fraction is
# strictly smaller.
_CROSSING_RULES = {
    (True, True, False): (0,),
    (True, False, True): (2,),
    (False, True, True): (1,),
    (True, False, False): (0, 2),
    (False, True, False): (1, 0),
    (False, False, True): (2, 1),
}


def first_cross_edge(pos: Barycentric, disp: Barycentric) -> Tuple[int, float]:
    """
    Find the edge a displacement leaves the triangle through.

    Parameters:
        pos: Starting position (inside the triangle)
        disp: Displacement (components sum to zero)

    Returns:
        (edge index, fraction of `disp` travelled when the edge is reached)

    Raises:
        InvalidArgument: pos + disp is still strictly inside the triangle
        LogicError: no component of pos + disp is positive
    """
    new_pos = pos + disp
    pattern = tuple(x > 0.0 for x in new_pos)

    if all(pattern):
        raise InvalidArgument(
            f"first_cross_edge: {new_pos} does not leave the triangle")

    rule = _CROSSING_RULES.get(pattern)
    if rule is None:
        logger.error(f"first_cross_edge: pos={pos}, disp={disp} gives no "
                     f"positive component in {new_pos}")
        raise LogicError("first_cross_edge: never reach here")

    if len(rule) == 1:
        edge = rule[0]
        if disp[opposite_component(edge)] == 0.0:
            # pos already lies on the edge and slides along it
            return edge, 0.0
        return edge, cross_section(pos, disp, edge)

    preferred, other = rule
    t_preferred = cross_section(pos, disp, preferred)
    t_other = cross_section(pos, disp, other)
    if t_preferred > t_other:
        return other, t_other
    return preferred, t_preferred


def force_put_inside(bary: Barycentric) -> Barycentric:
    """
    Clamp a slightly-outside on-plane point back into the triangle.

    Out-of-range components are clamped to 0 or 1 and the first
    unclamped component absorbs the remainder.

    Raises:
        InvalidArgument: `bary` is off-plane, or every component needed clamping
    """
    if not on_plane(bary):
        raise InvalidArgument(f"force_put_inside: {bary} is outside of the plane")
    if is_inside(bary):
        return bary

    values = list(bary)
    clamped = [False, False, False]
    for i in range(3):
        if values[i] < 0.0:
            clamped[i] = True
            values[i] = 0.0
        elif values[i] > 1.0:
            clamped[i] = True
            values[i] = 1.0

    if all(clamped):
        raise InvalidArgument(f"force_put_inside: {bary} is too far")

    free = clamped.index(False)
    values[free] = 1.0 - sum(values[j] for j in range(3) if j != free)
    return Barycentric(*values)


# ============================================================================
# Cartesian <-> barycentric
# ============================================================================

@numba.njit(cache=True)
def triangle_area_2d(x1: float, y1: float, x2: float, y2: float,
                     x3: float, y3: float) -> float:
    """Twice the signed area of a 2D triangle."""
    return (x1 - x2) * (y2 - y3) - (x2 - x3) * (y1 - y2)


@numba.njit(cache=True)
def _to_barycentric_kernel(pos: np.ndarray, a: np.ndarray, b: np.ndarray,
                           c: np.ndarray) -> Tuple[float, float, float]:
    """
    Barycentric coordinates of `pos` projected onto triangle abc.

    Works in the coordinate plane orthogonal to the dominant axis of the
    normal so the denominator is as large as possible.
    """
    # normal = (b - a) x (c - a)
    abx = b[0] - a[0]
    aby = b[1] - a[1]
    abz = b[2] - a[2]
    acx = c[0] - a[0]
    acy = c[1] - a[1]
    acz = c[2] - a[2]
    mx = aby * acz - abz * acy
    my = abz * acx - abx * acz
    mz = abx * acy - aby * acx

    x = abs(mx)
    y = abs(my)
    z = abs(mz)

    if x >= y and x >= z:
        # project to yz
        nu = triangle_area_2d(pos[1], pos[2], b[1], b[2], c[1], c[2])
        nv = triangle_area_2d(pos[1], pos[2], c[1], c[2], a[1], a[2])
        ood = 1.0 / mx
    elif y >= x and y >= z:
        # project to xz
        nu = triangle_area_2d(pos[0], pos[2], b[0], b[2], c[0], c[2])
        nv = triangle_area_2d(pos[0], pos[2], c[0], c[2], a[0], a[2])
        ood = 1.0 / -my
    else:
        # project to xy
        nu = triangle_area_2d(pos[0], pos[1], b[0], b[1], c[0], c[1])
        nv = triangle_area_2d(pos[0], pos[1], c[0], c[1], a[0], a[1])
        ood = 1.0 / mz

    u = nu * ood
    v = nv * ood
    return u, v, 1.0 - u - v


def to_barycentric(point: Union[np.ndarray, Tuple[float, float, float]],
                   triangle: Triangle) -> Barycentric:
    """
    Convert an absolute position into barycentric coordinates of `triangle`.

    Points off the triangle's plane are projected along the dominant
    normal axis first.
    """
    pos = np.ascontiguousarray(point, dtype=np.float64)
    vertices = triangle.vertices
    u, v, w = _to_barycentric_kernel(pos, vertices[0], vertices[1], vertices[2])
    return Barycentric(float(u), float(v), float(w))


def to_absolute(bary: Barycentric, triangle: Triangle) -> np.ndarray:
    """Absolute position of `bary` on `triangle`."""
    vertices = triangle.vertices
    return (vertices[0] * bary[0]
            + vertices[1] * bary[1]
            + vertices[2] * bary[2])
