"""
Triangle face of a surface mesh.

Vertices are ordered; edge i runs from vertex i to vertex (i+1) % 3, so
edge i is opposite vertex (i+2) % 3.
"""

import numpy as np
from typing import Sequence, Union

from surface_mc.exceptions import InvalidArgument

ArrayLike3 = Union[np.ndarray, Sequence[float]]


class Triangle:
    """Immutable triangle in 3D space."""

    def __init__(self, a: ArrayLike3, b: ArrayLike3, c: ArrayLike3):
        """
        Initialize a triangle.

        Parameters:
            a, b, c: Vertex positions, counterclockwise seen from the normal side
        """
        vertices = np.array([a, b, c], dtype=np.float64)
        if vertices.shape != (3, 3):
            raise InvalidArgument(
                f"Triangle needs three 3D vertices, got shape {vertices.shape}")

        edges = np.roll(vertices, -1, axis=0) - vertices
        normal = np.cross(edges[0], vertices[2] - vertices[0])
        norm = np.linalg.norm(normal)
        if not norm > 0.0:
            raise InvalidArgument("Degenerate triangle (zero area)")

        self._vertices = vertices
        self._edges = edges
        self._normal = normal / norm
        self._lengths = np.linalg.norm(edges, axis=1)
        self._area = 0.5 * norm

        for array in (self._vertices, self._edges, self._normal, self._lengths):
            array.setflags(write=False)

    @classmethod
    def from_array(cls, vertices: np.ndarray) -> "Triangle":
        vertices = np.asarray(vertices, dtype=np.float64)
        if vertices.shape != (3, 3):
            raise InvalidArgument(
                f"Triangle needs a (3, 3) vertex array, got shape {vertices.shape}")
        return cls(vertices[0], vertices[1], vertices[2])

    @property
    def vertices(self) -> np.ndarray:
        """(3, 3) read-only vertex array."""
        return self._vertices

    @property
    def edges(self) -> np.ndarray:
        """(3, 3) read-only edge vectors."""
        return self._edges

    @property
    def normal(self) -> np.ndarray:
        """Unit normal."""
        return self._normal

    @property
    def lengths_of_edges(self) -> np.ndarray:
        return self._lengths

    @property
    def area(self) -> float:
        return float(self._area)

    def vertex_at(self, i: int) -> np.ndarray:
        return self._vertices[i]

    def edge_at(self, i: int) -> np.ndarray:
        return self._edges[i]

    def length_of_edge_at(self, i: int) -> float:
        return float(self._lengths[i])

    @property
    def centroid(self) -> np.ndarray:
        return self._vertices.sum(axis=0) / 3.0

    @property
    def incenter(self) -> np.ndarray:
        """Center of the inscribed circle (vertices weighted by opposite edge)."""
        # vertex i is opposite edge (i+1) % 3
        weights = np.roll(self._lengths, -1)
        return weights @ self._vertices / weights.sum()

    def __repr__(self) -> str:
        a, b, c = (tuple(float(x) for x in v) for v in self._vertices)
        return f"Triangle({a}, {b}, {c})"
