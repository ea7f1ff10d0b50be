"""
Random Walk on a Tetrahedron Surface

A single particle diffuses on the surface of a regular tetrahedron.
Each Brownian step is expressed in barycentric coordinates of the
current face; when it leaves the face, first_cross_edge gives the exit
edge and fraction, and the rest of the step continues on the
neighboring face. Every face centroid is a voxel of an off-lattice
space, and the walker's voxel is updated after each step.

This example exercises:
    - Cartesian <-> barycentric conversion
    - Edge crossing and hand-off between faces
    - OffLatticeSpace.update_voxel / position2coordinate
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path
from tqdm import tqdm
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from surface_mc.core.barycentric import (
    Barycentric, first_cross_edge, force_put_inside, is_inside,
    to_absolute, to_barycentric)
from surface_mc.core.particle import ParticleID, Voxel
from surface_mc.core.triangle import Triangle
from surface_mc.geometry.triangle_operation import distance, project_to_plane
from surface_mc.space.offlattice import OffLatticeSpace

VERTICES = np.array([
    (1.0, 1.0, 1.0),
    (1.0, -1.0, -1.0),
    (-1.0, 1.0, -1.0),
    (-1.0, -1.0, 1.0),
])
FACES = [(0, 1, 2), (0, 3, 1), (0, 2, 3), (1, 3, 2)]

MAX_CROSSINGS_PER_STEP = 16


def build_mesh():
    """
    Triangles of the tetrahedron and, for every face, the face across
    each of its edges.
    """
    triangles = [Triangle(*VERTICES[list(face)]) for face in FACES]

    neighbors = []
    for f, face in enumerate(FACES):
        across = []
        for e in range(3):
            edge = {face[e], face[(e + 1) % 3]}
            other = [g for g, gface in enumerate(FACES) if g != f and edge <= set(gface)]
            across.append(other[0])
        neighbors.append(across)
    return triangles, neighbors


def tangent_displacement(triangle: Triangle, sigma: float,
                         rng: np.random.Generator) -> np.ndarray:
    """Gaussian displacement in the plane of `triangle`."""
    t1 = triangle.edge_at(0) / triangle.length_of_edge_at(0)
    t2 = np.cross(triangle.normal, t1)
    dx, dy = rng.normal(0.0, sigma, size=2)
    return dx * t1 + dy * t2


def _inward(triangle: Triangle, point: np.ndarray, edge_dir: np.ndarray) -> np.ndarray:
    """Unit vector in the plane of `triangle`, normal to the edge, pointing inside."""
    v = triangle.centroid - point
    v = v - np.dot(v, edge_dir) * edge_dir
    return v / np.linalg.norm(v)


def unfold(remainder: np.ndarray, point: np.ndarray, edge_dir: np.ndarray,
           source: Triangle, target: Triangle) -> np.ndarray:
    """Rotate the rest of a step around the crossed edge onto `target`."""
    along = np.dot(remainder, edge_dir)
    across = -np.dot(remainder, _inward(source, point, edge_dir))
    return along * edge_dir + across * _inward(target, point, edge_dir)


def propagate(face: int, pos: Barycentric, disp_abs: np.ndarray,
              triangles, neighbors):
    """
    Move `pos` on `face` by `disp_abs`, crossing edges as needed.

    Returns:
        (final face, final barycentric position, number of edge crossings)
    """
    crossings = 0
    while True:
        triangle = triangles[face]
        start = to_absolute(pos, triangle)
        disp = to_barycentric(start + disp_abs, triangle) - pos

        new_pos = pos + disp
        if is_inside(new_pos):
            return face, new_pos, crossings
        if crossings >= MAX_CROSSINGS_PER_STEP:
            return face, pos, crossings

        edge, t = first_cross_edge(pos, disp)
        crossing_point = to_absolute(pos + disp * t, triangle)
        edge_dir = triangle.edge_at(edge) / triangle.length_of_edge_at(edge)

        face = neighbors[face][edge]
        remainder = unfold(disp_abs * (1.0 - t), crossing_point, edge_dir,
                           triangle, triangles[face])
        triangle = triangles[face]
        pos = force_put_inside(to_barycentric(crossing_point, triangle))
        target = project_to_plane(crossing_point + remainder, triangle)
        disp_abs = target - to_absolute(pos, triangle)
        crossings += 1


def simulate_walk(n_steps: int = 5000, sigma: float = 0.15, seed: int = 42):
    """
    Simulate a random walk on the tetrahedron surface.

    Parameters:
        n_steps: Number of Brownian steps
        sigma: Standard deviation of each displacement component
        seed: Random seed

    Returns:
        trajectory (n_steps+1, 3), visited voxel per step, total crossings
    """
    rng = np.random.default_rng(seed)
    triangles, neighbors = build_mesh()

    centroids = np.array([t.centroid for t in triangles])
    pairs = [(f, g) for f in range(len(FACES)) for g in set(neighbors[f]) if f < g]
    space = OffLatticeSpace(voxel_radius=0.5, positions=centroids, adjoining_pairs=pairs)
    space.make_molecular_pool('A', radius=0.05, D=sigma ** 2 / 2.0)

    pid = ParticleID(0, 1)
    face = 0
    pos = Barycentric(1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0)
    space.update_voxel(pid, Voxel('A', face))

    trajectory = [to_absolute(pos, triangles[face])]
    voxels = [face]
    total_crossings = 0

    for _ in tqdm(range(n_steps), desc="Walking"):
        disp_abs = tangent_displacement(triangles[face], sigma, rng)
        face, pos, crossings = propagate(face, pos, disp_abs, triangles, neighbors)
        total_crossings += crossings

        point = to_absolute(pos, triangles[face])
        assert distance(point, triangles[face]) < 1e-8

        coord = space.position2coordinate(point)
        if coord != space.get_coord(pid):
            space.update_voxel(pid, Voxel('A', coord))

        trajectory.append(point)
        voxels.append(space.get_coord(pid))

    space.check_consistency()
    return np.array(trajectory), np.array(voxels), total_crossings


def plot_walk(trajectory, save_path=None):
    """Plot the trajectory together with the tetrahedron edges."""
    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(projection='3d')

    for face in FACES:
        loop = VERTICES[list(face) + [face[0]]]
        ax.plot(loop[:, 0], loop[:, 1], loop[:, 2], 'k-', linewidth=1.0)

    ax.plot(trajectory[:, 0], trajectory[:, 1], trajectory[:, 2],
            'b-', linewidth=0.5, alpha=0.7)
    ax.scatter(*trajectory[0], color='g', s=40, label='start')
    ax.scatter(*trajectory[-1], color='r', s=40, label='end')
    ax.set_title('Random walk on a tetrahedron')
    ax.legend()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Plot saved: {save_path}")
    else:
        plt.show()


if __name__ == "__main__":
    print("=" * 70)
    print("Tetrahedron Random Walk")
    print("=" * 70)

    trajectory, voxels, crossings = simulate_walk()

    occupancy = np.bincount(voxels, minlength=len(FACES)) / len(voxels)
    print(f"\n  Steps: {len(trajectory) - 1}")
    print(f"  Edge crossings: {crossings}")
    for f, fraction in enumerate(occupancy):
        print(f"  Face {f}: {fraction * 100:.1f}% of steps (expected ~25%)")

    plot_walk(trajectory, save_path='tetrahedron_walk.png')
