#!/usr/bin/env python3
"""
Quick check script to verify installation.

Run this after setting up the environment to check everything works.
"""

import sys
import time

print("="*70)
print("SURFACE_MC Installation Check")
print("="*70)

# Check 1: Import packages
print("\n1. Checking imports...")
for name in ("numpy", "numba", "scipy", "h5py", "yaml"):
    try:
        module = __import__(name)
        print(f"   ✓ {name}: {getattr(module, '__version__', '?')}")
    except ImportError as e:
        print(f"   ✗ {name} failed: {e}")
        sys.exit(1)

import numpy as np

# Check 2: Import surface_mc
print("\n2. Checking surface_mc imports...")
try:
    from surface_mc import (
        Barycentric, OffLatticeSpace, ParticleID, Triangle, Voxel,
        distance, first_cross_edge, to_barycentric)
    print("   ✓ surface_mc imported")
except ImportError as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# Check 3: Edge crossing
print("\n3. Checking edge crossing...")
edge, t = first_cross_edge(Barycentric(0.5, 0.3, 0.2), Barycentric(0.6, -0.1, -0.5))
if edge == 0 and abs(t - 0.4) < 1e-12:
    print(f"   ✓ Crossed edge {edge} at t = {t:.3f}")
else:
    print(f"   ✗ Unexpected crossing: edge {edge}, t = {t}")
    sys.exit(1)

# Check 4: Numba JIT compilation
print("\n4. Checking Numba JIT compilation...")
try:
    triangle = Triangle((0, 0, 0), (1, 0, 0), (0, 1, 0))

    # Warm up (trigger compilation)
    _ = to_barycentric((0.2, 0.3, 0.0), triangle)
    _ = distance((0.2, 0.3, 1.0), triangle)

    start = time.time()
    points = np.random.random((1000, 3))
    for p in points:
        distance(p, triangle)
    elapsed = (time.time() - start) / len(points)

    print(f"   ✓ JIT compilation successful")
    print(f"   ✓ Distance query: {elapsed*1e6:.2f} µs")
except Exception as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# Check 5: Off-lattice space
print("\n5. Checking off-lattice space...")
try:
    space = OffLatticeSpace(1.0, [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)],
                            [(0, 1), (1, 2), (2, 3), (3, 0)])
    space.update_voxel(ParticleID(0, 1), Voxel('A', 0))
    space.move(0, 1)
    space.check_consistency()
    print(f"   ✓ Created space: {space}")
except Exception as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# Summary
print("\n" + "="*70)
print("Installation check complete!")
print("="*70)
print("\nNext steps:")
print("  1. Run python -m surface_mc.space.offlattice")
print("  2. Run examples/scripts/tetrahedron_walk.py")
