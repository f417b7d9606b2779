# bodies/fluid_block.py
import math

import numpy as np


def packed_square(n_particles, center, spacing):
    """
    First n_particles points of a square lattice with ceil(sqrt(n)) points per
    side, centered at `center`. Points are ordered x-major (outer loop over x,
    inner loop over y).
    """
    if n_particles < 1:
        raise ValueError(f"n_particles must be positive, got {n_particles}")
    side = int(math.ceil(math.sqrt(n_particles)))
    cx, cy = center
    half = 0.5 * side * spacing

    xs = cx - half + spacing * np.arange(side, dtype=np.float64)
    ys = cy - half + spacing * np.arange(side, dtype=np.float64)
    gx, gy = np.meshgrid(xs, ys, indexing="ij")
    points = np.stack([gx.ravel(), gy.ravel()], axis=1)
    return points[:n_particles]


class FluidBlock:
    def __init__(self, n_particles, center, spacing=0.5, mass=1.0, velocity=(0.0, 0.0)):
        """
        A block of fluid particles at rest (or moving uniformly) laid out as
        a packed square. Holds the arrays the solver is initialized from.
        """
        self.n_particles = n_particles
        self.center = tuple(center)
        self.spacing = spacing

        self.positions = packed_square(n_particles, center, spacing)
        self.velocities = np.tile(np.asarray(velocity, dtype=np.float64), (n_particles, 1))
        self.affine = np.zeros((n_particles, 2, 2), dtype=np.float64)
        self.masses = np.full(n_particles, mass, dtype=np.float64)

    @classmethod
    def from_config(cls, cfg):
        return cls(cfg.n_particles, cfg.center, cfg.seed_spacing, cfg.particle_mass)

    def bounds(self):
        return self.positions.min(axis=0), self.positions.max(axis=0)
