# --------------------------------------------------------------------------------
# Copyright (c) 2025 Krushang Gabani
# All rights reserved.
#
# MLS_MPM: Taichi-based 2D MLS-MPM / APIC solver for a weakly-compressible
# fluid with a Tait equation of state and a viscous stress term.
#
# Author: Krushang Gabani
# Date: July 7, 2025
# --------------------------------------------------------------------------------

import dataclasses
import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from mpmfluid.bodies.fluid_block import FluidBlock
from mpmfluid.config.base_config import Config, taichi_dtype
from mpmfluid.simulators.kernels import quadratic_weights, in_grid, flat_index


logger = logging.getLogger(__name__)

# Cells on each side of the domain whose normal velocity is zeroed
BOUNDARY = 2


@dataclass(frozen=True)
class ParticleView:
    """Read-only snapshot of particle state, indexed in seeding order."""

    position: np.ndarray
    velocity: np.ndarray

    def __len__(self):
        return self.position.shape[0]


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


@ti.data_oriented
class MLS_MPM:
    def __init__(self, cfg: Config, positions=None, velocities=None, affine=None, masses=None):

        self.cfg = cfg.validate()
        # simulation parameters
        self.dim = 2
        self.dtype = taichi_dtype(cfg.dtype)
        self.np_dtype = np.float64 if cfg.dtype == "float64" else np.float32
        self.n_grid = cfg.grid_resolution
        self.n_cells = self.n_grid * self.n_grid
        self.dt = cfg.time_step
        self.substeps = cfg.substeps

        # valid particle range after clamping
        self.lower = 1.0
        self.upper = float(self.n_grid - 2)

        # gravity
        self.gravity = tuple(float(g) for g in cfg.gravity)
        self.g = ti.Vector([self.gravity[0], self.gravity[1]], dt=self.dtype)

        # material (Tait EOS + viscosity)
        self.rest_density = cfg.rest_density
        self.eos_stiffness = cfg.eos_stiffness
        self.eos_power = cfg.eos_power
        self.dynamic_viscosity = cfg.dynamic_viscosity
        self.pressure_floor = cfg.pressure_floor
        self.density_epsilon = cfg.density_epsilon

        # initial particle state, kept for reset()
        self._initial = self._initial_state(positions, velocities, affine, masses)
        self.n_particles = self._initial[0].shape[0]

        # MPM fields
        n, d = self.n_particles, self.dim
        self.x      = ti.Vector.field(d, dtype=self.dtype, shape=n)
        self.v      = ti.Vector.field(d, dtype=self.dtype, shape=n)
        self.C      = ti.Matrix.field(d, d, dtype=self.dtype, shape=n)
        self.m      = ti.field(dtype=self.dtype, shape=n)
        self.grid_v = ti.Vector.field(d, dtype=self.dtype, shape=self.n_cells)
        self.grid_m = ti.field(dtype=self.dtype, shape=self.n_cells)

        self.time = 0.0
        self.n_steps = 0
        self._load(*self._initial)
        self.reset_grid()

        logger.info("MLS_MPM: %d particles on a %dx%d grid (%s, %s)",
                    self.n_particles, self.n_grid, self.n_grid, cfg.arch, cfg.dtype)

    @classmethod
    def from_counts(cls, grid_resolution: int, n_particles: int, **overrides):
        """Solver seeded with n_particles in a packed square at the grid center."""
        cfg = dataclasses.replace(Config(), grid_resolution=grid_resolution,
                                  n_particles=n_particles, **overrides)
        return cls(cfg)

    # ------------------------------------------------------------------ state

    def _initial_state(self, positions, velocities, affine, masses):
        if positions is None:
            block = FluidBlock.from_config(self.cfg)
            positions = block.positions
            if velocities is None:
                velocities = block.velocities
            if affine is None:
                affine = block.affine
            if masses is None:
                masses = block.masses

        positions = np.asarray(positions, dtype=np.float64)
        if positions.ndim != 2 or positions.shape[1] != 2 or positions.shape[0] < 1:
            raise ValueError(f"positions must be shape (n, 2) with n >= 1, got {positions.shape}")
        n = positions.shape[0]
        if not np.all(np.isfinite(positions)):
            raise ValueError("positions must be finite")
        if np.any(positions < self.lower) or np.any(positions > self.upper):
            raise ValueError(
                f"positions must lie inside [{self.lower}, {self.upper}] on both axes")

        if velocities is None:
            velocities = np.zeros((n, 2))
        velocities = np.asarray(velocities, dtype=np.float64)
        if velocities.shape != (n, 2):
            raise ValueError(f"velocities must be shape ({n}, 2), got {velocities.shape}")

        if affine is None:
            affine = np.zeros((n, 2, 2))
        affine = np.asarray(affine, dtype=np.float64)
        if affine.shape != (n, 2, 2):
            raise ValueError(f"affine must be shape ({n}, 2, 2), got {affine.shape}")

        if masses is None:
            masses = np.full(n, self.cfg.particle_mass)
        masses = np.asarray(masses, dtype=np.float64).reshape(-1)
        if masses.shape != (n,):
            raise ValueError(f"masses must be shape ({n},), got {masses.shape}")
        if np.any(masses <= 0):
            raise ValueError("masses must be positive")

        return positions.copy(), velocities.copy(), affine.copy(), masses.copy()

    def _load(self, positions, velocities, affine, masses):
        self.x.from_numpy(positions.astype(self.np_dtype))
        self.v.from_numpy(velocities.astype(self.np_dtype))
        self.C.from_numpy(affine.astype(self.np_dtype))
        self.m.from_numpy(masses.astype(self.np_dtype))

    def reset(self):
        """Restore the particles to their seeded state and clear the grid."""
        self._load(*self._initial)
        self.reset_grid()
        self.time = 0.0
        self.n_steps = 0
        logger.info("MLS_MPM: reset %d particles", self.n_particles)

    # ---------------------------------------------------------------- kernels

    @ti.kernel
    def reset_grid(self):
        ti.loop_config(serialize=True)
        for i in range(self.n_cells):
            self.grid_v[i] = ti.Vector.zero(self.dtype, self.dim)
            self.grid_m[i] = 0.0

    @ti.kernel
    def particle_to_grid(self):
        # mass and APIC momentum scatter
        ti.loop_config(serialize=True)
        for p in range(self.n_particles):
            xp = self.x[p]
            base = ti.cast(ti.floor(xp), ti.i32)
            fx = xp - base.cast(self.dtype) - 0.5
            wx = quadratic_weights(fx[0])
            wy = quadratic_weights(fx[1])

            for gx, gy in ti.static(ti.ndrange(3, 3)):
                cell = base + ti.Vector([gx - 1, gy - 1])
                if in_grid(cell, self.n_grid):
                    idx = flat_index(cell, self.n_grid)
                    mass = ti.cast(wx[gx] * wy[gy] * self.m[p], self.dtype)
                    self.grid_m[idx] += mass

                    dist = cell.cast(self.dtype) + 0.5 - xp
                    Q = self.C[p] @ dist
                    self.grid_v[idx] += (mass * (self.v[p] + Q)).cast(self.dtype)

    @ti.kernel
    def particle_to_grid_stress(self, dt: float):
        # Needs the complete mass scatter: density at a cell depends on every particle.
        # Literals and dt follow the runtime default_fp; values are cast to the
        # field dtype before they are accumulated.
        ti.loop_config(serialize=True)
        for p in range(self.n_particles):
            xp = self.x[p]
            base = ti.cast(ti.floor(xp), ti.i32)
            fx = xp - base.cast(self.dtype) - 0.5
            wx = quadratic_weights(fx[0])
            wy = quadratic_weights(fx[1])

            density = ti.cast(0.0, self.dtype)
            for gx, gy in ti.static(ti.ndrange(3, 3)):
                cell = base + ti.Vector([gx - 1, gy - 1])
                if in_grid(cell, self.n_grid):
                    density += ti.cast(self.grid_m[flat_index(cell, self.n_grid)] * wx[gx] * wy[gy], self.dtype)

            density = ti.max(density, ti.cast(self.density_epsilon, self.dtype))
            volume = self.m[p] / density

            # Tait EOS, clamped from below
            pressure = ti.max(
                self.pressure_floor,
                self.eos_stiffness * ((density / self.rest_density) ** self.eos_power - 1.0))
            stress = ti.Matrix([[-pressure, 0.0], [0.0, -pressure]])

            # C approximates the velocity gradient
            C = self.C[p]
            shear = C[0, 1] + C[1, 0]
            strain = ti.Matrix([[C[0, 0], shear], [shear, C[1, 1]]])
            stress += self.dynamic_viscosity * strain

            # 4 == D^-1 for the quadratic kernel with unit cells
            force_term = -4.0 * volume * ti.cast(dt, self.dtype) * stress

            for gx, gy in ti.static(ti.ndrange(3, 3)):
                cell = base + ti.Vector([gx - 1, gy - 1])
                if in_grid(cell, self.n_grid):
                    dist = cell.cast(self.dtype) + 0.5 - xp
                    impulse = wx[gx] * wy[gy] * (force_term @ dist)
                    self.grid_v[flat_index(cell, self.n_grid)] += impulse.cast(self.dtype)

    @ti.kernel
    def update_grid(self, dt: float):
        ti.loop_config(serialize=True)
        for i in range(self.n_cells):
            m = self.grid_m[i]
            if m > 0:
                v_new = self.grid_v[i] / m
                v_new += ti.cast(dt, self.dtype) * self.g

                # hard walls
                x = i // self.n_grid
                y = i % self.n_grid
                if x < BOUNDARY or x > self.n_grid - 1 - BOUNDARY:
                    v_new[0] = 0.0
                if y < BOUNDARY or y > self.n_grid - 1 - BOUNDARY:
                    v_new[1] = 0.0
                self.grid_v[i] = v_new

    @ti.kernel
    def grid_to_particle(self, dt: float):
        ti.loop_config(serialize=True)
        for p in range(self.n_particles):
            xp = self.x[p]
            base = ti.cast(ti.floor(xp), ti.i32)
            fx = xp - base.cast(self.dtype) - 0.5
            wx = quadratic_weights(fx[0])
            wy = quadratic_weights(fx[1])

            new_v = ti.Vector.zero(self.dtype, self.dim)
            B = ti.Matrix.zero(self.dtype, self.dim, self.dim)
            for gx, gy in ti.static(ti.ndrange(3, 3)):
                cell = base + ti.Vector([gx - 1, gy - 1])
                if in_grid(cell, self.n_grid):
                    dist = cell.cast(self.dtype) + 0.5 - xp
                    weighted_v = wx[gx] * wy[gy] * self.grid_v[flat_index(cell, self.n_grid)]
                    new_v += weighted_v.cast(self.dtype)
                    B += weighted_v.outer_product(dist).cast(self.dtype)

            self.v[p] = new_v
            self.C[p] = 4.0 * B

            # advect, then clamp into the interpolation-safe range
            self.x[p] = ti.min(ti.max(xp + ti.cast(dt, self.dtype) * new_v, self.lower), self.upper)

    # ------------------------------------------------------------------ steps

    def substep(self, dt: float):
        self.reset_grid()
        self.particle_to_grid()
        self.particle_to_grid_stress(dt)
        self.update_grid(dt)
        self.grid_to_particle(dt)

    def step(self, dt: float = None):
        """Advance one frame of length dt (defaults to cfg.time_step)."""
        frame_dt = self.dt if dt is None else float(dt)
        if not (math.isfinite(frame_dt) and frame_dt > 0):
            raise ValueError(f"dt must be positive and finite, got {dt}")

        sub_dt = frame_dt / self.substeps
        for _ in range(self.substeps):
            self.substep(sub_dt)

        self.time += frame_dt
        self.n_steps += 1
        logger.debug("MLS_MPM: frame %d, t=%.4f", self.n_steps, self.time)

    # ----------------------------------------------------------------- access

    def particles(self) -> ParticleView:
        return ParticleView(position=self.get_positions(), velocity=self.get_velocities())

    def get_positions(self) -> np.ndarray:
        return _readonly(self.x.to_numpy())

    def get_velocities(self) -> np.ndarray:
        return _readonly(self.v.to_numpy())

    def get_affine(self) -> np.ndarray:
        return _readonly(self.C.to_numpy())

    def get_masses(self) -> np.ndarray:
        return _readonly(self.m.to_numpy())

    def grid_mass(self) -> np.ndarray:
        """Cell masses in flattened x * N + y order."""
        return _readonly(self.grid_m.to_numpy())

    def grid_velocity(self) -> np.ndarray:
        return _readonly(self.grid_v.to_numpy())
