# --------------------------------------------------------------------------------
# Copyright (c) 2025 Krushang Gabani
# All rights reserved.
#
# Configuration module for the 2D MLS-MPM fluid simulation: grid, time
# stepping, equation of state, seeding and rendering settings.
#
# Author: Krushang Gabani
# Date: July 7, 2025
# --------------------------------------------------------------------------------

from dataclasses import dataclass, fields, asdict
from typing import Optional, Sequence, Tuple

import taichi as ti
from yacs.config import CfgNode as CN


_ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}

_DTYPES = {
    "float32": ti.f32,
    "float64": ti.f64,
}


@dataclass
class Config:
    """
    Configuration for the MLS-MPM fluid solver. All positions and lengths
    are expressed in grid-index units (one cell == 1.0), so the domain is
    [0, grid_resolution) on both axes.
    """

    # -------------------------- Simulation Dimensions --------------------------
    grid_resolution: int = 64  # Cells per axis (grid holds grid_resolution^2 cells)
    n_particles: int = 4_096  # Particles seeded when no explicit state is given
    dtype: str = "float64"  # Numeric precision: "float32" or "float64"
    arch: str = "cpu"  # Taichi backend: "cpu", "gpu", "cuda", "vulkan", "metal"

    # ---------------------------- Time Stepping -------------------------------
    time_step: float = 0.2  # Frame time step used when step() gets no dt
    substeps: int = 1  # Equal substeps per frame
    gravity: Tuple[float, float] = (0.0, -0.3)  # Grid-units per time^2
    max_steps: int = 1_000  # Frames run by the demo before it exits

    # ------------------------ Material Properties -----------------------------
    rest_density: float = 4.0  # Density at which the EOS pressure vanishes
    eos_stiffness: float = 10.0  # Tait equation of state stiffness
    eos_power: float = 4.0  # Tait equation of state exponent
    dynamic_viscosity: float = 0.1
    pressure_floor: float = -0.1  # Lower clamp on pressure (limits tension)
    density_epsilon: float = 1e-8  # Minimum density used in the volume division
    particle_mass: float = 1.0

    # ------------------------------ Seeding -----------------------------------
    seed_spacing: float = 0.5  # Lattice spacing of the packed square
    seed_center: Tuple[float, ...] = ()  # Empty means the grid center

    # --------------------------- Rendering Settings --------------------------
    render_res: int = 512
    particle_radius: float = 1.5
    particle_color: int = 0x068587
    background_color: int = 0x112F41
    show_gui: bool = True

    # --------------------------- Recording Settings --------------------------
    record_path: str = ""  # Empty disables recording
    record_fps: int = 30

    def validate(self) -> "Config":
        if self.grid_resolution < 5:
            raise ValueError(f"grid_resolution must be at least 5, got {self.grid_resolution}")
        if self.n_particles < 1:
            raise ValueError(f"n_particles must be positive, got {self.n_particles}")
        if self.dtype not in _DTYPES:
            raise ValueError(f"dtype must be one of {sorted(_DTYPES)}, got {self.dtype!r}")
        if self.arch not in _ARCHS:
            raise ValueError(f"arch must be one of {sorted(_ARCHS)}, got {self.arch!r}")
        if not self.time_step > 0:
            raise ValueError(f"time_step must be positive, got {self.time_step}")
        if self.substeps < 1:
            raise ValueError(f"substeps must be at least 1, got {self.substeps}")
        if len(self.gravity) != 2:
            raise ValueError(f"gravity must have 2 components, got {self.gravity}")
        if not self.rest_density > 0:
            raise ValueError(f"rest_density must be positive, got {self.rest_density}")
        if not self.density_epsilon > 0:
            raise ValueError(f"density_epsilon must be positive, got {self.density_epsilon}")
        if not self.particle_mass > 0:
            raise ValueError(f"particle_mass must be positive, got {self.particle_mass}")
        if not self.seed_spacing > 0:
            raise ValueError(f"seed_spacing must be positive, got {self.seed_spacing}")
        if len(self.seed_center) not in (0, 2):
            raise ValueError(f"seed_center must be empty or have 2 components, got {self.seed_center}")
        return self

    @property
    def center(self) -> Tuple[float, float]:
        if self.seed_center:
            return tuple(float(c) for c in self.seed_center)
        half = self.grid_resolution / 2.0
        return (half, half)

    def to_cfg_node(self) -> CN:
        return CN(asdict(self))


_FLOAT_KEYS = {f.name for f in fields(Config) if f.type is float}


def _widen_ints(node: CN) -> CN:
    # yacs refuses an int where the default is a float (e.g. "time_step: 1")
    for key, value in node.items():
        if key in _FLOAT_KEYS and isinstance(value, int) and not isinstance(value, bool):
            node[key] = float(value)
    return node


def _widen_opts(opts: Sequence[str]) -> list:
    opts = list(opts)
    if len(opts) % 2:
        raise ValueError(f"overrides must be KEY VALUE pairs, got {opts}")
    for i in range(0, len(opts), 2):
        if opts[i] in _FLOAT_KEYS and isinstance(opts[i + 1], str):
            if opts[i + 1].lstrip("+-").isdigit():
                opts[i + 1] = float(opts[i + 1])
    return opts


def load_config(path: Optional[str] = None, opts: Optional[Sequence[str]] = None) -> Config:
    """
    Build a Config from the dataclass defaults, an optional YAML file and an
    optional flat list of KEY VALUE overrides (yacs merge semantics: unknown
    keys and type mismatches raise, except that an int is accepted for a
    float key).
    """
    node = Config().to_cfg_node()
    if path:
        with open(path, "r") as f:
            node.merge_from_other_cfg(_widen_ints(CN.load_cfg(f)))
    if opts:
        node.merge_from_list(_widen_opts(opts))
    node.freeze()

    values = {}
    for f in fields(Config):
        value = node[f.name]
        if isinstance(value, list):
            value = tuple(value)
        values[f.name] = value
    return Config(**values).validate()


def taichi_arch(name: str):
    try:
        return _ARCHS[name]
    except KeyError:
        raise ValueError(f"Unknown Taichi arch {name!r}") from None


def taichi_dtype(name: str):
    try:
        return _DTYPES[name]
    except KeyError:
        raise ValueError(f"Unknown dtype {name!r}") from None
