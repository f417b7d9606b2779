from mpmfluid.config.base_config import Config, load_config
from mpmfluid.simulators.mls_mpm import MLS_MPM, ParticleView
from mpmfluid.fluid_env import FluidEnv, init_taichi

__all__ = ['Config', 'load_config', 'MLS_MPM', 'ParticleView', 'FluidEnv', 'init_taichi']
