from .mls_mpm import MLS_MPM, ParticleView

__all__ = ['MLS_MPM', 'ParticleView']
