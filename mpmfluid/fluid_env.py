# --------------------------------------------------------------------------------
# Copyright (c) 2025 Krushang Gabani
# All rights reserved.
#
# High-level environment wrapper for the MLS-MPM fluid solver with Taichi GUI
# visualization and optional frame recording.
#
# Author: Krushang Gabani
# Date: July 7, 2025
# --------------------------------------------------------------------------------

import logging

import taichi as ti

from mpmfluid.config.base_config import Config, taichi_arch, taichi_dtype
from mpmfluid.simulators.mls_mpm import MLS_MPM


logger = logging.getLogger(__name__)


def init_taichi(cfg: Config, **kwargs):
    """Initialise the Taichi runtime for the configured backend and precision."""
    ti.init(arch=taichi_arch(cfg.arch), default_fp=taichi_dtype(cfg.dtype), **kwargs)


class FluidEnv:

    def __init__(self, cfg, visualizer=None, recorder=None):

        self.cfg = cfg
        self.env_dt = cfg.time_step

        self.simulator = MLS_MPM(cfg)
        self.visualizer = visualizer
        self.recorder = recorder

    @property
    def running(self):
        if self.visualizer is None:
            return True
        return self.visualizer.running

    def reset(self):
        self.simulator.reset()
        if self.recorder is not None:
            logger.info("FluidEnv: dropping %d recorded frames", len(self.recorder))
            self.recorder.clear()

    def step(self, n_frames=1):
        for _ in range(n_frames):
            self.simulator.step(self.env_dt)

    def render(self):
        pts = self.simulator.get_positions()
        if self.visualizer is None:
            return pts
        frame = self.visualizer.render(pts, t=self.simulator.time)
        if self.recorder is not None:
            self.recorder.add_frame(frame)
        return frame

    def close(self):
        if self.recorder is not None:
            self.recorder.save()
        if self.visualizer is not None:
            self.visualizer.close()
