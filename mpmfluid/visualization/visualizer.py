# visualization/visualizer.py
import numpy as np
import taichi as ti


class Visualizer:
    def __init__(self, cfg):
        self.cfg = cfg
        self.res = (cfg.render_res, cfg.render_res)
        self.gui = ti.GUI("MLS-MPM Fluid", self.res, background_color=cfg.background_color,
                          show_gui=cfg.show_gui)

    @property
    def running(self):
        return self.gui.running

    def render(self, positions, t=None):
        """
        Draw particle positions (grid-index space) and return the frame as an
        uint8 image of shape (H, W, 3), top row first.
        """
        self.gui.clear(self.cfg.background_color)
        self.gui.circles(np.asarray(positions) / self.cfg.grid_resolution,
                         radius=self.cfg.particle_radius,
                         color=self.cfg.particle_color)
        if t is not None:
            self.gui.text(f"Time: {t:.3f}", (0.05, 0.95), font_size=20, color=0xFFFFFF)

        # GUI images are indexed [x, y] from the bottom-left corner
        frame = self.gui.get_image()
        frame = (np.rot90(frame)[:, :, :3] * 255).clip(0, 255).astype(np.uint8)
        self.gui.show()
        return frame

    def close(self):
        self.gui.close()
