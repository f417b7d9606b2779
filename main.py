import argparse
import logging

from mpmfluid.config.base_config import load_config
from mpmfluid.fluid_env import FluidEnv, init_taichi
from mpmfluid.visualization.recorder import Recorder
from mpmfluid.visualization.visualizer import Visualizer


def parse_args():
    parser = argparse.ArgumentParser(description='2D MLS-MPM Fluid Simulation')
    parser.add_argument('--config', type=str, default=None, help='YAML file with Config overrides')
    parser.add_argument('opts', nargs=argparse.REMAINDER, help='KEY VALUE overrides, e.g. grid_resolution 128')
    return parser.parse_args()


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s: %(message)s', datefmt='%H:%M:%S')
    args = parse_args()

    cfg = load_config(args.config, args.opts)
    init_taichi(cfg)

    recorder = Recorder(cfg.record_path, fps=cfg.record_fps) if cfg.record_path else None
    env = FluidEnv(cfg, visualizer=Visualizer(cfg), recorder=recorder)

    for _ in range(cfg.max_steps):
        if not env.running:
            break
        env.step()
        env.render()

    env.close()


if __name__ == '__main__':
    main()
