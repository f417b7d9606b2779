import logging
import os

import imageio

logger = logging.getLogger(__name__)


class Recorder:
    def __init__(self, output_file='output.gif', fps=30):
        self.output_file = output_file
        self.fps = fps
        self.frames = []

    def add_frame(self, frame):
        """
        Add a frame to the recorder.
        frame should be a uint8 NumPy array of shape (H, W, 3), e.g. from Visualizer.render().
        """
        self.frames.append(frame)

    def __len__(self):
        return len(self.frames)

    def clear(self):
        self.frames.clear()

    def save(self):
        """Write the accumulated frames to the output file."""
        if not self.frames:
            logger.info("Recorder: no frames to write to %s", self.output_file)
            return
        if os.path.splitext(self.output_file)[1].lower() == ".gif":
            # pillow writer takes a per-frame duration in milliseconds
            imageio.mimsave(self.output_file, self.frames, duration=1000.0 / self.fps, loop=0)
        else:
            imageio.mimsave(self.output_file, self.frames, fps=self.fps)
        logger.info("Recorder: wrote %d frames to %s", len(self.frames), self.output_file)
