"""
Visualization tools for the interpreter's monochrome frame buffer.
"""
import os
import logging
from typing import Optional, Union

import numpy as np
import matplotlib
import matplotlib.pyplot as plt

logger = logging.getLogger("Chip8Interpreter.Visualizer")

class DisplayVisualizer:
    """
    Renders CHIP-8 frames as text or as matplotlib images.
    """

    def __init__(self, scale: int = 10, dark_mode: bool = True):
        """
        Initialize the display visualizer.

        Args:
            scale: Screen pixels per CHIP-8 pixel in saved images
            dark_mode: Whether to draw white pixels on black
        """
        self.scale = scale
        self.dark_mode = dark_mode
        self.color_map = matplotlib.colormaps['gray'] if dark_mode else matplotlib.colormaps['gray_r']

        # Set plot style
        if self.dark_mode:
            plt.style.use('dark_background')
        else:
            plt.style.use('default')

        logger.info("Initialized display visualizer")

    @staticmethod
    def to_ascii(buffer: np.ndarray, on: str = "█", off: str = " ") -> str:
        """
        Render a frame as text, one line per row.

        Args:
            buffer: (rows, columns) array of 0/1 pixels
            on: Character for a lit pixel
            off: Character for an unlit pixel

        Returns:
            Multi-line string
        """
        frame = np.asarray(buffer)
        return "\n".join("".join(on if pixel else off for pixel in row) for row in frame)

    def plot_display(self, buffer: np.ndarray,
                     save_path: Optional[str] = None,
                     title: Optional[str] = None) -> Union[str, "plt.Figure"]:
        """
        Plot a frame with nearest-neighbour scaling.

        Args:
            buffer: (rows, columns) array of 0/1 pixels
            save_path: PNG path to save to (None to return the figure)
            title: Optional figure title

        Returns:
            The saved path, or the open figure when no path is given
        """
        frame = np.asarray(buffer)
        rows, columns = frame.shape
        dpi = 100

        fig = plt.figure(figsize=(columns * self.scale / dpi, rows * self.scale / dpi), dpi=dpi)
        ax = fig.add_axes([0, 0, 1, 1])
        ax.imshow(frame, cmap=self.color_map, interpolation='nearest', vmin=0, vmax=1)
        ax.set_axis_off()
        if title:
            fig.suptitle(title)

        if save_path is None:
            return fig

        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(save_path, dpi=dpi)
        plt.close(fig)

        logger.info(f"Saved display snapshot to {save_path}")
        return save_path
