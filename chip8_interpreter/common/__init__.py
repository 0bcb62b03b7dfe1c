"""
Common functionality shared across all system implementations.
"""
from .interfaces import CPU, Memory, VideoProcessor, System
from .visualizer import DisplayVisualizer
