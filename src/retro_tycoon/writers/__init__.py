"""Writers module for exporting static game data."""

from retro_tycoon.writers.base import BaseWriter
from retro_tycoon.writers.static_writer import StaticWriter

__all__ = ["BaseWriter", "StaticWriter"]
