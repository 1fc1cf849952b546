"""Build a NES/SNES Classic hybrid HMOD from a NES Classic firmware dump."""

from .__version__ import __version__

__all__ = ["__version__"]
