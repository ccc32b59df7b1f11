"""ReactAssess adaptive assessment scoring core."""

__version__ = "0.1.0"
