"""Training decision engine: load monitoring, threshold estimation and weighted decisions."""

__version__ = "0.1.0"
