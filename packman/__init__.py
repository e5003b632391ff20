"""Move files between VPK archives, directories and in-memory stores with simple scripts."""

__version__ = "0.1.0"