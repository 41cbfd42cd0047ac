"""Badge Registry: issues, tracks, mutates and revokes milestone badges."""

__version__ = "0.1.0"
