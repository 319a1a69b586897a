"""depsteward - dependency version governance engine."""

__version__ = "0.1.0"
