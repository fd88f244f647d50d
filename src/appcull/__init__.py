"""appcull - find installed Mac applications and rank them by last use."""

__version__ = "0.1.0"
