"""Rules engine for a four-player hex-board resource trading game."""

__version__ = "1.0.0"
