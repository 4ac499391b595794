"""matchcast: live match commentary broadcast console."""

__version__ = "1.0.0"
