"""Lightning Lessons payments and signup backend."""

__version__ = "1.0.0"
