"""Dashboard-driven status monitoring and control for media servers."""

__all__ = ["__version__"]

__version__ = "0.1.0"
