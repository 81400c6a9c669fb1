"""semtree: hierarchical semantic index over a file tree."""

__version__ = "1.0.0"
