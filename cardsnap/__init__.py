"""
Command-line and HTTP front ends for rendering collectible card images.

This package exposes a :func:`main` function which orchestrates argument parsing
and delegates rendering work to :mod:`cardrender`.
"""

from .cli import main

__all__ = ["main"]
