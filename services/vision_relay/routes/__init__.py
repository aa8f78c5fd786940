"""API routes for the vision relay"""

from . import analyze

__all__ = ["analyze"]
