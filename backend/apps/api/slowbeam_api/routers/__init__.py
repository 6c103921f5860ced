"""
API router modules.

This package contains all API route handlers organized by domain.
"""

from . import posts, translations, visits

__all__ = ["posts", "translations", "visits"]
