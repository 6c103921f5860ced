"""
Slowbeam Core Package.

This package contains the post merge and AI translation sync logic,
service classes, and shared schemas for the Slowbeam blog backend.
"""

__version__ = "0.1.0"

from .logging_config import init_logging, get_logger

__all__ = ["init_logging", "get_logger"]
