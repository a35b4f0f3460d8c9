"""Utilities shared by scripts that use the renderer."""

from .logconfig import setup_logging

__all__ = ["setup_logging"]
