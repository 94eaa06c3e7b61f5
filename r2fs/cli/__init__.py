"""Command line interface for r2fs."""
from .main import app

__all__ = ['app']
