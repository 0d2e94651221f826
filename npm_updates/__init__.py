"""
npm-updates

Find newer versions of package.json dependencies and rewrite their ranges.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
