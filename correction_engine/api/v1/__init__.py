"""Version 1 API routers."""

from . import corrections, patterns

__all__ = ["corrections", "patterns"]
