"""API Routes"""

from . import collect, review

__all__ = ["collect", "review"]
