"""
Package: config
Description: Environment-driven settings for the queue construct.
"""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
