"""
BuildTrack CLI Package

A Rich-based command line for the BuildTrack analytics engine: inspect the
stored build history and analyze recorded stage timings.
"""

from .main import app
from _version import __version__, get_full_version, get_version_dict

__all__ = ["app", "__version__", "get_full_version", "get_version_dict"]
