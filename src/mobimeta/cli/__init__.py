"""
mobimeta Command-Line Interface
===============================

This package provides the ``mobimeta`` command-line tool, a Click-based
application for inspecting MOBI containers and extracting their covers.
"""

__all__ = ["mobimeta"]
