"""Expose the application factory at package level.

``from usermgmt import create_app`` is the public entry point.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
