# Copyright (c) Syntropy Systems
"""solvelog server module for remote viewers."""

from .app import create_app

__all__ = ["create_app"]
