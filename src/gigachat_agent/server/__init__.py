"""
Tool server for local agent tools.
"""

from .app import create_app

__all__ = ["create_app"]
