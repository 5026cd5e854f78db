"""
GigaChat-Agent - conversational client for GigaChat with bounded history and local tools.
"""

__version__ = "0.1.0"
