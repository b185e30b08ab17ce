"""
HTTP Interface

FastAPI application factory and server entry point.
"""

from .rest import create_app, main

__all__ = ["create_app", "main"]
