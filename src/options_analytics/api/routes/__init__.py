"""Routers mounted under ``/api/v1``."""

from . import pricing, tools

__all__ = ["pricing", "tools"]
