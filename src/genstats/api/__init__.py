"""HTTP adapter for genstats."""

from .service import create_stats_app

__all__ = ["create_stats_app"]
