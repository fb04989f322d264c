"""
Monitoring helpers for the related-whisky engine.

- Sentry breadcrumbs and exception capture with rebuild context
"""

from .sentry_integration import add_rebuild_breadcrumb, capture_rebuild_error

__all__ = [
    "add_rebuild_breadcrumb",
    "capture_rebuild_error",
]
