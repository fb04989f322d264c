"""
Sentry error tracking for related-whisky rebuilds.

- Adds breadcrumbs for rebuild context (operation, whisky, counts)
- Captures exceptions with rebuild tags so failures of the batch command
  and of background rebuild tasks are grouped per operation

Sentry itself is configured in config/settings/base.py; with an empty DSN
the SDK is a no-op and these helpers only cost a function call.

Usage:
    from catalog.monitoring import capture_rebuild_error

    try:
        rebuild_related_for_many(ids)
    except Exception as e:
        capture_rebuild_error(e, operation="many", extra_context={"seeds": len(ids)})
        raise
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)


def add_rebuild_breadcrumb(
    operation: str,
    message: str = "Related rebuild",
    level: str = "info",
    whisky_id: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb to Sentry for rebuild context.

    Args:
        operation: Rebuild entry point (one, cluster, many, all, batch)
        message: Description of the step
        level: Log level (info, warning, error)
        whisky_id: Whisky being rebuilt, if any
        extra_data: Additional context data
    """
    data = {"operation": operation}
    if whisky_id:
        data["whisky_id"] = str(whisky_id)
    if extra_data:
        data.update(extra_data)

    try:
        sentry_sdk.add_breadcrumb(
            category="related",
            message=message,
            level=level,
            data=data,
        )
    except Exception as e:
        logger.warning(f"Failed to add Sentry breadcrumb: {e}")


def capture_rebuild_error(
    error: Exception,
    operation: str,
    whisky_id: Optional[str] = None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture a rebuild failure to Sentry with its context.

    Args:
        error: The exception that occurred
        operation: Rebuild entry point (one, cluster, many, all, batch)
        whisky_id: Whisky being rebuilt, if any
        extra_context: Additional context
    """
    add_rebuild_breadcrumb(
        operation=operation,
        message=f"Error: {type(error).__name__}",
        level="error",
        whisky_id=whisky_id,
        extra_data=extra_context,
    )

    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("related.operation", operation)
            if whisky_id:
                scope.set_extra("whisky_id", str(whisky_id))
            if extra_context:
                scope.set_extra("rebuild_context", extra_context)
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.warning(f"Failed to capture exception to Sentry: {e}")
