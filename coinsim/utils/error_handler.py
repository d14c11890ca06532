"""
Error handling utilities for coinsim

Nothing in coinsim is retried: a failed price fetch aborts the request.
The helpers here only attach context to exceptions on their way out.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorContext:
    """Context manager returned by :func:`error_context`."""

    def __init__(self, operation_name: str, context_data: Dict[str, Any], logger=None):
        self.operation_name = operation_name
        self.context_data = context_data
        self.logger = logger

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_val is not None:
            # Only our own exceptions carry a context dict
            if hasattr(exc_val, 'context') and isinstance(exc_val.context, dict):
                exc_val.context.update({
                    'operation': self.operation_name,
                    **self.context_data
                })

            if self.logger is not None:
                context_str = ', '.join(f"{k}={v}" for k, v in self.context_data.items())
                self.logger.warning(
                    f"Error in {self.operation_name} [{context_str}]: {exc_val}"
                )

        return False


def error_context(operation_name: str, context_data: Optional[Dict[str, Any]] = None, logger=None):
    """
    Context manager that adds context to any exceptions raised within its block.

    Args:
        operation_name: Name of the operation being performed (e.g., 'trade', 'profile')
        context_data: Optional dictionary of context data to include with any exceptions
        logger: Optional logger to record the failure with its context

    Example:
        with error_context('trade', {'user_id': 'FM10293', 'asset_id': 'bitcoin'}, logger):
            engine.execute(request)
    """
    return ErrorContext(operation_name, context_data or {}, logger)
