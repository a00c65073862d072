"""
Structured logging for store and search operations.
"""

import logging
from typing import Any, Dict, List

from ..core.config import LOG_LEVEL


class StructuredLogger:
    """Structured logger for CRUD, meta and search operations."""

    def __init__(self, name: str = "embedstore"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status == "failed":
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_store_operation(self, operation: str, ids: List[str] = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log a CRUD operation against the embeddings table."""
        log_details = {}
        if ids is not None:
            log_details["count"] = len(ids)
            # Long id lists are truncated
            log_details["ids"] = ids[:5] + ["..."] if len(ids) > 5 else list(ids)
        if details:
            log_details.update(details)

        self.log_operation(f"store.{operation}", status, log_details)

    def log_search(self, strategy: str, metric: str, top_k: int, scored: int, returned: int,
                   start_time: float, end_time: float, status: str = "success"):
        """Log a completed (or failed) search call."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {
            "metric": metric,
            "top_k": top_k,
            "scored": scored,
            "returned": returned,
            "duration_ms": duration_ms,
        }

        self.log_operation(f"search.{strategy}", status, log_details)

    def log_validation_error(self, operation: str, error: Exception, details: Dict[str, Any] = None):
        """Log a rejected request before anything was written."""
        log_details = {
            "error_type": type(error).__name__,
            "error": str(error),
        }
        if details:
            log_details.update(details)

        self.log_operation(f"validation.{operation}", "rejected", log_details)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
