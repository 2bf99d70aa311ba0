"""Last-resort error handling for request handlers."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        logger.error("Unhandled exception while serving %s: %s", (context or {}).get("path", "<unknown>"), exc, exc_info=exc)
        return {
            "success": False,
            "message": "An internal error occurred while processing your request. Please try again later.",
            "code": "internal_error",
        }
