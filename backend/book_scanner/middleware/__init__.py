"""
Middleware Package

Usage:
    from book_scanner.middleware import setup_error_handling

    setup_error_handling(app, debug=settings.DEBUG)
"""

from book_scanner.middleware.error_handling import (
    ErrorHandlingMiddleware,
    create_error_response,
    setup_error_handling,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "create_error_response",
    "setup_error_handling",
]
