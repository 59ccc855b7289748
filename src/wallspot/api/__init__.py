"""API module for Wallspot.

Only the glue the ingestion core needs lives here:
- dependencies.py: Dependency Injection (selector, pipeline, use cases)
- exception_handlers.py: Domain exceptions -> HTTP status codes

The gallery routes themselves are mounted by the surrounding application.
"""

from wallspot.api.exception_handlers import register_exception_handlers

__all__ = ["register_exception_handlers"]
