"""FastAPI application factory."""

from fastapi import FastAPI

from wallspot import __version__
from wallspot.api import register_exception_handlers
from wallspot.infrastructure.lifecycle import lifespan


def create_app() -> FastAPI:
    """Create the app with lifespan wiring and exception handlers."""
    app = FastAPI(title="Wallspot", version=__version__, lifespan=lifespan)
    register_exception_handlers(app)
    return app
