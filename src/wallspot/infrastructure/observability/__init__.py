"""Observability - logging setup and correlation IDs."""

from wallspot.infrastructure.observability.logging import (
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)

__all__ = ["configure_logging", "get_correlation_id", "set_correlation_id"]
