"""Shared utilities: logging and cross-cutting helpers. No business logic."""

from ltnso.shared.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
