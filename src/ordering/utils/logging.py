"""Logging configuration for the Ordering context."""

import logging

import structlog

logger = structlog.get_logger("ordering")

# Suppress noisy library loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
