"""Logging configuration for the Payments context."""

import logging

import structlog

logger = structlog.get_logger("payments")

# Suppress noisy library loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
