"""Logging configuration for the Identity context."""

import logging

import structlog

logger = structlog.get_logger("identity")

# Suppress noisy library loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
