"""Shared utilities for the backend."""
from utils.case import camelize, snakeize, to_response
from utils.logging_config import setup_logging

__all__ = [
    "camelize",
    "snakeize",
    "to_response",
    "setup_logging",
]
