"""
Logging configuration for the hybrid retrieval engine.

This module provides centralized logging configuration with:
- Console and rotating file handlers
- Document ID context so every record shows which document it concerns
"""

from __future__ import annotations
import logging
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# Context variable for the document being built or searched.
# Each asyncio task sees its own value, so concurrent builds don't mix.
document_id_context: ContextVar[Optional[str]] = ContextVar("document_id", default=None)


class DocumentIdFilter(logging.Filter):
    """
    Logging filter that injects document_id into log records.

    Example log output:
        2025-10-29 08:00:15 - INFO - [doc:paper-42] Created 17 chunks
        2025-10-29 08:00:16 - WARNING - [doc:paper-42] Semantic search failed: timeout
    """

    def filter(self, record):
        """Add document_id to the log record."""
        document_id = document_id_context.get()
        record.document_id = document_id if document_id else "-"
        return True


def setup_logger(
    name: str = "hybrid_rag",
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure and return a logger with console and optional file handlers.

    Child loggers (``hybrid_rag.tfidf_index`` etc.) propagate into this one,
    so configuring the package root once is enough.

    Args:
        name: Logger name
        log_level: DEBUG, INFO, WARNING, ERROR, or CRITICAL
        log_file: Path to a rotating log file (10MB x 5 backups). None disables file output.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper()))

    # Avoid duplicate handlers if logger already configured
    if logger.handlers:
        return logger

    logger.propagate = False

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [doc:%(document_id)s] - "
        "%(filename)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    simple_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - [doc:%(document_id)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_handler.setFormatter(simple_formatter)
    console_handler.addFilter(DocumentIdFilter())
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10 MB per file
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        file_handler.addFilter(DocumentIdFilter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Args:
        name: Component name, e.g. "tfidf_index". Names already prefixed
            with "hybrid_rag" are used as-is.

    Returns:
        Logger instance
    """
    if name != "hybrid_rag" and not name.startswith("hybrid_rag."):
        name = f"hybrid_rag.{name}"
    return logging.getLogger(name)
