# -*- coding: utf-8 -*-
"""
Logging setup for SupportDesk.

Configures the package logger with a console handler and, when
SUPPORTDESK_LOG_FILE is set, a rotating file handler.

Usage:
    from supportdesk.utils.logging_config import setup_logging

    setup_logging()
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from supportdesk.utils.constants import Credentials


# =============================================================================
# CONFIGURATION
# =============================================================================

LOGGER_NAME = 'supportdesk'
MAX_BYTES = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


# =============================================================================
# LOGGER SETUP
# =============================================================================

def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up the package logger.

    Args:
        level: Log level name, defaults to SUPPORTDESK_LOG_LEVEL
        log_file: Optional path for a rotating log file, defaults to SUPPORTDESK_LOG_FILE

    Returns:
        Configured logger instance
    """
    credentials = Credentials()
    level = (level or credentials.LOG_LEVEL or 'INFO').upper()
    log_file = log_file or credentials.LOG_FILE

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    # Only add handlers if not already added
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding='utf-8',
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
