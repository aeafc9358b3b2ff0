"""
Service Logger Setup

Configures the root logger for a microservice from LoggingConfig.

Usage:
    from core.logger import setup_service_logger

    logger = setup_service_logger("checkout_service", level="INFO")
"""

import json
import logging
import sys
from typing import Optional

from core.config import LoggingConfig


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log shippers"""

    def __init__(self, service_name: str, environment: str):
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service_name,
            "environment": self.environment,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_service_logger(
    service_name: str,
    level: Optional[str] = None,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure logging for a service and return its logger.

    Args:
        service_name: Name of the service (used as logger name and in structured output)
        level: Log level override (defaults to LoggingConfig.log_level)
        config: Logging configuration (defaults to LoggingConfig.from_env())

    Returns:
        Logger named after the service
    """
    if config is None:
        config = LoggingConfig.from_env()

    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)

    if config.enable_structured:
        formatter: logging.Formatter = StructuredFormatter(service_name, config.environment)
    else:
        formatter = logging.Formatter(config.log_format)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Replace handlers so repeated setup (reload, tests) does not duplicate output
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if config.enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Chatty third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)

    logger = logging.getLogger(service_name)
    logger.info(f"Logging configured for {service_name} at {logging.getLevelName(log_level)}")
    return logger
