#!/usr/bin/env python3
"""Logging configuration read by core.logger.setup_service_logger"""
import os
from dataclasses import dataclass

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class LoggingConfig:
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    log_file: str = ""
    enable_console: bool = True
    # One JSON object per line, tagged with service and environment
    enable_structured: bool = False
    environment: str = "development"

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        environment = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        # Development defaults to DEBUG so pricing decisions show up in the console
        default_level = "DEBUG" if environment == "development" else "INFO"
        return cls(
            log_level=os.getenv("LOG_LEVEL", default_level),
            log_format=os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT),
            log_file=os.getenv("LOG_FILE", ""),
            enable_console=os.getenv("LOG_CONSOLE", "true").lower() != "false",
            enable_structured=os.getenv("ENABLE_STRUCTURED_LOGGING", "false").lower() == "true",
            environment=environment,
        )
