"""
Council Data - Logging Utility
==============================

Logging setup using Loguru with:
- Console and file logging
- Automatic log rotation
- JSON logging support
- Contextual logging
"""

import sys
from functools import wraps
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger

DEFAULT_SETTINGS_PATH = Path(__file__).parent.parent / "config" / "settings.yaml"


class LoggerSetup:
    """Configure and manage application logging"""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize logger with configuration

        Args:
            config_path: Path to settings.yaml file
        """
        self.config = self._load_config(config_path)
        self._setup_logger()

    def _load_config(self, config_path: Optional[str] = None) -> dict:
        """Load logging configuration from YAML"""
        path = Path(config_path) if config_path else DEFAULT_SETTINGS_PATH

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
                return config.get("logging") or self._default_config()
        except FileNotFoundError:
            return self._default_config()

    def _default_config(self) -> dict:
        """Default logging configuration"""
        return {
            "level": "INFO",
            "format": "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            "console": {"enabled": True, "colorize": True},
            "file": {
                "enabled": False,
                "path": "./logs/councildata.log",
                "rotation": "50 MB",
                "retention": "14 days",
                "compression": "zip",
            },
            "json": {
                "enabled": False,
                "path": "./logs/councildata.json",
            },
        }

    def _setup_logger(self):
        """Configure loguru logger"""
        logger.remove()

        log_level = self.config.get("level", "INFO")
        log_format = self.config.get("format") or self._default_config()["format"]

        console_config = self.config.get("console", {})
        if console_config.get("enabled", True):
            logger.add(
                sys.stderr,
                format=log_format,
                level=log_level,
                colorize=console_config.get("colorize", True),
                backtrace=True,
                diagnose=False,
            )

        file_config = self.config.get("file", {})
        if file_config.get("enabled", False):
            log_path = Path(file_config.get("path", "./logs/councildata.log"))
            log_path.parent.mkdir(parents=True, exist_ok=True)

            logger.add(
                log_path,
                format=log_format,
                level=log_level,
                rotation=file_config.get("rotation", "50 MB"),
                retention=file_config.get("retention", "14 days"),
                compression=file_config.get("compression", "zip"),
                backtrace=True,
                diagnose=False,
            )

        # JSON logging (for log aggregation systems)
        json_config = self.config.get("json", {})
        if json_config.get("enabled", False):
            json_path = Path(json_config.get("path", "./logs/councildata.json"))
            json_path.parent.mkdir(parents=True, exist_ok=True)

            logger.add(
                json_path,
                format="{message}",
                level=log_level,
                serialize=True,
                rotation=file_config.get("rotation", "50 MB"),
                retention=file_config.get("retention", "14 days"),
            )

    def get_logger(self, name: Optional[str] = None):
        """
        Get a logger instance

        Args:
            name: Logger name (usually __name__)

        Returns:
            Configured logger instance
        """
        if name:
            return logger.bind(name=name)
        return logger


_logger_setup = None


def setup_logging(config_path: Optional[str] = None):
    """
    Initialize logging system

    Args:
        config_path: Path to settings.yaml file
    """
    global _logger_setup
    _logger_setup = LoggerSetup(config_path)
    logger.debug("Logging system initialized")


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance

    Example:
        >>> from councildata.utils.logger import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("Fetching council data for {}", "Camden")
    """
    global _logger_setup
    if _logger_setup is None:
        setup_logging()
    return _logger_setup.get_logger(name)


def log_execution_time(func):
    """
    Decorator to log coroutine execution time

    Example:
        >>> @log_execution_time
        >>> async def fetch(council):
        >>>     ...
    """
    import time

    @wraps(func)
    async def wrapper(*args, **kwargs):
        log = get_logger(func.__module__)
        start_time = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            elapsed = time.perf_counter() - start_time
            log.debug("{} executed in {:.2f}s", func.__qualname__, elapsed)
            return result
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            log.warning("{} failed after {:.2f}s: {}", func.__qualname__, elapsed, e)
            raise

    return wrapper
