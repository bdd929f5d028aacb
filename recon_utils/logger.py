#!/usr/bin/env python3
"""
Logging configuration for the reconstruction engine and its tools

Library modules log under their package names (``object_recon.*`` and
``recon_utils.*``); entry points attach one shared set of handlers to
every package logger so both trees reach the console and the log file.
"""

import logging
from pathlib import Path
from datetime import datetime
from typing import Iterable, List, Mapping
from rich.logging import RichHandler
from rich.console import Console

console = Console()

PACKAGE_LOGGERS = ("object_recon", "recon_utils")

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        markup=False,
        show_time=True,
        show_path=False
    )
    handler.setLevel(level)
    return handler


def _file_handler(log_dir: str, prefix: str) -> logging.FileHandler:
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    handler = logging.FileHandler(log_dir_path / f"{prefix}_{timestamp}.log")
    handler.setLevel(logging.DEBUG)  # File keeps everything
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def setup_logger(
    name: str = "object_recon",
    log_dir: str = "logs",
    level: str = "INFO",
    save_to_file: bool = False,
    packages: Iterable[str] = PACKAGE_LOGGERS
) -> logging.Logger:
    """
    Attach rich console (and optional file) handlers to the package loggers

    Args:
        name: Logger returned to the caller
        log_dir: Directory for the timestamped log file
        level: Console level (DEBUG, INFO, WARNING, ERROR)
        save_to_file: Whether to also write a log file
        packages: Logger names sharing the handlers

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper())

    handlers: List[logging.Handler] = [_console_handler(numeric_level)]
    if save_to_file:
        handlers.append(_file_handler(log_dir, name.replace(".", "_")))

    names = list(packages)
    if name.split(".")[0] not in names:
        names.append(name)

    for package in names:
        package_logger = logging.getLogger(package)
        package_logger.setLevel(logging.DEBUG if save_to_file else numeric_level)
        for old_handler in package_logger.handlers:
            old_handler.close()
        package_logger.handlers.clear()
        for handler in handlers:
            package_logger.addHandler(handler)

    logger = logging.getLogger(name)
    if save_to_file:
        logger.info(f"Logging to file: {handlers[-1].baseFilename}")

    return logger


def log_section(logger: logging.Logger, title: str, width: int = 60):
    """Log a banner line around a title"""
    logger.info("=" * width)
    logger.info(f"  {title}")
    logger.info("=" * width)


def log_config(logger: logging.Logger, config: Mapping, indent: int = 1):
    """Log a nested configuration mapping, one key per line"""
    if indent == 1:
        logger.info("Configuration:")

    pad = "  " * indent
    for key, value in config.items():
        if isinstance(value, Mapping):
            logger.info(f"{pad}{key}:")
            log_config(logger, value, indent + 1)
        else:
            logger.info(f"{pad}{key}: {value}")
