"""
Logging configuration for the monitor and its backend.

Console output plus a rotating file per logger name. Levels come from
config.log_level (ORMON_LOG_LEVEL) unless given explicitly.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB


def setup_logging(
    logger_name: str = "ormonitor",
    logs_dir: Optional[Path] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Attach console and rotating file handlers to a logger.
    
    Args:
        logger_name: Logger to configure; child module loggers propagate to it
        logs_dir: Directory for <logger_name>.log (defaults to config.logs_dir)
        level: Level name overriding config.log_level
    
    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    
    # Already configured
    if logger.handlers:
        return logger
    
    level = (level or config.log_level).upper()
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    
    handlers = [logging.StreamHandler()]
    logs_dir = Path(logs_dir or config.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    handlers.append(
        logging.handlers.RotatingFileHandler(
            logs_dir / f"{logger_name}.log",
            maxBytes=MAX_LOG_BYTES,
            backupCount=5,
            encoding="utf-8",
        )
    )
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    
    return logger
