# goldmines/core/logger.py
import logging
import sys

from goldmines.core.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configura el logger del proyecto (una sola vez, sin handlers duplicados)."""
    project_logger = logging.getLogger("goldmines")
    project_logger.setLevel(level.upper())

    if not project_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        project_logger.addHandler(handler)

    project_logger.propagate = False
    return project_logger


logger = setup_logging(settings.log_level)
