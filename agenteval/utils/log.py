import os
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

logger.remove()
logger.add(
    sys.stderr,
    format=LOG_FORMAT,
    level=os.environ.get("AGENTEVAL_LOG_LEVEL", "INFO"),
)

__all__ = ["logger"]
