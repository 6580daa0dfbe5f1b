import os
import sys
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

LOG_LEVEL = os.getenv("BURGERCHAIN_LOG_LEVEL", "INFO")
DEFAULT_RNG_SEED = int(os.getenv("BURGERCHAIN_RNG_SEED", "20240101"))

_sink_id: Optional[int] = None


def configure_logging(level: Optional[str] = None) -> int:
    """Routes engine logs to stderr at the given level (env default otherwise)."""
    global _sink_id
    if _sink_id is None:
        logger.remove()  # drop loguru's default handler
    else:
        logger.remove(_sink_id)
    _sink_id = logger.add(sys.stderr, level=(level or LOG_LEVEL).upper())
    logger.debug(f"Logging configured at level {(level or LOG_LEVEL).upper()}.")
    return _sink_id


def get_default_rng_seed() -> int:
    # Re-read so tests and long-running callers can change it after import
    return int(os.getenv("BURGERCHAIN_RNG_SEED", str(DEFAULT_RNG_SEED)))
