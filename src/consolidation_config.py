# src/consolidation_config.py
"""
Configuration for the folder PDF consolidator.
Defaults can be overridden through the environment (or a .env file) and
again through command line flags.
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables FIRST
load_dotenv()

logger = logging.getLogger(__name__)


def env_int(name: str, default: int) -> int:
    """Integer from the environment; a malformed value falls back to the default"""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"⚠️ Ignoring {name}={raw!r}: not an integer, using {default}")
        return default


# ---------------------------
# Paths & constants
# ---------------------------

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent

PDF_EXTENSION = ".pdf"

# Files below this size are platform-generated stubs, not real content
DEFAULT_MIN_FILE_SIZE: int = env_int("PDF_MIN_FILE_SIZE", 20 * 1024)
DEFAULT_OUTPUT_DIR_NAME: str = os.environ.get("PDF_OUTPUT_DIR", "output")

SIZE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB']

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def format_bytes(size: float) -> str:
    """Human readable size: 0 -> '0 B', 1536 -> '1.5 KB'"""
    if size <= 0:
        return "0 B"

    k = 1024
    i = 0
    value = float(size)
    while value >= k and i < len(SIZE_UNITS) - 1:
        value /= k
        i += 1

    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {SIZE_UNITS[i]}"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Send diagnostics to stdout, and optionally to a log file"""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
