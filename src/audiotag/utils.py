"""
Utility functions and configuration for audiotag.
"""

import os
import sys
import logging
from pathlib import Path
from typing import Any, List, Optional, TextIO
from logging.handlers import RotatingFileHandler

# ---------- Constants ----------
EXIT_CODE_SUCCESS = 0
EXIT_CODE_ERROR = 1
EXIT_CODE_USAGE = 2
EXIT_CODE_NO_FILES = 3
EXIT_CODE_INTERRUPTED = 130

_TRUE_VALUES = ('1', 'true', 'yes')

# ---------- Configuration ----------
class Config:
    """Configuration management with validation."""
    LOAD_IMAGES = True
    TEXT_ERRORS = 'replace'  # handed to the Vorbis comment decoder
    DEFAULT_VERBOSE = False

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values."""
        if not isinstance(cls.LOAD_IMAGES, bool):
            raise ValueError("LOAD_IMAGES must be a boolean")
        if cls.TEXT_ERRORS not in ('replace', 'strict', 'ignore'):
            raise ValueError(f"Invalid TEXT_ERRORS: {cls.TEXT_ERRORS}")
        if not isinstance(cls.DEFAULT_VERBOSE, bool):
            raise ValueError("DEFAULT_VERBOSE must be a boolean")

    @classmethod
    def load_from_env(cls) -> None:
        """Load configuration from environment variables, updating class attributes."""
        if os.getenv('AUDIOTAG_LOAD_IMAGES') is not None:
            cls.LOAD_IMAGES = env_flag(os.getenv('AUDIOTAG_LOAD_IMAGES'))
        if os.getenv('AUDIOTAG_TEXT_ERRORS'):
            cls.TEXT_ERRORS = os.getenv('AUDIOTAG_TEXT_ERRORS').strip().lower()
        if os.getenv('AUDIOTAG_VERBOSE') is not None:
            cls.DEFAULT_VERBOSE = env_flag(os.getenv('AUDIOTAG_VERBOSE'))
        cls.validate()

def env_flag(value: Optional[str]) -> bool:
    """Interpret an environment variable value as a boolean flag."""
    return (value or '').strip().lower() in _TRUE_VALUES

# ---------- Logging Setup ----------
def setup_logging(verbose: bool = False, stream: Optional[TextIO] = None) -> None:
    """
    Configure logging with rotation and proper formatting.

    Console output goes to stdout unless another stream is given.
    """
    log_level = logging.DEBUG if verbose else logging.INFO

    # Create logs directory if it doesn't exist
    log_dir = Path('logs')
    log_dir.mkdir(exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / 'audiotag.log',
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(stream or sys.stdout),
            file_handler
        ]
    )

# ---------- Small Helpers ----------
def safe_int(x: Any) -> Optional[int]:
    """
    Safely convert value to integer, returning None on failure.

    Examples:
        >>> safe_int('42')
        42
        >>> safe_int(' 7 ')
        7
        >>> safe_int('not a number') is None
        True
        >>> safe_int(None) is None
        True
    """
    if x is None or isinstance(x, bool):
        return None
    try:
        return int(str(x).strip())
    except (ValueError, TypeError):
        return None

def join_for_printing(lst: List[str]) -> str:
    """Join list for display, showing '(none)' for empty lists."""
    return '(none)' if not lst else '; '.join(lst)
