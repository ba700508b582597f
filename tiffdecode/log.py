"""Logging utilities -- ANSI terminal colors, log file lines, logging setup.

CLI output goes through the ``cli_*`` helpers; ``--log`` files get plain
timestamped lines from the ``log_*`` helpers. Library modules use the
standard ``logging`` module and ``configure_logging`` wires it to stderr.
"""

import logging
import sys
from datetime import datetime

# ---------------------------------------------------------------------------
# ANSI color codes
# ---------------------------------------------------------------------------

_RESET = '\033[0m'
_DIM = '\033[2m'

_GREEN = '\033[32m'
_YELLOW = '\033[33m'
_CYAN = '\033[36m'

_BOLD_RED = '\033[1;31m'
_BOLD_CYAN = '\033[1;36m'
_BOLD_WHITE = '\033[1;37m'


def _is_tty():
    """Check if stdout is a terminal (not piped)."""
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


# Module-level flag -- set once at import time
_USE_COLOR = _is_tty()


def set_color_enabled(enabled: bool):
    """Override automatic color detection."""
    global _USE_COLOR
    _USE_COLOR = enabled


def _c(code: str, text: str) -> str:
    if _USE_COLOR:
        return f'{code}{text}{_RESET}'
    return text


# ---------------------------------------------------------------------------
# CLI formatting helpers
# ---------------------------------------------------------------------------

def cli_header(text: str) -> str:
    """Bold cyan header line (one per file)."""
    return _c(_BOLD_CYAN, text)


def cli_success(text: str) -> str:
    """Green text for a decoded directory."""
    return _c(_GREEN, text)


def cli_warning(text: str) -> str:
    """Yellow text for skipped fields and partial results."""
    return _c(_YELLOW, text)


def cli_error(text: str) -> str:
    """Red text for a directory or file that failed."""
    return _c(_BOLD_RED, text)


def cli_info(text: str) -> str:
    return _c(_CYAN, text)


def cli_dim(text: str) -> str:
    return _c(_DIM, text)


def cli_bold(text: str) -> str:
    return _c(_BOLD_WHITE, text)


def cli_field(name: str, value: str) -> str:
    """Indented ``name: value`` line for a tag listing."""
    return f'      {_c(_DIM, name + ":")} {value}'


def cli_separator() -> str:
    return _c(_DIM, '─' * 60)


# ---------------------------------------------------------------------------
# Log file formatting (always plain text with timestamps and levels)
# ---------------------------------------------------------------------------

def _timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def log_info(msg: str) -> str:
    return f'[{_timestamp()}] [INFO]  {msg}'


def log_warn(msg: str) -> str:
    return f'[{_timestamp()}] [WARN]  {msg}'


def log_error(msg: str) -> str:
    return f'[{_timestamp()}] [ERROR] {msg}'


# ---------------------------------------------------------------------------
# stdlib logging
# ---------------------------------------------------------------------------

_LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(verbose: bool = False, stream=None) -> logging.Handler:
    """Send ``tiffdecode`` library logs to ``stream`` (stderr by default).

    Verbose mode shows DEBUG records (unknown tags, per-directory timing);
    otherwise only warnings and errors. Returns the installed handler.
    """
    logger = logging.getLogger('tiffdecode')
    for handler in list(logger.handlers):
        if getattr(handler, '_tiffdecode_cli', False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    handler._tiffdecode_cli = True
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return handler
