"""Utility functions for logsift"""

import logging
import os


# Defaults used when the matching environment variable is unset or invalid
DEFAULT_THRESHOLD = 0.2
DEFAULT_CONTEXT_BEFORE = 3
DEFAULT_CONTEXT_AFTER = 1
DEFAULT_HTTP_TIMEOUT = 30.0
MAX_DEFAULT_WORKERS = 8

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_int_env(key: str, default: int = 0) -> int:
    """Get integer value from environment variable, return default if not set or invalid."""
    val = os.getenv(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_float_env(key: str, default: float) -> float:
    """Get float value from environment variable, return default if not set or invalid."""
    val = os.getenv(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


def get_bool_env(key: str, default: bool) -> bool:
    """
    Get boolean from environment variable, return default if not set.

    Recognizes: true/false, yes/no, 1/0 (case-insensitive)

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Boolean value or default
    """
    val = os.getenv(key)
    if val is None:
        return default
    val_lower = val.lower()
    if val_lower in ('true', 'yes', '1'):
        return True
    elif val_lower in ('false', 'no', '0'):
        return False
    return default


def get_threshold() -> float:
    """Distance above which a line is reported as an anomaly.

    Controlled by LOGSIFT_THRESHOLD, clamped to [0.0, 1.0].
    """
    value = get_float_env('LOGSIFT_THRESHOLD', DEFAULT_THRESHOLD)
    return min(max(value, 0.0), 1.0)


def get_context_before() -> int:
    """Number of lines shown before an anomaly (LOGSIFT_CONTEXT_BEFORE)."""
    return max(get_int_env('LOGSIFT_CONTEXT_BEFORE', DEFAULT_CONTEXT_BEFORE), 0)


def get_context_after() -> int:
    """Number of lines shown after an anomaly (LOGSIFT_CONTEXT_AFTER)."""
    return max(get_int_env('LOGSIFT_CONTEXT_AFTER', DEFAULT_CONTEXT_AFTER), 0)


def get_max_workers() -> int:
    """Get the number of training workers.

    Priority:
    1. LOGSIFT_MAX_WORKERS environment variable (if set and positive)
    2. min(8, cpu count)

    Returns:
        Number of threads used to train indexes in parallel
    """
    workers = get_int_env('LOGSIFT_MAX_WORKERS')
    if workers > 0:
        return workers
    return min(MAX_DEFAULT_WORKERS, os.cpu_count() or 1)


def get_http_timeout() -> float:
    """Timeout in seconds for remote sources (LOGSIFT_HTTP_TIMEOUT)."""
    return get_float_env('LOGSIFT_HTTP_TIMEOUT', DEFAULT_HTTP_TIMEOUT)


def get_log_level() -> int | None:
    """Return the level requested with LOGSIFT_LOG_LEVEL, None when unset."""
    level_name = os.getenv('LOGSIFT_LOG_LEVEL')
    if not level_name:
        return None
    return getattr(logging, level_name.upper(), logging.INFO)


def setup_logging() -> bool:
    """Configure the root logger from LOGSIFT_LOG_LEVEL.

    Logs go to stderr so they never interleave with the anomaly stream.

    Returns:
        True when a log level was explicitly requested (debug mode)
    """
    level = get_log_level()
    logging.basicConfig(level=level if level is not None else logging.WARNING, format=LOG_FORMAT)
    return level is not None
