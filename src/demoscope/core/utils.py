"""
Utility functions for DemoScope.

This module provides:
- Tick / time conversions and HH:MM:SS timestamps
- Steam ID conversions
- Performance timing
"""

import logging
import re
import time

from demoscope.core.constants import DEFAULT_TICK_RATE, STEAMID64_BASE

logger = logging.getLogger(__name__)

_STEAMID3_RE = re.compile(r"^\[U:1:(\d+)\]$")


# =============================================================================
# Time conversions
# =============================================================================


def ticks_to_sec(ticks: int, tick_rate: float = DEFAULT_TICK_RATE) -> float:
    """Convert a tick count to seconds."""
    if tick_rate <= 0:
        return 0.0
    return ticks / tick_rate


def sec_to_ticks(sec: float, tick_rate: float = DEFAULT_TICK_RATE) -> int:
    """Convert seconds to a tick count, truncating."""
    return int(sec * tick_rate)


def sec_to_timestamp(sec: float) -> str:
    """
    Format seconds as HH:MM:SS.

    Args:
        sec: Duration in seconds

    Returns:
        Timestamp like "01:02:03"
    """
    total = round(sec)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def ticks_to_timestamp(ticks: int, tick_rate: float = DEFAULT_TICK_RATE) -> str:
    """Format a tick as HH:MM:SS at the given tick rate."""
    return sec_to_timestamp(ticks_to_sec(ticks, tick_rate))


def timestamp_to_sec(timestamp: str) -> float:
    """
    Parse a [[HH:]MM:]SS timestamp back to seconds.

    Raises:
        ValueError: If a component is not a number
    """
    value = 0.0
    for part in timestamp.strip().split(":"):
        value = value * 60 + int(part)
    return value


# =============================================================================
# Steam IDs
# =============================================================================


def steamid_32_to_64(steam_id: str) -> str | None:
    """
    Convert a "[U:1:N]" Steam ID to its 64-bit form.

    Returns:
        SteamID64 as a string, or None for bots and unrecognised formats
    """
    match = _STEAMID3_RE.match(steam_id.strip())
    if match is None:
        return None
    return str(STEAMID64_BASE + int(match.group(1)))


def steam_profile_url(steam_id: str) -> str | None:
    """Community profile URL for a "[U:1:N]" Steam ID."""
    sid64 = steamid_32_to_64(steam_id)
    if sid64 is None:
        return None
    return f"https://steamcommunity.com/profiles/{sid64}"


# =============================================================================
# Timing
# =============================================================================


class PerformanceMonitor:
    """
    Context manager for monitoring performance of code blocks.

    Usage:
        with PerformanceMonitor("analysing demo"):
            analyse(...)
    """

    def __init__(self, operation_name: str, log_level: int = logging.INFO):
        self.operation_name = operation_name
        self.log_level = log_level
        self.start_time: float | None = None
        self.elapsed: float = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - (self.start_time or 0)
        if exc_type is not None:
            logger.error(f"{self.operation_name} failed after {self.elapsed:.3f}s: {exc_val}")
        else:
            logger.log(self.log_level, f"{self.operation_name} completed in {self.elapsed:.3f}s")
        return False
