"""
Internal helpers shared within the cache package.

This module provides logging utilities that summarize profiles when the cache
records a resolution. The functions are prefixed with underscores to signal
that they are not part of the public API.
"""

import textwrap


def _profile_summary(profile, *, width: int = 32) -> str:
    """Return a compact one-line summary for logs: e.g., nelly (online, 2 badges)."""
    name = profile.username or profile.display_name or "?"
    badges = len(profile.badges.decoded)
    label = textwrap.shorten(str(name), width=width, placeholder="…")
    return f"{label} ({profile.presence.status}, {badges} badge{'s' if badges != 1 else ''})"


def _age_seconds(now: int, fetched_at: int) -> int:
    """Whole seconds since ``fetched_at``; never negative."""
    return max(0, now - fetched_at) // 1000
