"""Profile lookups for Discord users, served through a two-tier cache."""

__version__ = "0.1.0"
