"""Live presence lookups backed by the gateway member cache."""

from .aggregator import PresenceAggregator

__all__ = ["PresenceAggregator"]
