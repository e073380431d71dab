import os

from .loader import section


class Cache:
    def __init__(self, config: dict | None = None) -> None:
        cache_cfg = section(config, "cache")
        self.TTL_SECONDS: int = int(cache_cfg.get("ttl_seconds", os.getenv("CACHE_TTL_SECONDS", "300")))
        self.STALE_TTL_SECONDS: int = int(
            cache_cfg.get("stale_ttl_seconds", os.getenv("STALE_TTL_SECONDS", "30"))
        )
        self.UPSTREAM_TIMEOUT: float = float(
            cache_cfg.get("upstream_timeout", os.getenv("UPSTREAM_TIMEOUT", "10"))
        )

        if self.TTL_SECONDS <= 0:
            raise ValueError("CACHE_TTL_SECONDS must be positive")
        # The stale window never outlives a regular entry.
        self.STALE_TTL_SECONDS = max(0, min(self.STALE_TTL_SECONDS, self.TTL_SECONDS))
