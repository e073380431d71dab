import logging
import os

from .loader import section

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://discord.com/api/v10"


class Core:
    """Credentials for the Discord upstream and the Firebase persistent tier."""

    def __init__(self, config: dict | None = None) -> None:
        discord_cfg = section(config, "discord")
        store_cfg = section(config, "store")

        token_env = str(discord_cfg.get("token_env", "BOT_TOKEN"))
        secret_env = str(store_cfg.get("secret_env", "FIREBASE_SECRET"))

        self.BOT_TOKEN: str | None = os.getenv(token_env)
        self.DISCORD_API_BASE: str = str(
            discord_cfg.get("api_base") or os.getenv("DISCORD_API_BASE", DEFAULT_API_BASE)
        ).rstrip("/")

        self.FIREBASE_URL: str | None = store_cfg.get("firebase_url") or os.getenv("FIREBASE_URL")
        self.FIREBASE_SECRET: str | None = os.getenv(secret_env)

        required = [
            ("BOT_TOKEN", self.BOT_TOKEN),
            ("FIREBASE_URL", self.FIREBASE_URL),
            ("FIREBASE_SECRET", self.FIREBASE_SECRET),
        ]
        missing = [name for name, val in required if not val]
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")

        self.FIREBASE_URL = self.FIREBASE_URL.rstrip("/")
