import os
from typing import List

from .loader import section


def _split_keys(raw: str) -> List[str]:
    return [key.strip() for key in raw.split(",") if key.strip()]


class Server:
    def __init__(self, config: dict | None = None) -> None:
        server_cfg = section(config, "server")
        self.HOST: str = str(server_cfg.get("host", os.getenv("HOST", "0.0.0.0")))
        self.PORT: int = int(server_cfg.get("port", os.getenv("PORT", "3000")))

        keys_cfg = server_cfg.get("api_keys")
        if keys_cfg:
            self.API_KEYS: List[str] = [str(key) for key in keys_cfg]
        else:
            self.API_KEYS = _split_keys(os.getenv("API_KEYS", ""))
