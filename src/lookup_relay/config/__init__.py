"""Application configuration"""

import logging
from dotenv import load_dotenv

from .loader import load_raw_config
from .core import Core
from .cache import Cache
from .server import Server

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("discord").setLevel(logging.WARNING)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

_RAW_CONFIG = load_raw_config()

core = Core(_RAW_CONFIG)
cache = Cache(_RAW_CONFIG)
server = Server(_RAW_CONFIG)


class Config:
    core = core
    cache = cache
    server = server


__all__ = ["core", "cache", "server", "Config"]
