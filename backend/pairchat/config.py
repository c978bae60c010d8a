"""Конфигурация приложения."""
import os
from functools import lru_cache

DEFAULT_PORT = 3001


@lru_cache
def get_config():
    debug = os.environ.get("DEBUG", "0").lower() in ("1", "true", "yes")
    return type("Config", (), {
        "host": os.environ.get("HOST", "0.0.0.0"),
        "port": int(os.environ.get("PORT") or DEFAULT_PORT),
        "debug": debug,
        "log_level": "DEBUG" if debug else os.environ.get("LOG_LEVEL", "INFO").upper(),
        "allowed_origins": os.environ.get("ALLOWED_ORIGINS", "*").split(","),
    })()
