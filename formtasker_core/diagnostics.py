import logging
import os
from typing import Dict


_LOGGER_CACHE: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger.

    Respects FORMTASKER_DEBUG env var to set DEBUG/INFO level.
    Ensures we don't duplicate handlers across multiple imports.
    """
    lg = _LOGGER_CACHE.get(name)
    if lg:
        return lg
    lg = logging.getLogger(name)
    if not lg.handlers:
        level = logging.DEBUG if str(os.getenv("FORMTASKER_DEBUG", "false")).lower() == "true" else logging.INFO
        lg.setLevel(level)
        handler = logging.StreamHandler()
        handler.setLevel(level)
        fmt = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler.setFormatter(fmt)
        lg.addHandler(handler)
        lg.propagate = False
    _LOGGER_CACHE[name] = lg
    return lg


def set_level(level: str) -> None:
    """Adjust the level of the package loggers (used by the CLI -v/-q flags)."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    for name in ["formtasker_core", *_LOGGER_CACHE.keys()]:
        lg = logging.getLogger(name)
        lg.setLevel(numeric)
        for handler in lg.handlers:
            handler.setLevel(numeric)
