import sys
from logging.config import dictConfig
from typing import Any

from sitesmith.core.config import settings

# Provider SDKs log every request at INFO; only their warnings are kept
_QUIET_LIBRARIES = ("httpx", "openai")


def build_logging_config(level: str | None = None) -> dict[str, Any]:
    """Uvicorn-compatible ``dictConfig`` mapping.

    ``sitesmith.*`` loggers log at ``level`` (default: ``settings.log_level``)
    through the same formatter uvicorn uses, so server and generation logs
    interleave in one readable stream.
    """
    level = (level or settings.log_level).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s [%(name)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stderr},
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": sys.stdout},
        },
        "loggers": {
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "sitesmith": {"handlers": ["default"], "level": level, "propagate": False},
            **{name: {"handlers": ["default"], "level": "WARNING", "propagate": False} for name in _QUIET_LIBRARIES},
        },
        "root": {"handlers": ["default"], "level": "INFO"},
    }


def setup_logging(level: str | None = None) -> None:
    """Configures application-wide logging using dictConfig."""
    dictConfig(build_logging_config(level))
