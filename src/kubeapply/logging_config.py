"""
Logging configuration for the kubeapply CLI.

Informational lines (resolved endpoints, per-item remote errors) go to stdout
as bare messages; debug output carries the logger name.
"""

import logging
import logging.config
from typing import Any, Dict

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration for the given level."""
    verbose = level.upper() == "DEBUG"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(message)s"
            },
            "verbose": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "verbose" if verbose else "plain",
                "stream": "ext://sys.stdout"
            }
        },
        "loggers": {
            "kubeapply": {
                "handlers": ["stdout"],
                "level": level.upper(),
                "propagate": False
            },
            "kubernetes": {
                "handlers": ["stdout"],
                "level": "WARNING",
                "propagate": False
            }
        }
    }


def setup_logging(level: str = "INFO") -> None:
    """Installs the configuration once per process."""
    if level.upper() not in LEVELS:
        level = "INFO"
    logging.config.dictConfig(get_logging_config(level))
