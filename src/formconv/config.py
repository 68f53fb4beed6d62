"""
Runtime configuration of the command line tool and the HTTP server.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class ServerConfig:
    """
    Settings of the HTTP server, read from the environment.

    Properties:
        port: TCP port to listen on (PORT, mandatory)
        static_dir: Directory served at "/" (FORMCONV_STATIC_DIR)
        log_level: Logging level name (FORMCONV_LOG_LEVEL)
    """

    port: int
    static_dir: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Raises:
            ValueError: If PORT is missing or not a number
        """
        if environ is None:
            environ = os.environ
        port = environ.get("PORT", "")
        if port == "":
            raise ValueError("$PORT must be set!")
        if not port.isdigit():
            raise ValueError(f"Invalid $PORT {port!r}")
        return cls(
            port=int(port),
            static_dir=environ.get("FORMCONV_STATIC_DIR") or None,
            log_level=environ.get("FORMCONV_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a stderr handler on the root logger."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
