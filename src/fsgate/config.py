"""Server configuration.

Values come from the environment (optionally seeded from a `.env` file) and
can be overridden by command-line flags.
"""

import os
import secrets
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import load_dotenv

from fsgate.server.access import ContainmentMode

ENV_PREFIX = "FSGATE_"
TRANSPORTS = ("stdio", "http")
_TRUTHY = {"1", "true", "yes", "on"}


def generate_secret() -> str:
    return secrets.token_urlsafe(32)


@dataclass
class ServerConfig:
    secret: str = field(default_factory=generate_secret)
    unrestricted: bool = False
    containment: ContainmentMode = ContainmentMode.SEGMENTS
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    secret_generated: bool = False

    def __post_init__(self) -> None:
        self.containment = ContainmentMode(self.containment)
        if self.transport not in TRANSPORTS:
            raise ValueError(
                f"Unknown transport '{self.transport}', expected one of {TRANSPORTS}"
            )
        if not self.secret:
            raise ValueError("Secret must not be empty")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ServerConfig":
        """Build a config from FSGATE_* variables.

        When `env` is None, `.env` is loaded into the process environment
        first and `os.environ` is read. A missing FSGATE_SECRET gets a freshly
        generated one.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        secret = get("SECRET", "")
        secret_generated = not secret
        if secret_generated:
            secret = generate_secret()

        return cls(
            secret=secret,
            unrestricted=get("UNRESTRICTED", "").strip().lower() in _TRUTHY,
            containment=ContainmentMode(get("CONTAINMENT", "segments").lower()),
            transport=get("TRANSPORT", "stdio").lower(),
            host=get("HOST", "127.0.0.1"),
            port=int(get("PORT", "8000")),
            log_level=get("LOG_LEVEL", "INFO").upper(),
            secret_generated=secret_generated,
        )
