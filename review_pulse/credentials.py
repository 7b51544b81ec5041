"""Persistence of the optional analytics token across sessions."""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

TOKEN_KEY = "analytics_token"
TOKEN_ENV_VAR = "REVIEW_PULSE_ANALYTICS_TOKEN"


class TokenStore:
    """Stores the analytics token in a small YAML file under a fixed key."""

    def __init__(self, path: str = "~/.review_pulse/credentials.yaml"):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed credentials file %s", self.path)
            return {}
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        os.chmod(self.path, 0o600)

    def get(self) -> Optional[str]:
        """Stored token, falling back to the environment."""
        token = self._read().get(TOKEN_KEY)
        if token:
            return str(token)
        return os.getenv(TOKEN_ENV_VAR) or None

    def set(self, token: str) -> None:
        token = token.strip()
        if not token:
            raise ValueError("Token must not be empty")
        data = self._read()
        data[TOKEN_KEY] = token
        self._write(data)
        logger.info("Saved analytics token to %s", self.path)

    def clear(self) -> None:
        data = self._read()
        if data.pop(TOKEN_KEY, None) is not None:
            self._write(data)
            logger.info("Removed analytics token from %s", self.path)


def mask_token(token: Optional[str]) -> str:
    if not token:
        return "NOT SET"
    return f"{token[:4]}...{token[-4:]}" if len(token) > 8 else "***"
