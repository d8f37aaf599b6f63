"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from boxkit.core.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_REF

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS: tuple[str, ...] = ("BOXKIT_GITHUB_TOKEN", "GH_TOKEN", "GITHUB_TOKEN")


def _github_token(cli_token: str | None = None) -> str | None:
    """Return sanitized GitHub token (cli arg takes precedence) or None."""
    candidates = [cli_token] + [os.getenv(name) for name in TOKEN_ENV_VARS]
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def _http_timeout() -> float:
    raw = os.getenv("BOXKIT_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring BOXKIT_HTTP_TIMEOUT=%r (not a number)", raw)
        return DEFAULT_HTTP_TIMEOUT
    if value <= 0:
        logger.warning("Ignoring BOXKIT_HTTP_TIMEOUT=%r (must be positive)", raw)
        return DEFAULT_HTTP_TIMEOUT
    return value


@dataclass(frozen=True)
class BoxkitSettings:
    """Settings shared by source verification and fetching."""

    github_token: str | None = None
    default_ref: str = DEFAULT_REF
    timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, cli_token: str | None = None) -> "BoxkitSettings":
        ref = (os.getenv("BOXKIT_DEFAULT_REF") or "").strip() or DEFAULT_REF
        return cls(
            github_token=_github_token(cli_token),
            default_ref=ref,
            timeout=_http_timeout(),
        )

    def auth_headers(self) -> dict[str, str]:
        """Return Authorization header dict only when a token exists."""
        return {"Authorization": f"Bearer {self.github_token}"} if self.github_token else {}
