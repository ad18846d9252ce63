"""Security-related models for the login flow.

Contains PKCE parameters and the correlation values that bind a login
attempt to its callback.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE (Proof Key for Code Exchange) parameters for one login attempt.

    Immutable parameters generated for each authorization flow to prevent
    authorization code interception attacks (RFC 7636).
    """

    code_verifier: str = field(repr=False)
    code_challenge: str = field()
    code_challenge_method: str = field(default="S256")

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not (43 <= len(self.code_verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if not (43 <= len(self.code_challenge) <= 128):
            raise ValueError("code_challenge must be 43-128 characters")
        if self.code_challenge_method != "S256":
            raise ValueError("Only S256 code challenge method is supported")


@dataclass(frozen=True)
class LoginAttempt:
    """Correlation values for one in-flight login.

    Lives in the user's session from the authorization redirect until the
    callback consumes it.
    """

    state: str
    nonce: str
    code_verifier: str = field(repr=False)
    created_at: float = field(default_factory=time.time)

    def is_expired(self, ttl: float, now: float | None = None) -> bool:
        """Check if the attempt is older than ttl seconds."""
        if now is None:
            now = time.time()
        return now - self.created_at > ttl
