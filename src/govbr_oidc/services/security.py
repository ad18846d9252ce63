"""Security utilities for the login flow.

Provides cryptographically secure generation and validation of the
correlation parameters that tie a callback to its login attempt.
"""

from __future__ import annotations

import secrets

from govbr_oidc.models.errors import InvalidStateError


def generate_state() -> str:
    """Generate cryptographically secure state parameter.

    The state parameter provides CSRF protection by ensuring the callback
    matches the original authorization request.
    """
    return secrets.token_urlsafe(32)


def generate_nonce() -> str:
    """Generate cryptographically secure nonce for ID token replay checks."""
    return secrets.token_urlsafe(32)


def validate_state(expected: str | None, actual: str | None) -> None:
    """Validate state parameter matches expected value.

    Args:
        expected: State stored when the login started, if any
        actual: State parameter from the callback URL

    Raises:
        InvalidStateError: If either side is missing or they don't match
    """
    if not expected:
        raise InvalidStateError("No login attempt in progress for this session")
    if not actual:
        raise InvalidStateError("Callback missing required state parameter")
    if not secrets.compare_digest(expected.encode(), actual.encode()):
        raise InvalidStateError("State parameter mismatch - possible CSRF attack")
