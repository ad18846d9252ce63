"""Exception hierarchy for the Gov.br OpenID Connect login flow.

Provides specific exception types for each failure mode of the login
protocol so the web layer can map them to the right response.
"""

from __future__ import annotations


class OIDCError(Exception):
    """Base exception for all login flow errors."""

    pass


class ConfigurationError(OIDCError):
    """Raised when process configuration is invalid."""

    pass


class ConfigurationMissingError(ConfigurationError):
    """Raised at startup when required configuration values are absent."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Missing required environment variables: {', '.join(self.missing)}"
        )


class CallbackError(OIDCError):
    """Raised when the authorization callback cannot be accepted."""

    pass


class ProviderReportedError(CallbackError):
    """Raised when the identity provider itself aborted the flow.

    Carries the provider's error fields so they can be returned to the
    caller as-is.
    """

    def __init__(
        self,
        error: str,
        error_description: str | None = None,
        state: str | None = None,
    ) -> None:
        self.error = error
        self.error_description = error_description
        self.state = state
        super().__init__(
            f"Provider reported error: {error} ({error_description or ''})"
        )

    def to_payload(self) -> dict[str, str | None]:
        return {
            "error": self.error,
            "error_description": self.error_description,
            "state": self.state,
        }


class InvalidStateError(CallbackError):
    """Raised when OAuth state parameter validation fails.

    This indicates a missing, expired or mismatched state parameter,
    which could indicate a CSRF or replay attack.
    """

    pass


class MissingAuthorizationCodeError(CallbackError):
    """Raised when a callback with a valid state carries no code."""

    pass


class TokenExchangeError(OIDCError):
    """Raised when authorization code to token exchange fails."""

    pass


class UserinfoError(OIDCError):
    """Raised when the userinfo request or its parsing fails."""

    pass


class SessionDeserializationError(OIDCError):
    """Raised when a stored identity record cannot be read back."""

    pass
