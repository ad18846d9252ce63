"""Authorization callback processing.

Runs the callback through its stages in a fixed order:

    RECEIVED -> STATE_VALIDATED -> TOKEN_EXCHANGED -> IDENTITY_FETCHED
             -> SESSION_COMMITTED

A provider-reported error ends the flow at RECEIVED. Any other failure
aborts the remaining stages, and the identity record is only written once
every earlier stage has succeeded.
"""

from __future__ import annotations

import logging
from enum import Enum

from govbr_oidc.config import ProviderConfig
from govbr_oidc.models.errors import (
    CallbackError,
    InvalidStateError,
    MissingAuthorizationCodeError,
    ProviderReportedError,
)
from govbr_oidc.models.flow import AuthorizationResponse
from govbr_oidc.models.tokens import TokenRequest
from govbr_oidc.services.security import validate_state
from govbr_oidc.services.tokens import TokenClient
from govbr_oidc.services.userinfo import UserinfoClient
from govbr_oidc.session.store import SessionStore

logger = logging.getLogger(__name__)

HOME_PATH = "/"


class CallbackStage(str, Enum):
    RECEIVED = "received"
    ERROR_REPORTED = "error_reported"
    STATE_VALIDATED = "state_validated"
    TOKEN_EXCHANGED = "token_exchanged"
    IDENTITY_FETCHED = "identity_fetched"
    SESSION_COMMITTED = "session_committed"
    FAILED = "failed"


class CallbackProcessor:
    """Turns a provider callback into an authenticated session."""

    def __init__(
        self,
        provider: ProviderConfig,
        token_client: TokenClient,
        userinfo_client: UserinfoClient,
        login_attempt_ttl: float = 600.0,
    ) -> None:
        self._provider = provider
        self._token_client = token_client
        self._userinfo_client = userinfo_client
        self._login_attempt_ttl = login_attempt_ttl

    async def handle_callback(
        self, response: AuthorizationResponse, store: SessionStore
    ) -> str:
        """Process an authorization callback.

        Args:
            response: Parameters received on the redirect URI
            store: Session of the user agent completing the login

        Returns:
            Path to redirect the browser to after a successful login

        Raises:
            ProviderReportedError: If the provider aborted the flow
            InvalidStateError: If the state is missing, expired or mismatched
            MissingAuthorizationCodeError: If no code came with a valid state
            TokenExchangeError: If the code could not be exchanged
            UserinfoError: If the user's claims could not be fetched
        """
        stage = CallbackStage.RECEIVED
        logger.debug(f"Callback stage {stage.value}")

        if response.is_error():
            logger.warning(
                f"Provider reported error on callback: {response.error} - "
                f"{response.error_description}"
            )
            logger.debug(f"Callback stage {CallbackStage.ERROR_REPORTED.value}")
            raise ProviderReportedError(
                response.error, response.error_description, response.state
            )

        try:
            code_verifier = self._consume_login_attempt(response, store)
            stage = CallbackStage.STATE_VALIDATED
            logger.debug(f"Callback stage {stage.value}")

            token_response = await self._token_client.exchange_code_for_token(
                TokenRequest(
                    token_endpoint=self._provider.token_endpoint,
                    code=response.code,
                    redirect_uri=self._provider.redirect_uri,
                    code_verifier=code_verifier,
                )
            )
            stage = CallbackStage.TOKEN_EXCHANGED
            logger.debug(f"Callback stage {stage.value}")

            identity = await self._userinfo_client.fetch_identity(
                token_response.access_token
            )
            stage = CallbackStage.IDENTITY_FETCHED
            logger.debug(f"Callback stage {stage.value}")

        except CallbackError as e:
            logger.warning(
                f"Callback {CallbackStage.FAILED.value} after stage {stage.value}: {e}"
            )
            raise
        except Exception as e:
            logger.error(
                f"Callback {CallbackStage.FAILED.value} after stage {stage.value}: "
                f"{type(e).__name__}: {e}"
            )
            raise

        store.save_identity(identity)
        store.discard_login_attempt()
        logger.info(
            f"Callback stage {CallbackStage.SESSION_COMMITTED.value}: "
            f"subject {identity.subject} logged in"
        )
        return HOME_PATH

    def _consume_login_attempt(
        self, response: AuthorizationResponse, store: SessionStore
    ) -> str:
        """Validate the callback against the stored attempt and use it up.

        A mismatched state leaves the stored attempt alone, so a forged
        callback cannot cancel a login that is genuinely in progress.

        Returns:
            The PKCE code verifier of the consumed attempt
        """
        attempt = store.load_login_attempt()
        validate_state(attempt.state if attempt else None, response.state)

        store.discard_login_attempt()

        if attempt.is_expired(self._login_attempt_ttl):
            raise InvalidStateError("Login attempt expired")
        if response.code is None:
            raise MissingAuthorizationCodeError("Missing authorization code")

        return attempt.code_verifier
