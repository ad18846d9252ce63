"""Authorization request construction.

Starts a login: generates the correlation parameters, records them in the
session, and builds the URL the browser is redirected to.
"""

from __future__ import annotations

import logging

from govbr_oidc.config import ProviderConfig
from govbr_oidc.models.flow import AuthorizationRequest
from govbr_oidc.models.security import LoginAttempt
from govbr_oidc.primitives.pkce import PKCEManager
from govbr_oidc.services.security import generate_nonce, generate_state
from govbr_oidc.session.store import SessionStore

logger = logging.getLogger(__name__)


class AuthorizationFlow:
    """Builds provider authorization redirects for new login attempts.

    Each call produces fresh state, nonce and PKCE values. No network I/O
    happens here.
    """

    def __init__(self, provider: ProviderConfig) -> None:
        self._provider = provider
        self._pkce_manager = PKCEManager()

    def start_login(self, store: SessionStore) -> str:
        """Start a login attempt for the session behind ``store``.

        The attempt is saved before the URL is returned, so a callback that
        arrives immediately already finds it.

        Args:
            store: Session of the user agent starting the login

        Returns:
            Absolute authorization endpoint URL to redirect to
        """
        pkce_params = self._pkce_manager.generate_parameters()
        attempt = LoginAttempt(
            state=generate_state(),
            nonce=generate_nonce(),
            code_verifier=pkce_params.code_verifier,
        )

        store.save_login_attempt(attempt)

        auth_request = AuthorizationRequest(
            authorization_endpoint=self._provider.authorization_endpoint,
            client_id=self._provider.client_id,
            redirect_uri=self._provider.redirect_uri,
            scope=self._provider.scopes,
            nonce=attempt.nonce,
            state=attempt.state,
            code_challenge=pkce_params.code_challenge,
            code_challenge_method=pkce_params.code_challenge_method,
        )
        authorization_url = auth_request.build_authorization_url()

        logger.info(
            f"Started login attempt for client {self._provider.client_id}, "
            f"redirecting to {self._provider.authorization_endpoint}"
        )
        return authorization_url
