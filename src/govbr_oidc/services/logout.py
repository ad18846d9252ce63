"""Local session termination and provider end-session redirect."""

from __future__ import annotations

import logging
from urllib.parse import quote

from govbr_oidc.config import ProviderConfig
from govbr_oidc.session.store import SessionStore

logger = logging.getLogger(__name__)


class LogoutHandler:
    """Ends the local session and points the browser at the provider."""

    def __init__(self, provider: ProviderConfig) -> None:
        self._provider = provider

    def logout(self, store: SessionStore) -> str:
        """Invalidate the session and return the end-session URL.

        The session is cleared before the URL is built, so nothing on the
        same session can observe the old identity once the redirect is sent.
        """
        store.invalidate()
        logger.info("Local session invalidated")

        redirect = quote(self._provider.post_logout_redirect_uri, safe="")
        return (
            f"{self._provider.end_session_endpoint}"
            f"?post_logout_redirect_uri={redirect}"
        )
