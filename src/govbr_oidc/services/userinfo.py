"""Userinfo retrieval (OpenID Connect Core Section 5.3)."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from govbr_oidc.config import ProviderConfig
from govbr_oidc.models.errors import UserinfoError
from govbr_oidc.models.identity import IdentityRecord

logger = logging.getLogger(__name__)


class UserinfoClient:
    """Fetches the authenticated user's claims with a bearer token."""

    def __init__(self, provider: ProviderConfig, http_client: httpx.AsyncClient):
        self._provider = provider
        self._http_client = http_client

    async def fetch_identity(self, access_token: str) -> IdentityRecord:
        """Fetch and parse the userinfo claims.

        Raises:
            UserinfoError: On transport failure, timeout, error status or
                claims that do not form a valid IdentityRecord
        """
        endpoint = self._provider.userinfo_endpoint
        logger.debug(f"Fetching userinfo from {endpoint}")

        try:
            response = await self._http_client.get(
                endpoint,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UserinfoError(f"HTTP error during userinfo request: {e}") from e

        try:
            identity = IdentityRecord.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UserinfoError(f"Invalid userinfo response: {e}") from e

        logger.info(f"Fetched userinfo for subject {identity.subject}")
        return identity
