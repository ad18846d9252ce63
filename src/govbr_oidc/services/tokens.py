"""Authorization code to token exchange.

Implements the RFC 6749 token endpoint request with the PKCE
code_verifier (RFC 7636) and HTTP Basic client authentication.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from govbr_oidc.config import ProviderConfig
from govbr_oidc.models.errors import TokenExchangeError
from govbr_oidc.models.tokens import TokenRequest, TokenResponse

logger = logging.getLogger(__name__)


class TokenClient:
    """Exchanges authorization codes at the provider's token endpoint.

    Makes exactly one attempt per code: codes are single-use, so a retry
    would be rejected anyway.
    """

    def __init__(self, provider: ProviderConfig, http_client: httpx.AsyncClient):
        self._provider = provider
        self._http_client = http_client

    async def exchange_code_for_token(
        self, token_request: TokenRequest
    ) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Args:
            token_request: Token exchange request parameters

        Returns:
            TokenResponse: Successful response carrying an access token

        Raises:
            TokenExchangeError: On transport failure, timeout, error status
                or a response without an access token
        """
        logger.debug(f"Exchanging authorization code at {token_request.token_endpoint}")

        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        try:
            response = await self._http_client.post(
                token_request.token_endpoint,
                data=token_request.to_form_data(),
                headers=headers,
                auth=httpx.BasicAuth(
                    self._provider.client_id, self._provider.client_secret
                ),
            )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"HTTP error during token exchange: {e}") from e

        return self._parse_token_response(response)

    def _parse_token_response(self, response: httpx.Response) -> TokenResponse:
        """Parse token endpoint response.

        Raises:
            TokenExchangeError: If response is an error or cannot be parsed
        """
        try:
            token_response = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TokenExchangeError(
                f"Invalid token response format (status {response.status_code})"
            ) from e

        if not response.is_success or token_response.is_error():
            logger.warning(
                f"Token exchange failed with {response.status_code}: "
                f"{token_response.error} - {token_response.error_description}"
            )
            raise TokenExchangeError(
                f"Token endpoint returned {response.status_code}: "
                f"{token_response.error or 'unknown_error'}"
            )

        if not token_response.is_success():
            raise TokenExchangeError("Token response missing required access_token")

        logger.info("Token exchange successful")
        return token_response
