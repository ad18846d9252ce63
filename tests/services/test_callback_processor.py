"""Tests for authorization callback processing.

High-impact tests covering the callback stages:
- Provider-reported errors short-circuit without network calls
- State validation (CSRF protection) before any token exchange
- Single-use, time-limited login attempts
- All-or-nothing commit of the identity record
"""

from unittest.mock import AsyncMock

import pytest

from govbr_oidc.models.errors import (
    InvalidStateError,
    MissingAuthorizationCodeError,
    ProviderReportedError,
    TokenExchangeError,
    UserinfoError,
)
from govbr_oidc.models.flow import AuthorizationResponse
from govbr_oidc.models.identity import IdentityRecord
from govbr_oidc.models.security import LoginAttempt
from govbr_oidc.models.tokens import TokenResponse
from govbr_oidc.services.callback import CallbackProcessor
from govbr_oidc.services.tokens import TokenClient
from govbr_oidc.services.userinfo import UserinfoClient

STATE = "state-abc"
VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"


class BaseCallbackTest:
    @pytest.fixture(autouse=True)
    def setup_processor(self, provider_config, store, session_data):
        # Arrange
        self.provider = provider_config
        self.store = store
        self.session_data = session_data
        self.token_client = AsyncMock(spec=TokenClient)
        self.userinfo_client = AsyncMock(spec=UserinfoClient)
        self.token_client.exchange_code_for_token.return_value = TokenResponse(
            access_token="T"
        )
        self.userinfo_client.fetch_identity.return_value = IdentityRecord(
            sub="123", name="Alice"
        )
        self.processor = CallbackProcessor(
            provider_config,
            self.token_client,
            self.userinfo_client,
            login_attempt_ttl=600.0,
        )

    def start_attempt(self, **overrides) -> LoginAttempt:
        values = {"state": STATE, "nonce": "nonce-abc", "code_verifier": VERIFIER}
        values.update(overrides)
        attempt = LoginAttempt(**values)
        self.store.save_login_attempt(attempt)
        return attempt


class TestSuccessfulCallback(BaseCallbackTest):
    async def test_commits_identity_and_redirects_home(self) -> None:
        # Arrange
        self.start_attempt()

        # Act
        target = await self.processor.handle_callback(
            AuthorizationResponse(code="auth-code", state=STATE), self.store
        )

        # Assert
        assert target == "/"
        stored = IdentityRecord.model_validate_json(self.store.load_identity_payload())
        assert stored.subject == "123"
        assert stored.display_name == "Alice"
        assert self.store.load_login_attempt() is None

    async def test_exchange_uses_stored_verifier(self) -> None:
        # Arrange
        self.start_attempt()

        # Act
        await self.processor.handle_callback(
            AuthorizationResponse(code="auth-code", state=STATE), self.store
        )

        # Assert
        self.token_client.exchange_code_for_token.assert_awaited_once()
        request = self.token_client.exchange_code_for_token.call_args[0][0]
        assert request.token_endpoint == self.provider.token_endpoint
        assert request.code == "auth-code"
        assert request.redirect_uri == self.provider.redirect_uri
        assert request.code_verifier == VERIFIER
        self.userinfo_client.fetch_identity.assert_awaited_once_with("T")

    async def test_replayed_callback_is_rejected(self) -> None:
        # Arrange
        self.start_attempt()
        callback = AuthorizationResponse(code="auth-code", state=STATE)
        await self.processor.handle_callback(callback, self.store)

        # Act / Assert
        with pytest.raises(InvalidStateError):
            await self.processor.handle_callback(callback, self.store)
        assert self.token_client.exchange_code_for_token.await_count == 1


class TestProviderReportedError(BaseCallbackTest):
    async def test_access_denied_short_circuits(self) -> None:
        # Arrange
        self.start_attempt()
        before = dict(self.session_data)

        # Act
        with pytest.raises(ProviderReportedError) as exc_info:
            await self.processor.handle_callback(
                AuthorizationResponse(
                    error="access_denied",
                    error_description="User denied access",
                    state=STATE,
                ),
                self.store,
            )

        # Assert
        assert exc_info.value.to_payload() == {
            "error": "access_denied",
            "error_description": "User denied access",
            "state": STATE,
        }
        self.token_client.exchange_code_for_token.assert_not_awaited()
        self.userinfo_client.fetch_identity.assert_not_awaited()
        assert self.session_data == before


class TestStateValidation(BaseCallbackTest):
    async def test_mismatched_state_never_exchanges_code(self) -> None:
        # Arrange
        self.start_attempt()

        # Act / Assert
        with pytest.raises(InvalidStateError):
            await self.processor.handle_callback(
                AuthorizationResponse(code="auth-code", state="forged"), self.store
            )
        self.token_client.exchange_code_for_token.assert_not_awaited()

    async def test_mismatched_state_keeps_genuine_attempt(self) -> None:
        # Arrange
        attempt = self.start_attempt()

        # Act
        with pytest.raises(InvalidStateError):
            await self.processor.handle_callback(
                AuthorizationResponse(code="auth-code", state="forged"), self.store
            )

        # Assert
        assert self.store.load_login_attempt() == attempt

    async def test_no_stored_attempt_is_rejected(self) -> None:
        # Act / Assert
        with pytest.raises(InvalidStateError):
            await self.processor.handle_callback(
                AuthorizationResponse(code="auth-code", state=STATE), self.store
            )
        self.token_client.exchange_code_for_token.assert_not_awaited()

    async def test_missing_callback_state_is_rejected(self) -> None:
        # Arrange
        self.start_attempt()

        # Act / Assert
        with pytest.raises(InvalidStateError):
            await self.processor.handle_callback(
                AuthorizationResponse(code="auth-code"), self.store
            )
        self.token_client.exchange_code_for_token.assert_not_awaited()

    async def test_expired_attempt_is_rejected_and_consumed(self) -> None:
        # Arrange
        self.start_attempt(created_at=0.0)

        # Act / Assert
        with pytest.raises(InvalidStateError, match="expired"):
            await self.processor.handle_callback(
                AuthorizationResponse(code="auth-code", state=STATE), self.store
            )
        self.token_client.exchange_code_for_token.assert_not_awaited()
        assert self.store.load_login_attempt() is None

    async def test_missing_code_is_rejected(self) -> None:
        # Arrange
        self.start_attempt()

        # Act / Assert
        with pytest.raises(MissingAuthorizationCodeError):
            await self.processor.handle_callback(
                AuthorizationResponse(state=STATE), self.store
            )
        self.token_client.exchange_code_for_token.assert_not_awaited()


class TestStageFailures(BaseCallbackTest):
    async def test_token_failure_stores_no_identity(self) -> None:
        # Arrange
        self.start_attempt()
        self.token_client.exchange_code_for_token.side_effect = TokenExchangeError(
            "invalid_grant"
        )

        # Act / Assert
        with pytest.raises(TokenExchangeError):
            await self.processor.handle_callback(
                AuthorizationResponse(code="auth-code", state=STATE), self.store
            )
        self.userinfo_client.fetch_identity.assert_not_awaited()
        assert self.store.load_identity_payload() is None
        assert self.store.load_login_attempt() is None

    async def test_userinfo_failure_stores_no_identity(self) -> None:
        # Arrange
        self.start_attempt()
        self.userinfo_client.fetch_identity.side_effect = UserinfoError("401")

        # Act / Assert
        with pytest.raises(UserinfoError):
            await self.processor.handle_callback(
                AuthorizationResponse(code="auth-code", state=STATE), self.store
            )
        assert self.store.load_identity_payload() is None
