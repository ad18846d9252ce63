import pytest

from govbr_oidc.config import AppConfig, ProviderConfig
from govbr_oidc.session.store import MappingSessionStore

PROVIDER_URL = "https://sso.staging.acesso.gov.br"


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        provider_url=PROVIDER_URL,
        redirect_uri="https://myapp.example.com/openid",
        scopes="openid email profile",
        client_id="client-123",
        client_secret="super-secret",
        post_logout_redirect_uri="https://myapp.example.com/logout/govbr",
    )


@pytest.fixture
def app_config(provider_config: ProviderConfig) -> AppConfig:
    return AppConfig(
        provider=provider_config,
        session_secret="test-session-secret",
        http_timeout=5.0,
        login_attempt_ttl=600.0,
    )


@pytest.fixture
def session_data() -> dict:
    return {}


@pytest.fixture
def store(session_data: dict) -> MappingSessionStore:
    return MappingSessionStore(session_data)
