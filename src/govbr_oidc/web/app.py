"""Starlette application exposing the login flow to browsers."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

import httpx
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from govbr_oidc.config import AppConfig
from govbr_oidc.models.errors import (
    InvalidStateError,
    MissingAuthorizationCodeError,
    ProviderReportedError,
)
from govbr_oidc.models.flow import AuthorizationResponse
from govbr_oidc.services.callback import CallbackProcessor
from govbr_oidc.services.flow import AuthorizationFlow
from govbr_oidc.services.identity import IdentityAccessor
from govbr_oidc.services.logout import LogoutHandler
from govbr_oidc.services.tokens import TokenClient
from govbr_oidc.services.userinfo import UserinfoClient
from govbr_oidc.session.store import ServerSessionStore, SessionRegistry

logger = logging.getLogger(__name__)


def create_http_client(timeout: float) -> httpx.AsyncClient:
    """Create the outbound client used for provider calls.

    Keep-alive is disabled so no connection outlives the request that
    opened it.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        limits=httpx.Limits(max_keepalive_connections=0),
    )


class OAuthRoutes:
    """Request handlers for the login, callback, logout and user routes."""

    def __init__(
        self,
        config: AppConfig,
        http_client: httpx.AsyncClient,
        sessions: SessionRegistry,
    ) -> None:
        provider = config.provider
        self.sessions = sessions
        self.flow = AuthorizationFlow(provider)
        self.callback_processor = CallbackProcessor(
            provider,
            TokenClient(provider, http_client),
            UserinfoClient(provider, http_client),
            login_attempt_ttl=config.login_attempt_ttl,
        )
        self.logout_handler = LogoutHandler(provider)
        self.identity = IdentityAccessor()

    def session_store(self, request: Request) -> ServerSessionStore:
        return ServerSessionStore(self.sessions, request.session)

    def routes(self) -> list[Route]:
        return [
            Route("/", self.index, methods=["GET"]),
            Route("/user", self.user, methods=["GET"]),
            Route("/login", self.login, methods=["GET"]),
            Route("/openid", self.callback, methods=["GET"]),
            Route("/logout", self.logout, methods=["GET"]),
            Route("/logout/govbr", self.logout_landing, methods=["GET"]),
        ]

    async def index(self, request: Request) -> Response:
        return RedirectResponse("/user", status_code=302)

    async def user(self, request: Request) -> Response:
        """Return the logged-in user's claims, or 401."""
        user = self.identity.get_user(self.session_store(request))
        if user is None:
            return JSONResponse(
                {"error": "User not logged in", "code": 401}, status_code=401
            )
        return JSONResponse(user.to_claims())

    async def login(self, request: Request) -> Response:
        try:
            login_url = self.flow.start_login(self.session_store(request))
        except Exception as e:
            logger.error(f"Error generating login URL: {e}")
            return JSONResponse(
                {"error": "Error generating login URL"}, status_code=500
            )
        return RedirectResponse(login_url, status_code=302)

    async def callback(self, request: Request) -> Response:
        """Complete a login from the provider's redirect."""
        auth_response = AuthorizationResponse.from_query_params(request.query_params)

        try:
            target = await self.callback_processor.handle_callback(
                auth_response, self.session_store(request)
            )
        except ProviderReportedError as e:
            return JSONResponse(e.to_payload(), status_code=400)
        except (InvalidStateError, MissingAuthorizationCodeError):
            return JSONResponse(
                {
                    "error": "invalid_request",
                    "error_description": "Invalid or expired login attempt",
                },
                status_code=400,
            )
        except Exception as e:
            logger.error(f"Error processing callback: {type(e).__name__}")
            return JSONResponse(
                {"error": "Error processing callback"}, status_code=500
            )

        return RedirectResponse(target, status_code=302)

    async def logout(self, request: Request) -> Response:
        logout_url = self.logout_handler.logout(self.session_store(request))
        return RedirectResponse(logout_url, status_code=302)

    async def logout_landing(self, request: Request) -> Response:
        """Landing page for the provider's post-logout redirect."""
        return RedirectResponse("/", status_code=302)


def create_app(
    config: AppConfig, http_client: httpx.AsyncClient | None = None
) -> Starlette:
    """Build the ASGI application.

    Args:
        config: Validated application configuration
        http_client: Outbound client for provider calls. When omitted one is
            created here and closed on shutdown.

    Session contents are kept in an in-process registry; the signed cookie
    only carries the session ID.

    Returns:
        Starlette: The configured application
    """
    owns_client = http_client is None
    client = http_client or create_http_client(config.http_timeout)
    sessions = SessionRegistry(ttl=config.session_max_age)
    oauth_routes = OAuthRoutes(config, client, sessions)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(
            f"Login service ready for provider {config.provider.provider_url}"
        )
        try:
            yield
        finally:
            if owns_client:
                await client.aclose()

    app = Starlette(
        routes=oauth_routes.routes(),
        middleware=[
            Middleware(
                SessionMiddleware,
                secret_key=config.session_secret,
                session_cookie=config.session_cookie,
                max_age=config.session_max_age,
                same_site="lax",
                https_only=config.https_only,
            )
        ],
        lifespan=lifespan,
    )
    app.state.sessions = sessions
    return app
