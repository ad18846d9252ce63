"""Per-session storage for login attempts and identity records.

The store is the only place correlation values and the authenticated
identity live between requests. Every component receives it explicitly
instead of reaching into the framework's session dictionary.

Session contents stay on the server. The browser's signed cookie only
carries a random session ID, so discarding or invalidating server-side
state cannot be undone by replaying an older cookie.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from govbr_oidc.models.identity import IdentityRecord
from govbr_oidc.models.security import LoginAttempt

logger = logging.getLogger(__name__)

STATE_KEY = "oauth_state"
NONCE_KEY = "oauth_nonce"
CODE_VERIFIER_KEY = "code_verifier"
STARTED_AT_KEY = "oauth_started_at"
USER_KEY = "user"
SESSION_ID_KEY = "sid"

_LOGIN_ATTEMPT_KEYS = (STATE_KEY, NONCE_KEY, CODE_VERIFIER_KEY, STARTED_AT_KEY)


class SessionStore(Protocol):
    """Typed access to one user agent's session."""

    def load_login_attempt(self) -> LoginAttempt | None: ...

    def save_login_attempt(self, attempt: LoginAttempt) -> None: ...

    def discard_login_attempt(self) -> None: ...

    def load_identity_payload(self) -> Any: ...

    def save_identity(self, record: IdentityRecord) -> None: ...

    def invalidate(self) -> None: ...


class MappingSessionStore:
    """SessionStore over a mutable mapping.

    Reads go through ``_read()`` and writes through ``_write()`` so
    subclasses can decide where the mapping lives.
    """

    def __init__(self, data: MutableMapping[str, Any]) -> None:
        self._data = data

    def _read(self) -> MutableMapping[str, Any]:
        return self._data

    def _write(self) -> MutableMapping[str, Any]:
        return self._data

    # ================================
    # Login attempt
    # ================================

    def load_login_attempt(self) -> LoginAttempt | None:
        """Return the in-flight login attempt.

        Returns None if any of its values is absent.
        """
        data = self._read()
        state = data.get(STATE_KEY)
        nonce = data.get(NONCE_KEY)
        code_verifier = data.get(CODE_VERIFIER_KEY)
        started_at = data.get(STARTED_AT_KEY)
        if not (state and nonce and code_verifier) or started_at is None:
            return None

        try:
            created_at = float(started_at)
        except (TypeError, ValueError):
            logger.warning("Discarding login attempt with unreadable start time")
            return None

        return LoginAttempt(
            state=state,
            nonce=nonce,
            code_verifier=code_verifier,
            created_at=created_at,
        )

    def save_login_attempt(self, attempt: LoginAttempt) -> None:
        data = self._write()
        data[STATE_KEY] = attempt.state
        data[NONCE_KEY] = attempt.nonce
        data[CODE_VERIFIER_KEY] = attempt.code_verifier
        data[STARTED_AT_KEY] = attempt.created_at

    def discard_login_attempt(self) -> None:
        data = self._read()
        for key in _LOGIN_ATTEMPT_KEYS:
            data.pop(key, None)

    # ================================
    # Identity
    # ================================

    def load_identity_payload(self) -> Any:
        """Return the stored identity exactly as it was persisted."""
        return self._read().get(USER_KEY)

    def save_identity(self, record: IdentityRecord) -> None:
        self._write()[USER_KEY] = record.to_json()

    # ================================
    # Termination
    # ================================

    def invalidate(self) -> None:
        """Drop everything held for this session."""
        self._read().clear()


@dataclass
class _SessionEntry:
    data: dict[str, Any] = field(default_factory=dict)
    last_seen: float = field(default_factory=time.monotonic)


class SessionRegistry:
    """In-process map from session IDs to session contents.

    Session IDs are 32-byte random tokens. Entries idle for longer than
    ``ttl`` seconds are evicted on the next access.
    """

    def __init__(self, ttl: float) -> None:
        self._ttl = ttl
        self._sessions: dict[str, _SessionEntry] = {}

    # ================================
    # Creation
    # ================================

    def create_session(self) -> str:
        """Create an empty session and return its ID."""
        self.evict_expired()
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = _SessionEntry()
        logger.debug("Created session")
        return session_id

    # ================================
    # Access
    # ================================

    def get_data(self, session_id: str) -> dict[str, Any] | None:
        """Get the contents of a live session.

        Returns None if the session doesn't exist or has expired.
        """
        self.evict_expired()
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        entry.last_seen = time.monotonic()
        return entry.data

    def session_exists(self, session_id: str) -> bool:
        return self.get_data(session_id) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    # ================================
    # Termination
    # ================================

    def terminate_session(self, session_id: str) -> bool:
        """Terminate a session.

        Returns True if session existed and was terminated, False otherwise.
        """
        if self._sessions.pop(session_id, None) is not None:
            logger.debug("Terminated session")
            return True
        return False

    def evict_expired(self, now: float | None = None) -> int:
        """Drop sessions idle for longer than the TTL.

        Returns the number of sessions evicted.
        """
        if now is None:
            now = time.monotonic()
        expired = [
            session_id
            for session_id, entry in self._sessions.items()
            if now - entry.last_seen > self._ttl
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired session(s)")
        return len(expired)


class ServerSessionStore(MappingSessionStore):
    """SessionStore whose contents live in a SessionRegistry.

    ``cookie`` is the signed per-browser mapping (Starlette's
    ``request.session``); it only ever holds the session ID. A session is
    created on the first write, so anonymous reads leave no state behind.
    """

    def __init__(
        self, registry: SessionRegistry, cookie: MutableMapping[str, Any]
    ) -> None:
        super().__init__({})
        self._registry = registry
        self._cookie = cookie

    @property
    def session_id(self) -> str | None:
        return self._cookie.get(SESSION_ID_KEY)

    def _read(self) -> MutableMapping[str, Any]:
        session_id = self.session_id
        data = self._registry.get_data(session_id) if session_id else None
        return data if data is not None else {}

    def _write(self) -> MutableMapping[str, Any]:
        session_id = self.session_id
        data = self._registry.get_data(session_id) if session_id else None
        if data is None:
            data = self._start_session()
        return data

    def _start_session(self) -> dict[str, Any]:
        session_id = self._registry.create_session()
        self._cookie.clear()
        self._cookie[SESSION_ID_KEY] = session_id
        return self._registry.get_data(session_id)

    def invalidate(self) -> None:
        """Delete the server-side session and issue a fresh, empty one."""
        session_id = self.session_id
        if session_id:
            self._registry.terminate_session(session_id)
        self._start_session()
