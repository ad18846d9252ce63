"""Read access to the identity stored in a session."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from govbr_oidc.models.errors import SessionDeserializationError
from govbr_oidc.models.identity import IdentityRecord
from govbr_oidc.session.store import SessionStore

logger = logging.getLogger(__name__)


class IdentityAccessor:
    """Loads the logged-in user from a session.

    A record that cannot be read back is treated as "not logged in" rather
    than failing the request.
    """

    def get_user(self, store: SessionStore) -> IdentityRecord | None:
        payload = store.load_identity_payload()
        if not payload:
            return None

        try:
            return self._deserialize(payload)
        except SessionDeserializationError as e:
            logger.error(f"Failed to deserialize user from session: {e}")
            return None

    def _deserialize(self, payload: Any) -> IdentityRecord:
        try:
            if isinstance(payload, (str, bytes)):
                return IdentityRecord.model_validate_json(payload)
            if isinstance(payload, dict):
                return IdentityRecord.model_validate(payload)
        except ValidationError as e:
            raise SessionDeserializationError(
                f"Stored user is not a valid identity record: "
                f"{e.error_count()} validation error(s)"
            ) from e

        raise SessionDeserializationError(
            f"Unsupported stored user type: {type(payload).__name__}"
        )
