"""Identity record model built from the provider's userinfo claims."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IdentityRecord(BaseModel):
    """The authenticated user as described by the userinfo endpoint.

    Field aliases are the OpenID Connect standard claim names, which are
    also the names used when the record is serialized. Only ``subject`` is
    guaranteed; the rest depend on the scopes the user granted.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,
    )

    subject: str = Field(alias="sub", min_length=1)
    display_name: str | None = Field(default=None, alias="name")
    profile_url: str | None = Field(default=None, alias="profile")
    picture_url: str | None = Field(default=None, alias="picture")
    email: str | None = None
    email_verified: bool = False
    phone_number: str | None = None
    phone_number_verified: bool = False

    @field_validator("email_verified", "phone_number_verified", mode="before")
    @classmethod
    def null_flag_is_false(cls, v: object) -> object:
        """Treat a null verification flag as unverified."""
        return False if v is None else v

    def to_claims(self) -> dict:
        """Return the record as a claims dictionary."""
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
