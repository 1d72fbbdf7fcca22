"""Authenticated user as reported by the CMS."""

from pydantic import Field

from strandly.models.base import CMSDocument, RelationId

STAFF_ROLES = frozenset({"admin", "stylist"})


class User(CMSDocument):
    email: str = Field(..., description="Login email")
    name: str | None = Field(None, description="Display name")
    roles: list[str] = Field(default_factory=list)
    stylist: RelationId | None = Field(
        None, description="Linked stylist profile for staff accounts"
    )

    @property
    def is_staff(self) -> bool:
        return bool(STAFF_ROLES.intersection(self.roles))
