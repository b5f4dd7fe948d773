"""Auth schemas: CurrentUser."""

import uuid

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Caller identity resolved from the access token + DB lookup.

    Passed explicitly into the compliance core; company roles are resolved
    per request through the record store.
    """

    user_id: uuid.UUID
    email: str
    full_name: str | None = None
