"""
Request-scoped context passed explicitly into every service call.
"""

from __future__ import annotations

import uuid
from typing import Optional

from app.core.errors import AuthenticationError
from scentshelf_shared.schemas.users import CurrentUser


class RequestContext:
    """Who is acting in this request. ``user`` is None for anonymous callers."""

    def __init__(
        self,
        user: Optional[CurrentUser] = None,
        token_id: Optional[str] = None,
        token_expires_at: Optional[int] = None,
    ):
        self.user = user
        self.token_id = token_id
        self.token_expires_at = token_expires_at

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[uuid.UUID]:
        return self.user.id if self.user else None

    def require_user(self) -> CurrentUser:
        """Return the acting user or reject the action outright."""
        if self.user is None:
            raise AuthenticationError()
        return self.user

    @classmethod
    def for_user(cls, user: CurrentUser) -> "RequestContext":
        return cls(user=user)
