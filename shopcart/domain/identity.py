# shopcart/domain/identity.py
from dataclasses import dataclass

from shopcart.domain.errors import InvalidIdentity


@dataclass(frozen=True)
class Identity:
    """Owner of a cart: an authenticated user or an anonymous session, never both."""

    user_id: int | None = None
    session_id: str | None = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise InvalidIdentity("Exactly one of user ID or session ID is required")

    @classmethod
    def resolve(cls, user_id: int | None = None, session_id: str | None = None) -> "Identity":
        # zalogowany uzytkownik ma pierwszenstwo przed sesja
        if user_id is not None:
            return cls(user_id=user_id)
        if session_id:
            return cls(session_id=session_id)
        raise InvalidIdentity()

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def channel(self) -> str:
        if self.user_id is not None:
            return f"user-{self.user_id}"
        return f"session-{self.session_id}"

    def as_filter(self) -> dict:
        if self.user_id is not None:
            return {"user_id": self.user_id}
        return {"session_id": self.session_id}
