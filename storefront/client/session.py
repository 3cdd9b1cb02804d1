# storefront/client/session.py
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

KNOWN_ROLES = ("admin", "user")


@dataclass(frozen=True)
class Identity:
    user_id: int
    name: str
    email: str
    role: Optional[str]

    @classmethod
    def from_payload(cls, data: dict) -> "Identity":
        role = data.get("role")
        if role not in KNOWN_ROLES:
            # An unrecognised role gets no privileges on the client side
            logger.warning("Ignoring unknown role %r for user %s", role, data.get("id"))
            role = None
        return cls(user_id=data["id"], name=data.get("name", ""), email=data.get("email", ""), role=role)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class AuthSession:
    """Holds the bearer token and the signed-in identity for one client.

    Passed explicitly to the API client and the view guard instead of being
    read from global state.
    """

    def __init__(self, token: Optional[str] = None, identity: Optional[Identity] = None):
        self.token = token
        self.identity = identity

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.identity is not None

    def start(self, token: str, user: dict) -> None:
        self.token = token
        self.identity = Identity.from_payload(user)

    def refresh(self, user: dict) -> None:
        self.identity = Identity.from_payload(user)

    def clear(self) -> None:
        self.token = None
        self.identity = None

    def auth_headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
