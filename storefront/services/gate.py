# storefront/services/gate.py
import enum
from typing import Optional

from fastapi import Depends

from storefront.errors import AuthenticationRequired, AuthorizationDenied
from storefront.models.users import Role, User
from storefront.utils.tokenJWT import get_current_identity


# How sensitive a route is
class Access(str, enum.Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


def authorize(identity: Optional[User], access: Access) -> Optional[User]:
    """Allow or deny a request.

    Raises AuthenticationRequired when a protected route has no caller and
    AuthorizationDenied when a signed-in caller lacks the role. The two are
    never swapped: a logged-in non-admin gets 403.
    """
    if access == Access.PUBLIC:
        return identity
    if identity is None:
        raise AuthenticationRequired()
    if access == Access.ADMIN and identity.role != Role.ADMIN:
        raise AuthorizationDenied("This action is restricted to administrators.")
    return identity


# Dependency factory used by every router
def require(access: Access):
    def _checker(identity: Optional[User] = Depends(get_current_identity)) -> Optional[User]:
        return authorize(identity, access)
    return _checker


public = require(Access.PUBLIC)
authenticated = require(Access.AUTHENTICATED)
admin_only = require(Access.ADMIN)
