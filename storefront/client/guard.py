# storefront/client/guard.py
from dataclasses import dataclass
from typing import Dict, List, Optional

from storefront.client.session import AuthSession

PUBLIC = "public"
AUTHENTICATED = "authenticated"
ADMIN = "admin"

LOGIN_PATH = "/login"
HOME_PATH = "/products"

# Mirror of the server's route policy, keyed by client view name
VIEW_ACCESS: Dict[str, str] = {
    "login": PUBLIC,
    "register": PUBLIC,
    "products": PUBLIC,
    "product_detail": AUTHENTICATED,
    "categories": AUTHENTICATED,
    "category_detail": AUTHENTICATED,
    "profile": AUTHENTICATED,
    "admin.products": ADMIN,
    "admin.categories": ADMIN,
    "admin.users": ADMIN,
}


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    redirect: Optional[str] = None


class ViewGuard:
    """Decides which views to offer before any request is made.

    Only a UX hint: the server enforces the real policy. Anything the guard
    cannot classify (unknown view, unknown role) is hidden.
    """

    def __init__(self, session: AuthSession, view_access: Optional[Dict[str, str]] = None):
        self.session = session
        self.view_access = view_access if view_access is not None else VIEW_ACCESS

    def check(self, view: str) -> GuardDecision:
        access = self.view_access.get(view)
        if access is None:
            return GuardDecision(False, HOME_PATH)
        if access == PUBLIC:
            return GuardDecision(True)
        if not self.session.is_authenticated:
            return GuardDecision(False, LOGIN_PATH)

        role = self.session.identity.role
        if access == AUTHENTICATED and role is not None:
            return GuardDecision(True)
        if access == ADMIN and role == "admin":
            return GuardDecision(True)
        return GuardDecision(False, HOME_PATH)

    def can_view(self, view: str) -> bool:
        return self.check(view).allowed

    def visible_views(self) -> List[str]:
        """Views to show in navigation for the current identity."""
        return [view for view in self.view_access if self.can_view(view)]
