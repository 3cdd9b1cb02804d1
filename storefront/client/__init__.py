"""Python client for the storefront API, with a role-aware view guard."""
from storefront.client.session import AuthSession, Identity
from storefront.client.api import ApiError, StorefrontClient
from storefront.client.guard import GuardDecision, ViewGuard
