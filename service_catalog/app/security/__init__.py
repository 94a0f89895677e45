"""
Security helpers for the catalog service.

The user directory resolves HTTP Basic credentials to principals and the
authorization engine decides, per request path, whether a principal may
proceed.
"""

from .directory import Principal, UserDirectory, DEFAULT_USERS, ROLE_ADMIN, ROLE_STREAM
from .engine import AccessRule, AuthorizationDecision, AuthorizationEngine, default_engine

__all__ = [
    "AccessRule",
    "AuthorizationDecision",
    "AuthorizationEngine",
    "DEFAULT_USERS",
    "Principal",
    "ROLE_ADMIN",
    "ROLE_STREAM",
    "UserDirectory",
    "default_engine",
]
