from __future__ import annotations

"""
Identity: the real authenticated principal.

The identity provider is owned by the host application. The core only reads
snapshots from it and calls ``sign_out()`` on idle expiry.
"""

from portalgate.core.identity.models import ROLE_HIERARCHY, ROLE_LABELS, IdentitySnapshot, Principal, UserRole
from portalgate.core.identity.provider import IdentityProvider, InMemoryIdentityProvider

__all__ = [
    "ROLE_HIERARCHY",
    "ROLE_LABELS",
    "IdentitySnapshot",
    "Principal",
    "UserRole",
    "IdentityProvider",
    "InMemoryIdentityProvider",
]
