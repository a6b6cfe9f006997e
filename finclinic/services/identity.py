"""
Identity Resolver - Financial Clinic Survey Service
finclinic/services/identity.py

Classifies the caller from whichever credentials are present. Recomputed on
every call, so a credential clear is visible immediately.
"""
from typing import Optional

from finclinic.models.enumerations import IdentityMode
from finclinic.services.credentials import (
    ADMIN_SESSION_KEY,
    FULL_SESSION_KEY,
    SIMPLE_SESSION_KEY,
    CredentialProvider,
)


class IdentityResolver:
    def __init__(self, credentials: CredentialProvider):
        self.credentials = credentials

    def current_mode(self) -> IdentityMode:
        """Full session wins over simple session; an admin token alone is admin_only."""
        if self.credentials.get(FULL_SESSION_KEY):
            return IdentityMode.AUTHENTICATED_FULL
        if self.credentials.get(SIMPLE_SESSION_KEY):
            return IdentityMode.AUTHENTICATED_SIMPLE
        if self.credentials.get(ADMIN_SESSION_KEY):
            return IdentityMode.ADMIN_ONLY
        return IdentityMode.GUEST

    def is_authenticated_for_survey_purposes(self) -> bool:
        """True for a simple or full session. Admin tokens never count."""
        return self.current_mode() in (
            IdentityMode.AUTHENTICATED_FULL,
            IdentityMode.AUTHENTICATED_SIMPLE,
        )

    def bearer_token(self) -> Optional[str]:
        """Token attached to end-user survey calls (never the admin token)."""
        return self.credentials.get(FULL_SESSION_KEY) or self.credentials.get(SIMPLE_SESSION_KEY)
