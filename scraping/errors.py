"""Error taxonomy for the FPL scraper.

AuthError covers everything that goes wrong while establishing a session,
DataError everything that goes wrong while pulling league data with one.
"""

from typing import Mapping, Optional


class FPLError(Exception):
    """Base class for all scraper errors."""


class AuthError(FPLError):
    """Login flow failed (CSRF fetch, credential POST, redirect follow)."""

    def __init__(self, message: str, status: Optional[int] = None,
                 headers: Optional[Mapping[str, str]] = None):
        super().__init__(message)
        self.status = status
        self.headers = dict(headers) if headers else {}


class ChallengeError(AuthError):
    """Bot challenge detected on the login page and not resolved."""


class SessionExpiredError(AuthError):
    """Upstream rejected the session cookies while fetching data."""


class DataError(FPLError):
    """Upstream data was missing, malformed or unreachable."""
