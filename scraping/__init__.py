"""Scraping module - FPL portal login and league standings fetchers.

This module contains:
- Browser-flavoured HTTP client (http_client.py)
- CSRF form login and session store (auth.py)
- Gameweek standings aggregation (fpl_api.py)
- Error taxonomy (errors.py)
"""

from .errors import FPLError, AuthError, ChallengeError, SessionExpiredError, DataError
from .http_client import BrowserHTTPClient, DEFAULT_HEADERS
from .auth import FPLAuthenticator, FPLSession, LoginOutcome, LoginResult, SessionStore
from .fpl_api import GameweekAggregator
