"""FPL portal authentication.

Form login against users.premierleague.com:
1. GET the login page and scrape the ``csrfmiddlewaretoken`` input
   (retrying once with the DataDome cookie if the page answers 403)
2. POST credentials with the token, without following redirects
3. Capture the Set-Cookie headers from the 302 and follow it manually

The resulting cookies are held by a SessionStore that serializes concurrent
logins so only one caller ever talks to the login page at a time.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from scraping.errors import AuthError, ChallengeError
from scraping.http_client import BrowserHTTPClient, set_cookie_headers
from utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

LOGIN_URL = "https://users.premierleague.com/accounts/login/"
REDIRECT_URI = "https://fantasy.premierleague.com/"
APP_ID = "plfpl-web"
CSRF_FIELD = "csrfmiddlewaretoken"
CHALLENGE_STATUS = 403
CHALLENGE_COOKIE = "datadome"


def _is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def _cookie_pairs(set_cookies: List[str]) -> List[str]:
    """Strip attributes (Path, Expires, ...) leaving ``name=value`` pairs."""
    pairs = []
    for header in set_cookies:
        pair = header.split(';', 1)[0].strip()
        if pair:
            pairs.append(pair)
    return pairs


def extract_challenge_cookie(response: requests.Response) -> Optional[str]:
    """Return the ``datadome=...`` pair from a challenge response, if any."""
    for pair in _cookie_pairs(set_cookie_headers(response)):
        if pair.startswith(f"{CHALLENGE_COOKIE}="):
            return pair
    return None


def extract_csrf_token(html: str) -> Optional[str]:
    soup = BeautifulSoup(html, 'html.parser')
    field = soup.find('input', attrs={'name': CSRF_FIELD})
    if field is None:
        return None
    return field.get('value') or None


@dataclass(frozen=True)
class FPLSession:
    """Authenticated portal session."""
    csrf_token: str
    cookies: str

    def cookie_header(self) -> dict:
        return {'Cookie': self.cookies}


class LoginOutcome(Enum):
    AUTHENTICATED = "authenticated"
    CHALLENGE_DETECTED = "challenge_detected"
    FAILED = "failed"


@dataclass(frozen=True)
class LoginResult:
    outcome: LoginOutcome
    session: Optional[FPLSession] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is LoginOutcome.AUTHENTICATED


class FPLAuthenticator:
    """Runs the CSRF + credential login flow and produces an FPLSession."""

    def __init__(self, email: Optional[str], password: Optional[str],
                 client: Optional[BrowserHTTPClient] = None,
                 rate_limiter: Optional[RateLimiter] = None,
                 login_url: str = LOGIN_URL):
        self.email = email
        self.password = password
        self.client = client or BrowserHTTPClient()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.login_url = login_url

    def get_csrf_token(self) -> str:
        """Fetch the login page and return its CSRF token.

        Raises:
            ChallengeError: If the page still answers 403 after the cookie retry.
            AuthError: For any other non-2xx status or a page without a token.
        """
        logger.info("Fetching CSRF token...")
        self.rate_limiter.backoff()
        response = self.client.get(self.login_url)

        if response.status_code == CHALLENGE_STATUS:
            challenge_cookie = extract_challenge_cookie(response)
            if challenge_cookie:
                logger.info("DataDome challenge detected. Retrying with DataDome cookie...")
                response = self.client.get(self.login_url, headers={'Cookie': challenge_cookie})
            else:
                logger.warning("Login page returned 403 without a DataDome cookie")

        if not _is_success(response):
            logger.error("Response status: %s", response.status_code)
            logger.error("Response headers: %s", dict(response.headers))
            error_cls = ChallengeError if response.status_code == CHALLENGE_STATUS else AuthError
            raise error_cls(f"HTTP error! status: {response.status_code}",
                            status=response.status_code, headers=response.headers)

        html = response.text
        token = extract_csrf_token(html)
        if token is None:
            logger.error("CSRF token not found in the HTML. Here's the HTML content:\n%s", html)
            raise AuthError("CSRF token not found in the HTML",
                            status=response.status_code, headers=response.headers)

        logger.info("CSRF token fetched successfully")
        return token

    def login(self) -> FPLSession:
        """Log in and return the new session.

        Raises:
            AuthError: On any failure; nothing is returned or stored.
        """
        if not self.email or not self.password:
            raise AuthError("FPL credentials are not configured (FPL_EMAIL / FPL_PASSWORD)")

        logger.info("Attempting login...")
        csrf_token = self.get_csrf_token()
        self.rate_limiter.wait()

        response = self.client.post(
            self.login_url,
            data={
                CSRF_FIELD: csrf_token,
                'login': self.email,
                'password': self.password,
                'app': APP_ID,
                'redirect_uri': REDIRECT_URI,
            },
            headers={
                'Content-Type': 'application/x-www-form-urlencoded',
                'Cookie': f'csrftoken={csrf_token}',
            },
            allow_redirects=False,
        )

        if response.status_code == 302:
            logger.info("Login successful, following redirect...")
            cookies = self._session_cookies(response)
            location = response.headers.get('Location')
            if not location:
                raise AuthError("Login redirect has no Location header",
                                status=response.status_code, headers=response.headers)

            redirect = self.client.get(urljoin(self.login_url, location),
                                       headers={'Cookie': cookies})
            if not _is_success(redirect):
                raise AuthError(f"Redirect failed with status: {redirect.status_code}",
                                status=redirect.status_code, headers=redirect.headers)
            logger.info("Login and redirect successful")
            return FPLSession(csrf_token=csrf_token, cookies=cookies)

        if _is_success(response):
            logger.info("Login returned %s without redirect", response.status_code)
            return FPLSession(csrf_token=csrf_token, cookies=self._session_cookies(response))

        logger.error("Login response: %s %s", response.status_code, response.reason)
        logger.error("Response headers: %s", dict(response.headers))
        raise AuthError(f"Login failed with status: {response.status_code}",
                        status=response.status_code, headers=response.headers)

    def attempt_login(self) -> LoginResult:
        """Like login(), but report the outcome instead of raising."""
        try:
            session = self.login()
        except ChallengeError as exc:
            logger.warning("Login blocked by bot challenge: %s", exc)
            return LoginResult(LoginOutcome.CHALLENGE_DETECTED, error=exc)
        except AuthError as exc:
            logger.warning("Login failed: %s", exc)
            return LoginResult(LoginOutcome.FAILED, error=exc)
        return LoginResult(LoginOutcome.AUTHENTICATED, session=session)

    @staticmethod
    def _session_cookies(response: requests.Response) -> str:
        pairs = _cookie_pairs(set_cookie_headers(response))
        if not pairs:
            raise AuthError("No cookies received after login",
                            status=response.status_code, headers=response.headers)
        return '; '.join(pairs)


class SessionStore:
    """Process-wide holder for the current FPLSession.

    acquire_session() is single-flight: callers arriving while a login is in
    progress block on the lock and reuse its result.
    """

    def __init__(self, authenticator: FPLAuthenticator):
        self.authenticator = authenticator
        self._session: Optional[FPLSession] = None
        self._lock = Lock()

    @property
    def current(self) -> Optional[FPLSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def acquire_session(self) -> FPLSession:
        session = self._session
        if session is not None:
            return session
        with self._lock:
            if self._session is None:
                logger.info("No session, attempting login...")
                self._session = self.authenticator.login()
            return self._session

    def invalidate(self, stale: Optional[FPLSession] = None) -> None:
        """Drop the session; with ``stale``, only if it is still current."""
        with self._lock:
            if stale is None or self._session is stale:
                logger.info("Invalidating FPL session")
                self._session = None
