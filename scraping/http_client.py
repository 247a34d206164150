"""Browser-flavoured HTTP client for the FPL portal."""

import logging
from http.cookiejar import DefaultCookiePolicy
from typing import Dict, List, Mapping, Optional
from urllib.parse import urljoin

import requests

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302, 303, 307, 308)
BODY_HEADERS = ('content-type', 'content-length')

# Desktop Chrome header set; the login page serves a bot challenge to
# anything that looks like a script.
DEFAULT_HEADERS: Dict[str, str] = {
    'User-Agent': ('Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
                   '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'),
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1',
    'Sec-Fetch-Dest': 'document',
    'Sec-Fetch-Mode': 'navigate',
    'Sec-Fetch-Site': 'none',
    'Sec-Fetch-User': '?1',
    'Cache-Control': 'max-age=0',
}


def merge_headers(headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Overlay caller headers on the browser defaults (caller wins)."""
    merged = dict(DEFAULT_HEADERS)
    if headers:
        lowered = {key.lower(): key for key in merged}
        for key, value in headers.items():
            existing = lowered.get(key.lower())
            if existing is not None and existing != key:
                del merged[existing]
            merged[key] = value
    return merged


def set_cookie_headers(response: requests.Response) -> List[str]:
    """Return every raw Set-Cookie header on a response.

    requests folds repeated headers into one comma-separated value, which is
    ambiguous for cookies carrying an Expires date, so read the underlying
    urllib3 headers when they are available.
    """
    raw_headers = getattr(getattr(response, 'raw', None), 'headers', None)
    if raw_headers is not None and hasattr(raw_headers, 'getlist'):
        return list(raw_headers.getlist('Set-Cookie'))
    value = response.headers.get('Set-Cookie')
    return [value] if value else []


class BrowserHTTPClient:
    """Injects DEFAULT_HEADERS into every request over one shared session.

    Redirects are followed here rather than by requests, which strips the
    Cookie header on every hop and rebuilds it from the (disabled) jar.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        # Cookies travel explicitly in the Cookie header, never via the jar.
        self.session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    def request(self, method: str, url: str,
                headers: Optional[Mapping[str, str]] = None,
                allow_redirects: bool = True,
                **kwargs) -> requests.Response:
        merged = merge_headers(headers)
        logger.debug("%s %s", method, url)
        response = self.session.request(method, url, headers=merged,
                                        allow_redirects=False, **kwargs)
        if not allow_redirects:
            return response

        history = []
        while response.status_code in REDIRECT_STATUSES and response.headers.get('Location'):
            if len(history) >= self.session.max_redirects:
                raise requests.exceptions.TooManyRedirects(
                    f"Exceeded {self.session.max_redirects} redirects", response=response)
            history.append(response)
            url = urljoin(response.url, response.headers['Location'])

            # Browsers turn a redirected POST into a body-less GET
            if response.status_code == 303 or (response.status_code in (301, 302)
                                               and method.upper() == 'POST'):
                method = 'GET'
                for key in ('data', 'json', 'files'):
                    kwargs.pop(key, None)
                merged = {key: value for key, value in merged.items()
                          if key.lower() not in BODY_HEADERS}
            # The Location already carries its own query string
            kwargs.pop('params', None)

            response.close()
            logger.debug("Redirected: %s %s", method, url)
            response = self.session.request(method, url, headers=merged,
                                            allow_redirects=False, **kwargs)

        response.history = history
        return response

    def get(self, url: str, headers: Optional[Mapping[str, str]] = None,
            **kwargs) -> requests.Response:
        return self.request('GET', url, headers=headers, **kwargs)

    def post(self, url: str, headers: Optional[Mapping[str, str]] = None,
             **kwargs) -> requests.Response:
        return self.request('POST', url, headers=headers, **kwargs)

    def close(self) -> None:
        self.session.close()
