"""FPL API fetchers for league standings.

Endpoints:
- /bootstrap-static/: events (gameweeks) with the ``is_current`` marker
- /leagues-classic/{id}/standings/: per-gameweek league standings
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from scraping.auth import FPLSession
from scraping.errors import DataError, SessionExpiredError
from scraping.http_client import BrowserHTTPClient
from utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

BASE_URL = "https://fantasy.premierleague.com/api"
EXPIRED_STATUSES = (401, 403)


class GameweekAggregator:
    """Fetches standings for every gameweek up to the current one.

    Requests are strictly sequential and spaced by the rate limiter; any
    failure aborts the whole run without a partial result.
    """

    def __init__(self, client: Optional[BrowserHTTPClient] = None,
                 rate_limiter: Optional[RateLimiter] = None,
                 base_url: str = BASE_URL):
        self.client = client or BrowserHTTPClient()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.base_url = base_url

    def _get_json(self, session: FPLSession, endpoint: str,
                  params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.client.get(url, headers=session.cookie_header(), params=params)
        except requests.exceptions.RequestException as e:
            logger.error("Request to %s failed: %s", url, e)
            raise DataError(f"Request to {url} failed: {e}") from e

        if response.status_code in EXPIRED_STATUSES:
            logger.warning("Session rejected by %s (status %s)", url, response.status_code)
            raise SessionExpiredError(f"Session rejected with status: {response.status_code}",
                                      status=response.status_code, headers=response.headers)
        if not 200 <= response.status_code < 300:
            logger.error("Unexpected status %s from %s", response.status_code, url)
            raise DataError(f"Response was code {response.status_code} for {url}")

        try:
            return response.json()
        except ValueError as e:
            logger.error("Malformed JSON from %s: %s", url, response.text[:500])
            raise DataError(f"Malformed JSON from {url}") from e

    def fetch_current_gameweek(self, session: FPLSession) -> int:
        """Return the id of the event flagged ``is_current``."""
        bootstrap = self._get_json(session, '/bootstrap-static/')
        events = bootstrap.get('events') if isinstance(bootstrap, dict) else None
        if not isinstance(events, list):
            raise DataError("Bootstrap data has no events list")

        for event in events:
            if isinstance(event, dict) and event.get('is_current'):
                try:
                    return int(event['id'])
                except (KeyError, TypeError, ValueError) as e:
                    raise DataError(f"Current event has no usable id: {event.get('id')!r}") from e

        raise DataError("No current gameweek found in bootstrap data")

    def fetch_gameweek_standings(self, session: FPLSession, league_id: str,
                                 gameweek: int) -> List[Dict[str, Any]]:
        data = self._get_json(
            session,
            f'/leagues-classic/{league_id}/standings/',
            params={'page': 1, 'page_standings': gameweek, 'phase': gameweek},
        )
        try:
            results = data['standings']['results']
        except (KeyError, TypeError) as e:
            raise DataError(f"Standings for gameweek {gameweek} have no results") from e
        if not isinstance(results, list):
            raise DataError(f"Standings for gameweek {gameweek} are not a list")
        for row in results:
            if not isinstance(row, dict) or row.get('entry') is None:
                raise DataError(f"Standings row for gameweek {gameweek} has no entry id")
        return results

    def fetch_all_gameweek_data(self, session: FPLSession,
                                league_id: str) -> List[Dict[str, Any]]:
        """Fetch standings for gameweeks 1..current, in order.

        Returns:
            List of ``{"gameweek": gw, "standings": [...]}`` dicts
        """
        current_gameweek = self.fetch_current_gameweek(session)
        logger.info("Current gameweek is %d; fetching league %s standings",
                    current_gameweek, league_id)

        all_gameweek_data = []
        for gw in range(1, current_gameweek + 1):
            self.rate_limiter.wait()
            standings = self.fetch_gameweek_standings(session, league_id, gw)
            logger.debug("GW%d: %d standings", gw, len(standings))
            all_gameweek_data.append({'gameweek': gw, 'standings': standings})

        return all_gameweek_data
