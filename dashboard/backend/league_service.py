"""League service - login, gameweek aggregation and per-manager reshaping."""

import logging
from typing import Any, Dict, List, Optional

from processing.standings import process_gameweek_data
from scraping.auth import FPLAuthenticator, SessionStore
from scraping.errors import SessionExpiredError
from scraping.fpl_api import GameweekAggregator
from scraping.http_client import BrowserHTTPClient
from utils.config import Settings
from utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class LeagueService:
    """Produces the per-manager league view for one configured league."""

    def __init__(self, store: SessionStore, aggregator: GameweekAggregator, league_id: str):
        self.store = store
        self.aggregator = aggregator
        self.league_id = league_id

    @classmethod
    def from_settings(cls, settings: Settings):
        # One transport and one limiter shared by login and data fetches
        client = BrowserHTTPClient()
        limiter = RateLimiter(settings.request_delay)
        authenticator = FPLAuthenticator(settings.email, settings.password,
                                         client=client, rate_limiter=limiter)
        aggregator = GameweekAggregator(client=client, rate_limiter=limiter)
        return cls(SessionStore(authenticator), aggregator, settings.league_id)

    def fetch_raw(self, league_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Aggregate raw gameweek standings, logging in first if needed.

        A session rejected mid-aggregation is dropped and the aggregation is
        retried once with a fresh login.
        """
        league_id = league_id or self.league_id
        session = self.store.acquire_session()
        try:
            return self.aggregator.fetch_all_gameweek_data(session, league_id)
        except SessionExpiredError:
            logger.warning("Session expired during aggregation, logging in again")
            self.store.invalidate(session)
            session = self.store.acquire_session()
            return self.aggregator.fetch_all_gameweek_data(session, league_id)

    def get_league_data(self, league_id: Optional[str] = None) -> List[Dict[str, Any]]:
        logger.info("Fetching league data...")
        managers = process_gameweek_data(self.fetch_raw(league_id))
        logger.info("League data fetched and processed successfully (%d managers)", len(managers))
        return managers

    def close(self) -> None:
        self.aggregator.client.close()
