import json
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from scraping.auth import FPLSession
from scraping.errors import DataError, SessionExpiredError
from scraping.fpl_api import BASE_URL, GameweekAggregator
from utils.rate_limiter import RateLimiter

SESSION = FPLSession(csrf_token='tok', cookies='sessionid=abc')
BOOTSTRAP_URL = f"{BASE_URL}/bootstrap-static/"


def _json_response(payload, status=200):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(payload).encode('utf-8')
    response.encoding = 'utf-8'
    return response


def _bootstrap(current_gw):
    return {'events': [{'id': gw, 'is_current': gw == current_gw} for gw in range(1, 39)]}


def _standings(gw):
    return {'standings': {'results': [
        {'entry': 100, 'player_name': 'Alice', 'entry_name': 'Team A',
         'event_total': 50 + gw, 'total': 50 * gw, 'rank': 1},
    ]}}


class FakeClock:
    """Monotonic clock that only advances when something sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeFPLClient:
    """Routes GETs to canned bootstrap/standings payloads and logs them."""

    def __init__(self, current_gw=5, log=None):
        self.current_gw = current_gw
        self.log = log if log is not None else []
        self.calls = []

    def get(self, url, headers=None, params=None):
        self.calls.append((url, headers, params))
        if url == BOOTSTRAP_URL:
            self.log.append('bootstrap')
            return _json_response(_bootstrap(self.current_gw))
        self.log.append(f"gw{params['phase']}")
        return _json_response(_standings(params['phase']))


class TestGameweekAggregator(unittest.TestCase):
    def test_current_gameweek_five_fetches_one_through_five_in_order(self):
        clock = FakeClock()
        client = FakeFPLClient(current_gw=5)
        aggregator = GameweekAggregator(client=client,
                                        rate_limiter=RateLimiter(1.0, clock=clock, sleep=clock.sleep))

        data = aggregator.fetch_all_gameweek_data(SESSION, '420500')

        self.assertEqual(len(data), 5)
        self.assertEqual([item['gameweek'] for item in data], [1, 2, 3, 4, 5])
        standings_calls = [call for call in client.calls if call[0] != BOOTSTRAP_URL]
        self.assertEqual([call[2]['phase'] for call in standings_calls], [1, 2, 3, 4, 5])
        self.assertEqual(standings_calls[0][0], f"{BASE_URL}/leagues-classic/420500/standings/")
        # One interval between each consecutive standings fetch
        self.assertEqual(clock.sleeps, [1.0, 1.0, 1.0, 1.0])

    def test_waits_before_every_standings_fetch(self):
        log = []
        client = FakeFPLClient(current_gw=3, log=log)
        limiter = MagicMock()
        limiter.wait.side_effect = lambda: log.append('wait')

        GameweekAggregator(client=client, rate_limiter=limiter).fetch_all_gameweek_data(SESSION, '1')

        self.assertEqual(log, ['bootstrap', 'wait', 'gw1', 'wait', 'gw2', 'wait', 'gw3'])

    def test_sends_session_cookies(self):
        client = FakeFPLClient(current_gw=1)
        GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_all_gameweek_data(SESSION, '1')

        for _, headers, _ in client.calls:
            self.assertEqual(headers, {'Cookie': 'sessionid=abc'})

    def test_no_current_event_raises_data_error(self):
        client = MagicMock()
        client.get.return_value = _json_response({'events': [{'id': 1, 'is_current': False}]})

        with self.assertRaises(DataError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_current_gameweek(SESSION)

    def test_missing_events_raises_data_error(self):
        client = MagicMock()
        client.get.return_value = _json_response({'teams': []})

        with self.assertRaises(DataError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_current_gameweek(SESSION)

    def test_current_event_without_id_raises_data_error(self):
        for event in ({'is_current': True}, {'id': None, 'is_current': True},
                      {'id': 'soon', 'is_current': True}):
            with self.subTest(event=event):
                client = MagicMock()
                client.get.return_value = _json_response({'events': [event]})

                with self.assertRaises(DataError):
                    GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_current_gameweek(SESSION)

    def test_standings_row_without_entry_raises_data_error(self):
        for row in ({'player_name': 'Alice', 'total': 10}, {'entry': None}, 'Alice'):
            with self.subTest(row=row):
                client = MagicMock()
                client.get.return_value = _json_response({'standings': {'results': [row]}})

                with self.assertRaises(DataError):
                    GameweekAggregator(client=client,
                                       rate_limiter=RateLimiter(0)).fetch_gameweek_standings(SESSION, '1', 1)

    def test_non_json_body_raises_data_error(self):
        response = requests.Response()
        response.status_code = 200
        response._content = b'<html>maintenance</html>'
        response.encoding = 'utf-8'
        client = MagicMock()
        client.get.return_value = response

        with self.assertRaises(DataError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_current_gameweek(SESSION)

    def test_network_failure_raises_data_error(self):
        client = MagicMock()
        client.get.side_effect = requests.exceptions.ConnectionError("reset")

        with self.assertRaises(DataError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_all_gameweek_data(SESSION, '1')

    def test_unauthorized_raises_session_expired(self):
        client = MagicMock()
        client.get.return_value = _json_response({'detail': 'no'}, status=401)

        with self.assertRaises(SessionExpiredError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_current_gameweek(SESSION)

    def test_server_error_raises_data_error(self):
        client = MagicMock()
        client.get.return_value = _json_response({}, status=503)

        with self.assertRaises(DataError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_current_gameweek(SESSION)

    def test_missing_results_raises_data_error(self):
        client = MagicMock()
        client.get.return_value = _json_response({'standings': {}})

        with self.assertRaises(DataError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_gameweek_standings(SESSION, '1', 1)

    def test_failure_mid_aggregation_returns_nothing(self):
        client = MagicMock()
        client.get.side_effect = [
            _json_response(_bootstrap(3)),
            _json_response(_standings(1)),
            _json_response({'oops': True}),
        ]

        with self.assertRaises(DataError):
            GameweekAggregator(client=client, rate_limiter=RateLimiter(0)).fetch_all_gameweek_data(SESSION, '1')
        self.assertEqual(client.get.call_count, 3)


if __name__ == "__main__":
    unittest.main()
