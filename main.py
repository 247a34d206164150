#!/usr/bin/env python3
"""FPL League Tracker - Main Entry Point

Logs in to the FPL portal and turns per-gameweek classic league standings
into one record per manager, either served over HTTP or dumped as JSON.

Usage:
    # Serve the dashboard + /api/league
    python main.py serve --port 5000

    # One-off aggregation to stdout or a file
    python main.py league --league-id 420500 --output league.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from utils.config import get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s | %(message)s'
)
logger = logging.getLogger(__name__)


def run_server(host: str, port: int) -> None:
    """Run the FastAPI app under uvicorn."""
    import uvicorn
    from dashboard.backend.main import create_app

    logger.info("Server running on http://localhost:%d", port)
    uvicorn.run(create_app(), host=host, port=port)


def dump_league(league_id: Optional[str], output: Optional[Path]) -> int:
    """Fetch and process league data once, writing JSON to ``output`` or stdout."""
    from dashboard.backend.league_service import LeagueService

    service = LeagueService.from_settings(get_settings())
    try:
        managers = service.get_league_data(league_id)
    finally:
        service.close()

    payload = json.dumps(managers, indent=2)
    if output:
        output.write_text(payload, encoding='utf-8')
        logger.info("Wrote %d managers to %s", len(managers), output)
    else:
        print(payload)
    return 0


def main(argv=None) -> int:
    try:
        settings = get_settings()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    parser = argparse.ArgumentParser(
        description='FPL League Tracker - per-manager gameweek history',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve on the configured port
  python main.py serve

  # Dump league data to a file
  python main.py league --output league.json
"""
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose output')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Minimal output')

    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the HTTP server')
    serve.add_argument('--host', default=settings.host,
                       help=f'Bind address (default: {settings.host})')
    serve.add_argument('--port', '-p', type=int, default=settings.port,
                       help=f'Listen port (default: {settings.port})')

    league = subparsers.add_parser('league', help='Fetch league data once and print JSON')
    league.add_argument('--league-id', '-l', default=None,
                        help=f'Classic league ID (default: {settings.league_id})')
    league.add_argument('--output', '-o', type=Path, default=None,
                        help='Write JSON to this file instead of stdout')

    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.WARNING)
    else:
        logging.getLogger().setLevel(settings.log_level)

    try:
        if args.command == 'serve':
            run_server(args.host, args.port)
            return 0
        return dump_league(args.league_id, args.output)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        logger.error("Error: %s", e)
        if args.verbose:
            logger.exception("Traceback")
        return 1


if __name__ == '__main__':
    sys.exit(main())
