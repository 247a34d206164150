"""Central Configuration Module

Provides a single source of truth for the league tracker configuration.
Values are resolved in order: environment variables (a ``.env`` file in the
project root is loaded first), then ``config.yml``, then built-in defaults.

Usage:
    from utils.config import get_settings
    settings = get_settings()
    settings.league_id, settings.port

config.yml layout:
    fpl:
      email: me@example.com
      league_id: 420500
      request_delay: 1.0
    server:
      port: 5000
    logging:
      level: INFO
"""

import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from config.yml.

    Returns:
        Dict with config values or empty dict if not found.
    """
    if config_path is None:
        config_path = _get_project_root() / 'config.yml'

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return {}
    return {}


# Load .env and config at module level (singleton pattern)
load_dotenv(_get_project_root() / '.env')
_CONFIG = load_config()


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_LEAGUE_ID = '420500'
DEFAULT_PORT = 5000
DEFAULT_HOST = '0.0.0.0'
DEFAULT_REQUEST_DELAY = 1.0
DEFAULT_LOG_LEVEL = 'INFO'


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the scraper and the web server."""

    email: Optional[str] = None
    password: Optional[str] = None
    league_id: str = DEFAULT_LEAGUE_ID
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    request_delay: float = DEFAULT_REQUEST_DELAY
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, config: Optional[Dict[str, Any]] = None,
                 environ: Optional[Dict[str, str]] = None) -> 'Settings':
        """Build settings from config.yml values overridden by the environment."""
        config = _CONFIG if config is None else config
        env = os.environ if environ is None else environ

        fpl = config.get('fpl', {}) or {}
        server = config.get('server', {}) or {}
        log = config.get('logging', {}) or {}

        settings = cls(
            email=env.get('FPL_EMAIL', fpl.get('email')),
            password=env.get('FPL_PASSWORD', fpl.get('password')),
            league_id=str(env.get('FPL_LEAGUE_ID', fpl.get('league_id', DEFAULT_LEAGUE_ID))),
            host=env.get('HOST', server.get('host', DEFAULT_HOST)),
            port=int(env.get('PORT', server.get('port', DEFAULT_PORT))),
            request_delay=float(env.get('FPL_REQUEST_DELAY',
                                        fpl.get('request_delay', DEFAULT_REQUEST_DELAY))),
            log_level=str(env.get('LOG_LEVEL', log.get('level', DEFAULT_LOG_LEVEL))).upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Validate configuration values."""
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        if self.request_delay < 0:
            raise ValueError("request_delay must be non-negative")
        if not self.league_id:
            raise ValueError("league_id must not be empty")

    @property
    def has_credentials(self) -> bool:
        return bool(self.email and self.password)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with the password masked."""
        data = asdict(self)
        if data['password']:
            data['password'] = '***'
        return data


def get_settings() -> Settings:
    """Resolve settings against the current environment."""
    return Settings.from_env()


def reload_config() -> None:
    """Reload config.yml from disk.

    Useful for testing or when config.yml changes during runtime.
    """
    global _CONFIG
    _CONFIG = load_config()
