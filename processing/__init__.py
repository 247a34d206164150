"""Processing module - reshaping of raw league standings.

This module contains:
- Per-manager gameweek pivot (standings.py)
"""

from .standings import process_gameweek_data
