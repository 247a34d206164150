"""Reshape per-gameweek league standings into per-manager records."""

from typing import Any, Dict, Iterable, List


def process_gameweek_data(all_gameweek_data: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Pivot raw gameweek standings into one record per manager.

    Args:
        all_gameweek_data: Items of ``{"gameweek": gw, "standings": [...]}``
            where each standing carries entry, player_name, entry_name,
            event_total, total and rank.

    Returns:
        List of ``{"id", "name", "team_name", "gameweeks"}`` dicts in the order
        managers are first seen. ``gameweeks`` maps gameweek number to
        ``{"points", "total_points", "rank"}``.
    """
    managers: Dict[Any, Dict[str, Any]] = {}

    for gw_data in all_gameweek_data:
        gameweek = gw_data['gameweek']
        for standing in gw_data['standings']:
            entry_id = standing['entry']
            # Name and team name stick to the first gameweek the manager appears in
            record = managers.get(entry_id)
            if record is None:
                record = {
                    'id': entry_id,
                    'name': standing.get('player_name'),
                    'team_name': standing.get('entry_name'),
                    'gameweeks': {},
                }
                managers[entry_id] = record
            record['gameweeks'][gameweek] = {
                'points': standing.get('event_total'),
                'total_points': standing.get('total'),
                'rank': standing.get('rank'),
            }

    return list(managers.values())
