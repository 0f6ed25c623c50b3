from typing import Any, Dict, Iterable, List, Optional

from redlight.models import Player


def build_leaderboard(
    finish_order: Iterable[Dict[str, Any]],
    elimination_order: Iterable[Dict[str, Any]],
    players: Iterable[Player],
) -> List[Dict[str, Any]]:
    """Rank finishers, then survivors by progress, then the eliminated.

    Eliminated players are ranked latest-first: surviving longer ranks
    higher. Only currently registered players are ranked, each once, at
    their best placement.
    """
    players = list(players)
    registered = {p.id for p in players}
    placed = set()
    entries: List[Dict[str, Any]] = []

    def _place(pid, name, status, round_no):
        if pid not in registered or pid in placed:
            return
        placed.add(pid)
        entries.append({
            'id': pid,
            'name': name,
            'position': len(entries) + 1,
            'status': status,
            'round': round_no,
        })

    for f in finish_order:
        _place(f['id'], f['name'], 'winner', f['round'])

    # sorted() is stable, so ties keep registry order
    survivors = sorted(
        (p for p in players if p.alive and not p.finished),
        key=lambda p: p.progress,
        reverse=True,
    )
    for p in survivors:
        _place(p.id, p.name, 'alive', None)

    for e in reversed(list(elimination_order)):
        _place(e['id'], e['name'], 'eliminated', e['round'])

    return entries


def player_position(leaderboard: List[Dict[str, Any]], player_id: str) -> Optional[Dict[str, Any]]:
    for entry in leaderboard:
        if entry['id'] == player_id:
            return {'position': entry['position'], 'total': len(leaderboard), 'status': entry['status']}
    return None
