from typing import Dict, List, Optional, Set

from redlight.models import Player


class PlayerNameError(Exception):
    """A join was refused; ``reason`` is shown to the requesting phone."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PlayerRegistry:
    """Connected players keyed by connection id, in join order.

    Names stay reserved until the player is removed; elimination does not
    free a name.
    """

    def __init__(self, max_name_length: int = 15):
        self.max_name_length = max_name_length
        self._players: Dict[str, Player] = {}
        self._names: Set[str] = set()

    def clean_name(self, raw) -> str:
        if not isinstance(raw, str):
            return ''
        return raw.strip()[:self.max_name_length]

    def add(self, player_id: str, raw_name) -> Player:
        name = self.clean_name(raw_name)
        if not name:
            raise PlayerNameError('Please enter a name!')
        if name.lower() in self._names:
            raise PlayerNameError('Name already taken! Pick another.')
        player = Player(player_id, name)
        self._players[player_id] = player
        self._names.add(name.lower())
        return player

    def remove(self, player_id: str) -> Optional[Player]:
        player = self._players.pop(player_id, None)
        if player:
            self._names.discard(player.name.lower())
        return player

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def all(self) -> List[Player]:
        return list(self._players.values())

    def all_alive(self) -> List[Player]:
        return [p for p in self._players.values() if p.alive]

    def clear(self) -> None:
        self._players.clear()
        self._names.clear()

    def __contains__(self, player_id) -> bool:
        return player_id in self._players

    def __len__(self) -> int:
        return len(self._players)
