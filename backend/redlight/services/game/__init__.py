"""Game domain services: rounds, players, lights, timers and the engine.

This package contains the server-authoritative game logic. Socket handlers
and HTTP routes only translate transport events into engine intents, keeping
transport concerns separated from core game mechanics.
"""

from .engine import GameEngine
from .gateway import AUDIENCE_TV, BroadcastGateway, SocketIOGateway
from .registry import PlayerNameError, PlayerRegistry
from .rounds import ROUNDS, RoundCatalog
from .scheduler import TaskScheduler

__all__ = [
    'AUDIENCE_TV',
    'BroadcastGateway',
    'GameEngine',
    'PlayerNameError',
    'PlayerRegistry',
    'ROUNDS',
    'RoundCatalog',
    'SocketIOGateway',
    'TaskScheduler',
]
