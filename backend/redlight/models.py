from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


class Phase:
    LOBBY = 'lobby'
    COUNTDOWN = 'countdown'
    PLAYING = 'playing'
    ROUND_END = 'round_end'
    GAME_OVER = 'game_over'


class Light:
    RED = 'red'
    GREEN = 'green'


class RoundKind:
    SURVIVAL = 'survival'
    RACE = 'race'


@dataclass(frozen=True)
class RoundConfig:
    """Immutable settings for one ordinal round.

    Duration ranges are ``(min_ms, max_ms)`` and inclusive. Survival rounds
    carry ``duration_sec``; race rounds carry ``progress_rate`` instead.
    """
    kind: str
    grace_period_ms: int
    green_duration: Tuple[int, int]
    red_duration: Tuple[int, int]
    label: str
    duration_sec: Optional[int] = None
    progress_rate: Optional[float] = None

    def __post_init__(self):
        for name in ('green_duration', 'red_duration'):
            lo, hi = getattr(self, name)
            if lo > hi:
                raise ValueError(f'{name} min {lo} exceeds max {hi}')
        if self.kind == RoundKind.SURVIVAL:
            if not self.duration_sec or self.progress_rate is not None:
                raise ValueError('survival rounds need duration_sec and no progress_rate')
        elif self.kind == RoundKind.RACE:
            if not self.progress_rate or self.duration_sec is not None:
                raise ValueError('race rounds need progress_rate and no duration_sec')
        else:
            raise ValueError(f'unknown round kind {self.kind!r}')

    @property
    def is_race(self) -> bool:
        return self.kind == RoundKind.RACE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind,
            'label': self.label,
            'duration_sec': self.duration_sec,
            'grace_period_ms': self.grace_period_ms,
            'green_duration': {'min': self.green_duration[0], 'max': self.green_duration[1]},
            'red_duration': {'min': self.red_duration[0], 'max': self.red_duration[1]},
            'progress_rate': self.progress_rate,
        }


class Player:
    def __init__(self, id: str, name: str):
        self.id = id
        self.name = name
        self.progress = 0.0
        self.alive = True
        self.holding = False
        self.eliminated = False
        self.eliminated_in_round: Optional[int] = None
        self.finished_at: Optional[float] = None

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    def reset_for_round(self) -> None:
        self.progress = 0.0
        self.holding = False
        self.finished_at = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'progress': self.progress,
            'alive': self.alive,
            'holding': self.holding,
            'finished_at': self.finished_at,
            'eliminated_in_round': self.eliminated_in_round,
        }

    def __repr__(self):
        return f'<Player {self.name!r} alive={self.alive} progress={self.progress}>'


def history_entry(player: Player, round_no: int) -> Dict[str, Any]:
    """Record appended to finish/elimination order."""
    return {'id': player.id, 'name': player.name, 'round': round_no}
