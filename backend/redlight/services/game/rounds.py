from typing import Iterator, Sequence

from redlight.models import RoundConfig, RoundKind


# Rounds 1-4: survive for duration_sec without getting caught.
# Round 5 and beyond: race to the finish line, first to finish wins.
ROUNDS = (
    RoundConfig(
        kind=RoundKind.SURVIVAL, duration_sec=60, grace_period_ms=1000,
        green_duration=(3000, 5500), red_duration=(2000, 3500),
        label='WARM-UP',
    ),
    RoundConfig(
        kind=RoundKind.SURVIVAL, duration_sec=55, grace_period_ms=850,
        green_duration=(2500, 5000), red_duration=(1800, 3200),
        label='GETTING HARDER',
    ),
    RoundConfig(
        kind=RoundKind.SURVIVAL, duration_sec=50, grace_period_ms=700,
        green_duration=(2000, 4000), red_duration=(1500, 3000),
        label='SERIOUS',
    ),
    RoundConfig(
        kind=RoundKind.SURVIVAL, duration_sec=45, grace_period_ms=600,
        green_duration=(1500, 3500), red_duration=(1500, 2800),
        label='INTENSE',
    ),
    RoundConfig(
        kind=RoundKind.RACE, grace_period_ms=500,
        green_duration=(1000, 2500), red_duration=(1200, 2500),
        progress_rate=0.8,
        label='⚡ FINAL RACE ⚡',
    ),
)


class RoundCatalog:
    """Ordered round table; rounds past the end reuse the last entry."""

    def __init__(self, rounds: Sequence[RoundConfig] = ROUNDS):
        if not rounds:
            raise ValueError('round catalog cannot be empty')
        self._rounds = tuple(rounds)

    def config_for(self, round_no: int) -> RoundConfig:
        index = min(max(round_no - 1, 0), len(self._rounds) - 1)
        return self._rounds[index]

    def __len__(self) -> int:
        return len(self._rounds)

    def __iter__(self) -> Iterator[RoundConfig]:
        return iter(self._rounds)
