from typing import Optional

from redlight.models import Phase, RoundKind


class RoundTimer:
    """Survival round clock: refreshes time left and ends the round at zero."""

    TOKEN = 'clock'

    def __init__(self, engine, tick_sec: float = 1.0):
        self.engine = engine
        self.tick_sec = tick_sec

    def time_left(self) -> Optional[float]:
        engine = self.engine
        rc = engine.current_round_config()
        if rc.kind != RoundKind.SURVIVAL or engine.round_start_time is None:
            return None
        elapsed = engine.scheduler.now() - engine.round_start_time
        return max(0.0, rc.duration_sec - elapsed)

    def start(self) -> None:
        if self.engine.is_race_round():
            return
        self.engine.scheduler.schedule_once(self.tick_sec, self.TOKEN, self._on_tick)

    def stop(self) -> None:
        self.engine.scheduler.cancel(self.TOKEN)

    def _on_tick(self) -> None:
        with self.engine.lock:
            engine = self.engine
            if engine.phase != Phase.PLAYING:
                engine.log_stale('clock', Phase.PLAYING)
                return
            time_left = self.time_left()
            if time_left is not None and time_left <= 0:
                engine.end_survival_round()
                return
            engine.broadcast_all()
            engine.scheduler.schedule_once(self.tick_sec, self.TOKEN, self._on_tick)
