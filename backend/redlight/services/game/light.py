import random
from typing import Optional, Tuple

from redlight.models import Light, Phase


class LightController:
    """Green/red alternation and the grace-window elimination pass.

    Every scheduled callback takes the engine lock and re-checks the
    phase/light it was scheduled under before acting.
    """

    FLIP_TOKEN = 'light'
    GRACE_TOKEN = 'grace'

    def __init__(self, engine, rng: Optional[random.Random] = None):
        self.engine = engine
        self.rng = rng or random.Random()

    def sample_delay_ms(self, window: Tuple[int, int]) -> int:
        lo, hi = window
        return self.rng.randint(lo, hi)

    def _schedule(self, token, window, action) -> int:
        delay_ms = self.sample_delay_ms(window)
        self.engine.scheduler.schedule_once(delay_ms / 1000.0, token, action)
        return delay_ms

    def stop(self) -> None:
        self.engine.scheduler.cancel(self.FLIP_TOKEN)
        self.engine.scheduler.cancel(self.GRACE_TOKEN)

    # -- green -----------------------------------------------------------

    def start_green(self) -> None:
        engine = self.engine
        if engine.phase != Phase.PLAYING:
            engine.log_stale('green', Phase.PLAYING)
            return
        if not engine.registry.all_alive():
            engine.end_round(None)
            return

        engine.light = Light.GREEN
        engine.elimination_pending = False
        engine.broadcast_all()

        rc = engine.current_round_config()
        delay_ms = self._schedule(self.FLIP_TOKEN, rc.green_duration, self._on_flip_to_red)
        engine.logger.info(f"[light] round={engine.round} light=green next_red_in={delay_ms}ms")

    def _on_flip_to_green(self) -> None:
        with self.engine.lock:
            if self.engine.light != Light.RED or self.engine.elimination_pending:
                self.engine.log_stale('green', 'red-resolved')
                return
            self.start_green()

    # -- red -------------------------------------------------------------

    def _on_flip_to_red(self) -> None:
        with self.engine.lock:
            self.flip_to_red()

    def flip_to_red(self) -> None:
        engine = self.engine
        if engine.phase != Phase.PLAYING or engine.light != Light.GREEN:
            engine.log_stale('red', 'playing/green')
            return

        engine.light = Light.RED
        engine.elimination_pending = True
        engine.broadcast_all()

        rc = engine.current_round_config()
        engine.scheduler.schedule_once(rc.grace_period_ms / 1000.0, self.GRACE_TOKEN, self._on_grace_expired)
        engine.logger.info(f"[light] round={engine.round} light=red grace={rc.grace_period_ms}ms")

    def _on_grace_expired(self) -> None:
        with self.engine.lock:
            self.resolve_grace()

    def resolve_grace(self) -> None:
        engine = self.engine
        if engine.phase != Phase.PLAYING or engine.light != Light.RED or not engine.elimination_pending:
            engine.log_stale('grace', 'playing/red/pending')
            return
        engine.elimination_pending = False

        caught = [p for p in engine.registry.all() if p.alive and p.holding]
        for player in caught:
            engine.eliminate(player)
        engine.notify_eliminations(caught)
        engine.broadcast_all()

        alive = engine.registry.all_alive()
        if not alive:
            engine.end_round(None)
            return

        if engine.is_race_round() and len(alive) == 1:
            winner = alive[0]
            engine.award_finish(winner)
            engine.end_round(winner)
            return

        time_left = engine.time_left()
        if time_left is not None and time_left <= 0:
            engine.end_survival_round()
            return

        rc = engine.current_round_config()
        delay_ms = self._schedule(self.FLIP_TOKEN, rc.red_duration, self._on_flip_to_green)
        engine.logger.debug(f"[light] round={engine.round} next_green_in={delay_ms}ms")
