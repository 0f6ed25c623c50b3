from redlight.models import Light, Phase


class ProgressSimulator:
    """Race rounds only: holders gain ``progress_rate`` per tick on green."""

    TOKEN = 'progress'

    def __init__(self, engine, tick_ms: int = 100):
        self.engine = engine
        self.tick_sec = tick_ms / 1000.0

    def start(self) -> None:
        if not self.engine.is_race_round():
            return
        self.engine.scheduler.schedule_once(self.tick_sec, self.TOKEN, self._on_tick)

    def stop(self) -> None:
        self.engine.scheduler.cancel(self.TOKEN)

    def _on_tick(self) -> None:
        with self.engine.lock:
            if self.engine.phase != Phase.PLAYING:
                self.engine.log_stale('progress', Phase.PLAYING)
                return
            self.tick()
            if self.engine.phase == Phase.PLAYING:
                self.engine.scheduler.schedule_once(self.tick_sec, self.TOKEN, self._on_tick)

    def tick(self) -> bool:
        """Advance every eligible holder; returns True if anyone finished."""
        engine = self.engine
        if engine.phase != Phase.PLAYING or engine.light != Light.GREEN:
            return False

        rate = engine.current_round_config().progress_rate
        someone_finished = False
        for player in engine.registry.all():
            if not (player.alive and player.holding and not player.finished):
                continue
            player.progress = min(engine.progress_to_win, player.progress + rate)
            if player.progress >= engine.progress_to_win:
                engine.award_finish(player)
                someone_finished = True

        engine.broadcast_all()
        if someone_finished:
            engine.check_race_winner()
        return someone_finished
