"""Server-authoritative game engine for one room.

The engine owns all session state. Every public method and every timer
callback runs under ``self.lock``, so socket handlers and scheduler tasks
never interleave halfway through a read-modify-broadcast cycle.
"""

import logging
import random
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional

from redlight.models import Light, Phase, Player, RoundConfig, history_entry

from .gateway import AUDIENCE_TV, BroadcastGateway
from .leaderboard import build_leaderboard, player_position
from .light import LightController
from .progress import ProgressSimulator
from .registry import PlayerNameError, PlayerRegistry
from .round_timer import RoundTimer
from .rounds import RoundCatalog


class GameEngine:
    COUNTDOWN_TOKEN = 'countdown'
    STARTABLE_PHASES = (Phase.LOBBY, Phase.ROUND_END, Phase.GAME_OVER)

    def __init__(
        self,
        scheduler,
        gateway: BroadcastGateway,
        catalog: Optional[RoundCatalog] = None,
        config: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        rng: Optional[random.Random] = None,
    ):
        config = config or {}
        self.scheduler = scheduler
        self.gateway = gateway
        self.catalog = catalog or RoundCatalog()
        self.logger = logger or logging.getLogger(__name__)
        self.lock = threading.RLock()

        self.progress_to_win = float(config.get('PROGRESS_TO_WIN', 100))
        self.countdown_from = int(config.get('COUNTDOWN_FROM', 3))
        self.countdown_step_sec = float(config.get('COUNTDOWN_STEP_SEC', 1))
        self.min_players = int(config.get('MIN_PLAYERS', 2))

        self.registry = PlayerRegistry(int(config.get('MAX_NAME_LENGTH', 15)))
        self.lights = LightController(self, rng)
        self.progress = ProgressSimulator(self, int(config.get('PROGRESS_TICK_MS', 100)))
        self.clock = RoundTimer(self, float(config.get('TIME_TICK_SEC', 1)))
        self._reset_state()

    def _reset_state(self) -> None:
        self.phase = Phase.LOBBY
        self.light = Light.RED
        self.round = 0
        self.round_start_time: Optional[float] = None
        self.elimination_pending = False
        self.elimination_order: List[Dict[str, Any]] = []
        self.finish_order: List[Dict[str, Any]] = []
        self.tournament_active = False

    # ---- Queries ----

    def current_round_config(self) -> RoundConfig:
        return self.catalog.config_for(self.round or 1)

    def is_race_round(self) -> bool:
        return self.current_round_config().is_race

    def time_left(self) -> Optional[float]:
        return self.clock.time_left()

    def leaderboard(self) -> List[Dict[str, Any]]:
        return build_leaderboard(self.finish_order, self.elimination_order, self.registry.all())

    def log_stale(self, what: str, expected: str) -> None:
        self.logger.debug(
            f"[timer-stale] {what} expected={expected} phase={self.phase} light={self.light} round={self.round}"
        )

    # ---- Snapshots ----

    def tv_snapshot(self) -> Dict[str, Any]:
        rc = self.current_round_config()
        return {
            'phase': self.phase,
            'light': self.light,
            'players': [p.to_dict() for p in self.registry.all()],
            'round': self.round,
            'tournament_active': self.tournament_active,
            'round_type': rc.kind,
            'round_label': rc.label,
            'time_left': self.time_left(),
            'difficulty': {'grace_period_ms': rc.grace_period_ms, 'round_label': rc.label},
            'leaderboard': self.leaderboard(),
        }

    def player_snapshot(self, player: Player, leaderboard: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        rc = self.current_round_config()
        if leaderboard is None:
            leaderboard = self.leaderboard()
        return {
            'phase': self.phase,
            'light': self.light,
            'progress': player.progress,
            'alive': player.alive,
            'holding': player.holding,
            'round': self.round,
            'position': player_position(leaderboard, player.id),
            'tournament_active': self.tournament_active,
            'round_type': rc.kind,
            'round_label': rc.label,
            'time_left': self.time_left(),
        }

    def broadcast_game_state(self) -> None:
        self.gateway.send_to_audience(AUDIENCE_TV, 'game_state', self.tv_snapshot())

    def broadcast_to_phones(self) -> None:
        leaderboard = self.leaderboard()
        for player in self.registry.all():
            self.gateway.send_to_player(player.id, 'player_state', self.player_snapshot(player, leaderboard))

    def broadcast_all(self) -> None:
        self.broadcast_game_state()
        self.broadcast_to_phones()

    def notify_eliminations(self, players: Iterable[Player]) -> None:
        players = list(players)
        if not players:
            return
        self.gateway.send_to_audience(AUDIENCE_TV, 'eliminations', [{'id': p.id, 'name': p.name} for p in players])
        leaderboard = self.leaderboard()
        for p in players:
            self.gateway.send_to_player(p.id, 'eliminated', {'position': player_position(leaderboard, p.id)})

    # ---- Bookkeeping ----

    def eliminate(self, player: Player) -> bool:
        if player.eliminated:
            return False
        assert not any(e['id'] == player.id for e in self.elimination_order), f"{player.id} eliminated twice"
        player.alive = False
        player.eliminated = True
        player.holding = False
        player.eliminated_in_round = self.round
        self.elimination_order.append(history_entry(player, self.round))
        self.logger.info(f"[eliminate] round={self.round} player={player.name} id={player.id}")
        return True

    def award_finish(self, player: Player) -> bool:
        if player.finished:
            return False
        player.finished_at = self.scheduler.now()
        player.holding = False
        self.finish_order.append(history_entry(player, self.round))
        self.logger.info(f"[finish] round={self.round} player={player.name} progress={player.progress}")
        return True

    def check_softlock(self) -> None:
        """Resolve a round that can no longer progress after an off-cycle elimination."""
        if self.phase != Phase.PLAYING:
            return
        alive = self.registry.all_alive()
        if not alive:
            self.end_round(None)
            return
        if len(alive) == 1 and self.is_race_round():
            winner = alive[0]
            self.award_finish(winner)
            self.end_round(winner)
        # Survival: a lone survivor plays on until the clock runs out

    def check_race_winner(self) -> None:
        finishers = [f for f in self.finish_order if f['round'] == self.round]
        if finishers:
            self.end_round(self.registry.get(finishers[0]['id']))

    # ---- Round lifecycle ----

    def _stop_round_timers(self) -> None:
        self.lights.stop()
        self.progress.stop()
        self.clock.stop()
        self.scheduler.cancel(self.COUNTDOWN_TOKEN)

    def end_survival_round(self) -> None:
        if self.phase in (Phase.ROUND_END, Phase.GAME_OVER):
            return
        self.phase = Phase.ROUND_END
        self._stop_round_timers()
        self.light = Light.RED
        self.elimination_pending = False

        alive = self.registry.all_alive()
        leaderboard = self.leaderboard()
        next_rc = self.catalog.config_for(self.round + 1)
        self.logger.info(f"[round-end] round={self.round} survivors={len(alive)} total={len(self.registry)}")

        self.gateway.send_to_audience(AUDIENCE_TV, 'round_end', {
            'round': self.round,
            'survivors': [{'id': p.id, 'name': p.name} for p in alive],
            'total_alive': len(alive),
            'total_players': len(self.registry),
            'leaderboard': leaderboard,
            'next_round': self.round + 1,
            'next_round_label': next_rc.label,
            'next_round_type': next_rc.kind,
        })
        self._send_final_player_states(leaderboard, progress_override=0)

    def end_round(self, winner: Optional[Player]) -> None:
        if self.phase == Phase.GAME_OVER:
            return
        self._finish_game(winner)

    def _finish_game(self, winner: Optional[Player]) -> None:
        self.phase = Phase.GAME_OVER
        self._stop_round_timers()
        self.light = Light.RED
        self.elimination_pending = False

        leaderboard = self.leaderboard()
        winner_name = winner.name if winner else None
        self.logger.info(f"[game-over] round={self.round} winner={winner_name}")

        self.gateway.send_to_audience(AUDIENCE_TV, 'game_over', {
            'winner': {'id': winner.id, 'name': winner.name} if winner else None,
            'players': [p.to_dict() for p in self.registry.all()],
            'round': self.round,
            'leaderboard': leaderboard,
            'is_final': self.is_race_round(),
        })
        self._send_final_player_states(leaderboard)

    def _send_final_player_states(self, leaderboard, progress_override=None) -> None:
        for player in self.registry.all():
            state = self.player_snapshot(player, leaderboard)
            state.update({'holding': False, 'time_left': 0})
            if progress_override is not None:
                state['progress'] = progress_override
            self.gateway.send_to_player(player.id, 'player_state', state)

    def _emit_countdown(self, count: int) -> None:
        self.gateway.send_to_audience(AUDIENCE_TV, 'countdown', count)
        for player in self.registry.all_alive():
            self.gateway.send_to_player(player.id, 'countdown', count)

    def _on_countdown(self, count: int) -> None:
        with self.lock:
            if self.phase != Phase.COUNTDOWN:
                self.log_stale('countdown', Phase.COUNTDOWN)
                return
            if count > 0:
                self._emit_countdown(count)
                self.scheduler.schedule_once(
                    self.countdown_step_sec, self.COUNTDOWN_TOKEN, lambda: self._on_countdown(count - 1)
                )
                return
            self._begin_playing()

    def _begin_playing(self) -> None:
        self.phase = Phase.PLAYING
        self.round_start_time = self.scheduler.now()
        self.logger.info(f"[playing] round={self.round} type={self.current_round_config().kind}")
        self.progress.start()
        self.clock.start()
        self.lights.start_green()

    # ---- Intents ----

    def add_tv(self) -> None:
        with self.lock:
            self.broadcast_game_state()

    def join(self, player_id: str, raw_name) -> Optional[Player]:
        with self.lock:
            try:
                if not self.registry.clean_name(raw_name):
                    raise PlayerNameError('Please enter a name!')
                if self.tournament_active:
                    raise PlayerNameError('Tournament in progress! Wait for a new game.')
                if self.phase != Phase.LOBBY:
                    raise PlayerNameError('Game in progress. Wait for next game!')
                if player_id in self.registry:
                    raise PlayerNameError('You already joined!')
                player = self.registry.add(player_id, raw_name)
            except PlayerNameError as err:
                self.logger.info(f"[join-rejected] id={player_id} reason={err.reason!r}")
                self.gateway.send_to_player(player_id, 'join_error', err.reason)
                return None

            self.gateway.send_to_player(player_id, 'joined', {'id': player.id, 'name': player.name})
            self.gateway.send_to_audience(AUDIENCE_TV, 'player_joined', {'id': player.id, 'name': player.name})
            self.broadcast_game_state()
            self.logger.info(f"[join] player={player.name} id={player_id} total={len(self.registry)}")
            return player

    def hold_start(self, player_id: str) -> None:
        with self.lock:
            player = self.registry.get(player_id)
            if not player or not player.alive or player.eliminated or player.finished or self.phase != Phase.PLAYING:
                return
            player.holding = True
            # Pressing on red after the grace pass already resolved is caught at once
            if self.light == Light.RED and not self.elimination_pending:
                self.eliminate(player)
                self.notify_eliminations([player])
                self.broadcast_all()
                self.check_softlock()

    def hold_end(self, player_id: str) -> None:
        with self.lock:
            player = self.registry.get(player_id)
            if not player or not player.alive or player.finished or self.phase != Phase.PLAYING:
                return
            player.holding = False

    def start_round(self) -> bool:
        with self.lock:
            if self.phase not in self.STARTABLE_PHASES:
                return False

            alive = self.registry.all_alive()
            if len(alive) < self.min_players:
                if len(alive) == 1:
                    winner = alive[0]
                    self.round += 1
                    # A previous race win does not count for this round
                    winner.finished_at = None
                    self.award_finish(winner)
                    self._finish_game(winner)
                    return True
                self.logger.info(f"[start-refused] phase={self.phase} alive={len(alive)}")
                return False

            self.tournament_active = True
            self.phase = Phase.COUNTDOWN
            self.round += 1
            self.light = Light.RED
            self.elimination_pending = False
            self.round_start_time = None
            for player in alive:
                player.reset_for_round()

            rc = self.current_round_config()
            self.logger.info(f"[round-start] round={self.round} type={rc.kind} label={rc.label!r} alive={len(alive)}")
            self.gateway.send_to_audience(AUDIENCE_TV, 'round_info', {
                'round': self.round,
                'label': rc.label,
                'type': rc.kind,
                'duration_sec': rc.duration_sec,
                'grace_period_ms': rc.grace_period_ms,
            })
            self.broadcast_all()

            self._emit_countdown(self.countdown_from)
            self.scheduler.schedule_once(
                self.countdown_step_sec, self.COUNTDOWN_TOKEN, lambda: self._on_countdown(self.countdown_from - 1)
            )
            return True

    def reset_lobby(self) -> None:
        with self.lock:
            self.scheduler.cancel_all()
            for player in self.registry.all():
                self.gateway.send_to_player(player.id, 'lobby_reset')
            self.logger.info(f"[reset] round={self.round} players={len(self.registry)}")
            self.registry.clear()
            self._reset_state()
            self.broadcast_all()

    def kick(self, player_id: str) -> None:
        with self.lock:
            player = self.registry.remove(player_id)
            self.gateway.send_to_player(player_id, 'kicked')
            if player:
                self.logger.info(f"[kick] player={player.name} id={player_id}")
                if self.tournament_active:
                    self.check_softlock()
            self.broadcast_all()

    def disconnect(self, player_id: str) -> None:
        with self.lock:
            player = self.registry.get(player_id)
            if not player:
                return
            self.logger.info(f"[disconnect] player={player.name} id={player_id} phase={self.phase}")
            if self.phase == Phase.LOBBY and not self.tournament_active:
                self.registry.remove(player_id)
            else:
                if self.eliminate(player):
                    self.gateway.send_to_audience(AUDIENCE_TV, 'eliminations', [{'id': player.id, 'name': player.name}])
                self.check_softlock()
            self.broadcast_all()
