import pytest

from redlight.services.game import BroadcastGateway, TaskScheduler


class DeferredSocketIO:
    """Collects background tasks so the test decides when they run."""

    def __init__(self):
        self.tasks = []
        self.slept = []

    def start_background_task(self, target, *args):
        self.tasks.append((target, args))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_all(self):
        tasks, self.tasks = self.tasks, []
        for target, args in tasks:
            target(*args)


def test_rescheduling_a_token_supersedes_the_old_timer():
    sio = DeferredSocketIO()
    scheduler = TaskScheduler(sio)
    fired = []
    scheduler.schedule_once(1.0, 'light', lambda: fired.append('old'))
    scheduler.schedule_once(2.0, 'light', lambda: fired.append('new'))
    scheduler.schedule_once(0.5, 'grace', lambda: fired.append('grace'))
    sio.run_all()
    assert fired == ['new', 'grace']
    assert sio.slept == [1.0, 2.0, 0.5]
    assert not scheduler.pending('light')


def test_cancelled_timers_do_nothing():
    sio = DeferredSocketIO()
    scheduler = TaskScheduler(sio)
    fired = []
    scheduler.schedule_once(1.0, 'light', lambda: fired.append('light'))
    scheduler.schedule_once(1.0, 'clock', lambda: fired.append('clock'))
    scheduler.cancel('light')
    assert scheduler.pending('clock')
    scheduler.cancel_all()
    sio.run_all()
    assert fired == []


def test_failing_action_is_logged_not_raised(caplog):
    sio = DeferredSocketIO()
    scheduler = TaskScheduler(sio)

    def boom():
        raise RuntimeError('boom')

    scheduler.schedule_once(0.1, 'light', boom)
    sio.run_all()
    assert '[timer-error] token=light' in caplog.text


def test_clock_is_injectable():
    scheduler = TaskScheduler(DeferredSocketIO(), clock=lambda: 42.0)
    assert scheduler.now() == 42.0


def test_base_gateway_must_be_subclassed():
    gateway = BroadcastGateway()
    with pytest.raises(NotImplementedError):
        gateway.send_to_audience('tv', 'game_state', {})
    with pytest.raises(NotImplementedError):
        gateway.send_to_player('sid', 'player_state', {})
