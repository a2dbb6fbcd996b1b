import asyncio

import pytest

from playback import AsyncioScheduler, PlaybackController, PlaybackState
from step_trace import Step, StepType


def _steps(n=3, terminal=True):
    steps = [Step(StepType.METADATA_UPDATE, f"step {i}") for i in range(n - 1)]
    steps.append(Step(StepType.FINAL_RESULT if terminal else StepType.METADATA_UPDATE,
                      f"step {n - 1}", path=(0, 1, 0), distance=2.0))
    return steps


@pytest.fixture
def controller(scheduler):
    return PlaybackController(scheduler=scheduler)


def test_initialize_starts_idle(controller):
    controller.initialize(_steps(), "Greedy", 2)
    assert controller.state == PlaybackState.IDLE
    assert controller.current_index == -1
    assert controller.get_current_step() is None
    assert controller.get_current_explanation() == ""
    assert controller.get_stats()["algorithm_name"] == "Greedy"


def test_next_stops_at_last_step(controller):
    controller.initialize(_steps())
    assert controller.next()
    assert controller.next()
    assert controller.next()
    assert controller.current_index == 2
    assert controller.state == PlaybackState.STEPPED
    assert not controller.next()
    assert controller.current_index == 2


def test_previous_clamps_at_start(controller):
    controller.initialize(_steps())
    for _ in range(3):
        controller.next()
    results = [controller.previous() for _ in range(4)]
    assert results == [True, True, True, False]
    assert controller.current_index == -1
    assert controller.state == PlaybackState.IDLE


def test_play_advances_on_timer_and_pauses_on_result(controller, scheduler):
    controller.initialize(_steps())
    controller.play()
    assert controller.state == PlaybackState.PLAYING
    assert controller.current_index == -1

    scheduler.advance(0.5)
    assert controller.current_index == 0
    scheduler.advance(0.5)
    assert controller.current_index == 1
    assert controller.is_playing

    scheduler.advance(0.5)
    assert controller.current_index == 2
    assert not controller.is_playing
    assert controller.state == PlaybackState.STEPPED
    assert scheduler.active == []


def test_playback_without_terminal_stops_at_end(controller, scheduler):
    controller.initialize(_steps(terminal=False))
    controller.play()
    scheduler.advance(5)
    assert controller.current_index == 2
    assert not controller.is_playing
    assert scheduler.active == []


def test_play_is_noop_when_playing_or_empty(controller, scheduler):
    controller.play()
    assert not controller.is_playing

    controller.initialize(_steps())
    controller.play()
    controller.play()
    assert len(scheduler.active) == 1


def test_play_at_end_rewinds(controller, scheduler):
    controller.initialize(_steps())
    for _ in range(3):
        controller.next()
    controller.play()
    assert controller.current_index == -1
    scheduler.advance(0.5)
    assert controller.current_index == 0


def test_pause_mid_play_keeps_position(controller, scheduler):
    controller.initialize(_steps(5))
    controller.play()
    scheduler.advance(1.0)
    controller.pause()
    assert controller.current_index == 1
    assert controller.state == PlaybackState.STEPPED
    scheduler.advance(5)
    assert controller.current_index == 1


def test_manual_next_while_playing_stops_timer(controller, scheduler):
    controller.initialize(_steps(5))
    controller.play()
    assert controller.next()
    assert not controller.is_playing
    scheduler.advance(5)
    assert controller.current_index == 0


def test_previous_is_noop_while_playing(controller, scheduler):
    controller.initialize(_steps(5))
    controller.play()
    scheduler.advance(1.0)
    assert not controller.previous()
    assert controller.current_index == 1


def test_replay_resets_before_advancing(controller, scheduler):
    controller.initialize(_steps(5))
    controller.next()
    controller.next()

    indices = []
    controller.on_step_changed = lambda step, ui: indices.append(ui.current_index)
    controller.replay()
    assert controller.current_index == -1
    assert controller.is_playing
    assert indices[0] == -1
    scheduler.advance(0.5)
    assert controller.current_index == 0


def test_reset_does_not_play(controller, scheduler):
    controller.initialize(_steps(5))
    controller.play()
    scheduler.advance(1.0)
    controller.reset()
    assert controller.current_index == -1
    assert not controller.is_playing
    assert scheduler.active == []


def test_set_speed_clamps_and_restarts_timer(controller, scheduler):
    controller.set_speed(20)
    assert controller.playback_speed == 100
    controller.set_speed(500)

    controller.initialize(_steps(5))
    controller.play()
    scheduler.advance(0.5)
    controller.set_speed(200)
    assert controller.current_index == 0
    assert len(scheduler.active) == 1
    scheduler.advance(0.2)
    assert controller.current_index == 1
    scheduler.advance(0.2)
    assert controller.current_index == 2


def test_ui_state_snapshot(controller):
    ui = controller.get_ui_state()
    assert not ui.can_play
    assert ui.total_steps == 0
    assert ui.progress_percent == 0

    controller.initialize(_steps(4))
    ui = controller.get_ui_state()
    assert ui.can_play and ui.can_next and ui.can_replay and ui.can_reset
    assert not ui.can_previous and not ui.can_pause
    assert ui.state == PlaybackState.IDLE

    for _ in range(4):
        controller.next()
    ui = controller.get_ui_state()
    assert ui.is_final_result
    assert not ui.can_play
    assert not ui.can_next
    assert ui.progress_percent == 100


def test_observers_are_notified(controller, scheduler):
    changes, explanations, playback = [], [], []
    controller.on_step_changed = lambda step, ui: changes.append((step, ui.current_index))
    controller.on_explanation_updated = explanations.append
    controller.on_playback_state_changed = lambda ui: playback.append(ui.is_playing)

    steps = _steps()
    controller.initialize(steps)
    controller.next()
    controller.play()
    controller.pause()

    assert changes[1] == (steps[0], 0)
    assert explanations[1] == "step 0"
    assert playback == [True, False]


def test_multiple_subscribers(controller):
    first, second = [], []
    unsubscribe = controller.subscribe("step_changed", lambda step, ui: first.append(ui.current_index))
    controller.subscribe("step_changed", lambda step, ui: second.append(ui.current_index))

    controller.initialize(_steps())
    controller.next()
    unsubscribe()
    controller.next()

    assert first == [-1, 0]
    assert second == [-1, 0, 1]

    with pytest.raises(ValueError):
        controller.subscribe("unknown", print)


def test_add_step_ignores_non_steps(controller):
    assert not controller.add_step({"type": "decision"})
    assert controller.add_step(Step(StepType.DECISION, "ok"))
    assert len(controller.steps) == 1


def test_jump_to_end_and_history(controller):
    controller.initialize(_steps(4))
    controller.jump_to_end()
    assert controller.current_index == 3
    assert len(controller.get_steps_up_to_current()) == 4
    assert controller.get_stats()["is_complete"]
    assert controller.get_ui_state().is_final_result


def test_asyncio_scheduler_drives_playback():
    async def scenario():
        controller = PlaybackController(playback_speed=100, scheduler=AsyncioScheduler())
        controller.initialize(_steps(3))
        controller.play()
        await asyncio.sleep(0.5)
        return controller

    controller = asyncio.run(scenario())
    assert controller.current_index == 2
    assert not controller.is_playing


def test_play_without_event_loop_leaves_state_unchanged(caplog):
    controller = PlaybackController()
    controller.initialize(_steps(3))
    controller.next()

    controller.play()

    assert not controller.is_playing
    assert controller.state == PlaybackState.STEPPED
    assert controller.current_index == 0
    assert controller.get_ui_state().can_play
    assert "Cannot schedule playback timer" in caplog.text
    assert controller.next()
    assert controller.previous()


def test_initialize_while_playing_notifies_once(controller, scheduler):
    old = _steps(5)
    controller.initialize(old)
    controller.play()
    scheduler.advance(0.5)

    seen = []
    controller.on_step_changed = lambda step, ui: seen.append((ui.total_steps, ui.current_index, ui.is_playing))
    new = _steps(2)
    controller.initialize(new)

    assert seen == [(2, -1, False)]
    assert scheduler.active == []
    scheduler.advance(5)
    assert controller.current_index == -1
