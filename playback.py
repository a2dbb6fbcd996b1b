"""
Playback controller for step traces.

A small state machine over a precomputed list of ``Step`` objects:

    idle     -- nothing shown yet (index -1) and not playing
    stepped  -- positioned on a step, not playing
    playing  -- a recurring timer advances one step per tick

The timer comes from a scheduler object with a ``call_later(delay_s,
callback)`` method returning a cancellable handle. The default scheduler
uses the running asyncio event loop. Invalid transitions are no-ops, never
errors.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

import config
from step_trace import Step, is_terminal_step


logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    STEPPED = "stepped"
    PLAYING = "playing"


class UIState(NamedTuple):
    can_play: bool
    can_pause: bool
    can_next: bool
    can_previous: bool
    can_replay: bool
    can_reset: bool
    is_playing: bool
    current_index: int
    total_steps: int
    progress_percent: int
    is_final_result: bool
    state: PlaybackState


class AsyncioScheduler:
    """Timer source backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop

    def call_later(self, delay_s: float, callback: Callable[[], None]):
        loop = self.loop or asyncio.get_running_loop()
        return loop.call_later(delay_s, callback)


STEP_CHANGED = "step_changed"
EXPLANATION_UPDATED = "explanation_updated"
PLAYBACK_STATE_CHANGED = "playback_state_changed"


class PlaybackController:
    """Play, pause and step through an algorithm trace."""

    def __init__(self, playback_speed: int = config.DEFAULT_PLAYBACK_MS, scheduler=None):
        self.steps: List[Step] = []
        self.current_index = -1
        self.is_playing = False
        self.playback_speed = max(config.MIN_PLAYBACK_MS, int(playback_speed))
        self.scheduler = scheduler or AsyncioScheduler()

        self.algorithm_name = ""
        self.total_cities = 0
        self.user_route: List[int] = []

        # Settable observer hooks
        self.on_step_changed: Optional[Callable[[Optional[Step], UIState], None]] = None
        self.on_explanation_updated: Optional[Callable[[str], None]] = None
        self.on_playback_state_changed: Optional[Callable[[UIState], None]] = None

        self._listeners: Dict[str, List[Callable]] = {
            STEP_CHANGED: [],
            EXPLANATION_UPDATED: [],
            PLAYBACK_STATE_CHANGED: [],
        }
        self._timer = None
        self._generation = 0

    # ---------------------------------------
    # Loading
    # ---------------------------------------

    def initialize(
        self,
        steps: Optional[Sequence[Step]] = None,
        algorithm_name: str = "",
        total_cities: int = 0,
        user_route: Optional[Sequence[int]] = None
    ):
        """Load a new trace and rewind to the idle position."""
        self.clear()
        self.algorithm_name = algorithm_name
        self.total_cities = total_cities
        self.user_route = list(user_route or [])
        if steps:
            self.add_steps(steps)
        self._notify_step_changed()

    def add_step(self, step: Step) -> bool:
        if not isinstance(step, Step):
            logger.error("Ignoring trace entry that is not a Step: %r", step)
            return False
        self.steps.append(step)
        return True

    def add_steps(self, steps: Sequence[Step]):
        for step in steps:
            self.add_step(step)

    def clear(self):
        # stop quietly; initialize notifies once the new trace is loaded
        self.is_playing = False
        self._stop_timer()
        self.steps = []
        self.current_index = -1
        self.algorithm_name = ""
        self.total_cities = 0
        self.user_route = []

    # ---------------------------------------
    # Navigation
    # ---------------------------------------

    def next(self) -> bool:
        """Advance one step. Returns False at the last step."""
        if self.current_index >= len(self.steps) - 1:
            return False
        if self.is_playing:
            self.pause()
        return self._advance()

    def previous(self) -> bool:
        """Go back one step. Returns False at the start or while playing."""
        if self.is_playing or self.current_index <= -1:
            return False
        self.current_index -= 1
        self._notify_step_changed()
        return True

    def jump_to_end(self):
        """Pause and show the last step (the result of the trace)."""
        self.pause()
        if self.steps:
            self.current_index = len(self.steps) - 1
            self._notify_step_changed()

    def _advance(self) -> bool:
        if self.current_index >= len(self.steps) - 1:
            return False
        self.current_index += 1
        self._notify_step_changed()

        if self.is_playing and is_terminal_step(self.get_current_step()):
            # stop on the result
            self.pause()
        return True

    # ---------------------------------------
    # Playback
    # ---------------------------------------

    def play(self):
        if self.is_playing or not self.steps:
            return
        if not self._start_timer():
            return
        if self.current_index >= len(self.steps) - 1:
            self.current_index = -1

        self.is_playing = True
        self._notify_playback_state_changed()
        self._notify_step_changed()

    def pause(self):
        if not self.is_playing:
            return
        self.is_playing = False
        self._stop_timer()
        self._notify_playback_state_changed()
        self._notify_step_changed()

    def replay(self):
        self.pause()
        self.current_index = -1
        self._notify_step_changed()
        self.play()

    def reset(self):
        self.pause()
        self.current_index = -1
        self._notify_step_changed()

    def set_speed(self, ms: int):
        """Set the tick interval; keeps position when playing."""
        self.playback_speed = max(config.MIN_PLAYBACK_MS, int(ms))
        if self.is_playing:
            self._stop_timer()
            if not self._start_timer():
                self.pause()

    def _start_timer(self) -> bool:
        """Schedule the next tick. Returns False when no timer could be set."""
        self._generation += 1
        generation = self._generation
        try:
            self._timer = self.scheduler.call_later(
                self.playback_speed / 1000, lambda: self._tick(generation)
            )
        except RuntimeError as e:
            logger.error("Cannot schedule playback timer: %s", e)
            self._timer = None
            return False
        return True

    def _stop_timer(self):
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _tick(self, generation: int):
        if generation != self._generation or not self.is_playing:
            return
        self._timer = None
        if not self._advance():
            self.pause()
            return
        if self.is_playing and not self._start_timer():
            self.pause()

    # ---------------------------------------
    # Queries
    # ---------------------------------------

    @property
    def state(self) -> PlaybackState:
        if self.is_playing:
            return PlaybackState.PLAYING
        if self.current_index < 0:
            return PlaybackState.IDLE
        return PlaybackState.STEPPED

    def get_current_step(self) -> Optional[Step]:
        if 0 <= self.current_index < len(self.steps):
            return self.steps[self.current_index]
        return None

    def get_steps_up_to_current(self) -> List[Step]:
        """Steps 0..current inclusive, for rebuilding the rendered state."""
        return self.steps[:self.current_index + 1]

    def get_current_explanation(self) -> str:
        step = self.get_current_step()
        return step.explanation if step else ""

    def get_ui_state(self) -> UIState:
        total = len(self.steps)
        is_final = is_terminal_step(self.get_current_step())
        playing = self.is_playing
        return UIState(
            can_play=not playing and total > 0 and not is_final,
            can_pause=playing,
            can_next=not playing and self.current_index < total - 1,
            can_previous=not playing and self.current_index > -1,
            can_replay=not playing and total > 0,
            can_reset=not playing and (self.current_index >= 0 or total > 0),
            is_playing=playing,
            current_index=self.current_index,
            total_steps=total,
            progress_percent=round((self.current_index + 1) / total * 100) if total else 0,
            is_final_result=is_final,
            state=self.state,
        )

    def get_stats(self) -> dict:
        return {
            "algorithm_name": self.algorithm_name,
            "total_cities": self.total_cities,
            "total_steps": len(self.steps),
            "current_step": self.current_index + 1,
            "is_playing": self.is_playing,
            "is_complete": bool(self.steps) and self.current_index == len(self.steps) - 1,
        }

    # ---------------------------------------
    # Observers
    # ---------------------------------------

    def subscribe(self, event: str, callback: Callable) -> Callable[[], None]:
        """Register an extra listener; returns a function that removes it."""
        if event not in self._listeners:
            raise ValueError(f"Unknown playback event: {event}")
        self._listeners[event].append(callback)

        def unsubscribe():
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        return unsubscribe

    def _notify_step_changed(self):
        step = self.get_current_step()
        ui_state = self.get_ui_state()
        for callback in self._hooks(self.on_step_changed, STEP_CHANGED):
            callback(step, ui_state)

        explanation = self.get_current_explanation()
        for callback in self._hooks(self.on_explanation_updated, EXPLANATION_UPDATED):
            callback(explanation)

    def _notify_playback_state_changed(self):
        ui_state = self.get_ui_state()
        for callback in self._hooks(self.on_playback_state_changed, PLAYBACK_STATE_CHANGED):
            callback(ui_state)

    def _hooks(self, hook, event: str) -> List[Callable]:
        hooks = [hook] if hook is not None else []
        return hooks + list(self._listeners[event])
