"""Deterministic work-clip clock standing in for an animation system."""

from __future__ import annotations


class ScriptedAnimator:
    """Plays a fixed-length work clip when triggered.

    A triggered clip starts on the next ``advance``. While keep-working is held
    the clip loops, otherwise it plays once and leaves the work state.

    Args:
        clip_length: Seconds per work cycle.
    """

    def __init__(self, clip_length: float = 1.0):
        if clip_length <= 0:
            raise ValueError(f"clip_length must be positive, got {clip_length}")
        self.clip_length = clip_length
        self.keep_working = False
        self.triggered = False
        self.playing = False
        self.time = 0.0
        self.cycles_played = 0

    def set_keep_working(self, value: bool) -> None:
        self.keep_working = value

    def trigger_cycle(self) -> None:
        self.triggered = True

    def reset_cycle_trigger(self) -> None:
        self.triggered = False

    def normalized_time(self) -> float:
        if not self.playing:
            return 0.0
        return self.time / self.clip_length

    def in_work_state(self) -> bool:
        return self.playing

    def advance(self, dt: float) -> None:
        if not self.playing:
            if not self.triggered:
                return
            self.triggered = False
            self.playing = True
            self.time = 0.0
            return
        self.time += dt
        if self.time < self.clip_length:
            return
        self.cycles_played += 1
        if self.keep_working:
            self.time -= self.clip_length
        else:
            self.playing = False
            self.time = 0.0
