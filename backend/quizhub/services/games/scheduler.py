from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, label: str = ''):
        self.label = label
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class BackgroundTimers:
    """Run delayed callbacks on Socket.IO background tasks.

    - Each timer sleeps with ``socketio.sleep`` so it cooperates with
      whichever async mode the server runs in
    - Callbacks run under ``lock`` (the room registry lock) so they never
      interleave with a command handler mutating the same room
    - A cancelled handle is checked before and after taking the lock
    """

    def __init__(self, socketio, lock, heartbeat_sec: int = 0):
        self.socketio = socketio
        self.lock = lock
        self.heartbeat_sec = heartbeat_sec

    def call_later(self, delay_sec: float, callback: Callable[[], None], label: str = '') -> TimerHandle:
        handle = TimerHandle(label)
        self.socketio.start_background_task(self._worker, handle, delay_sec, callback)
        return handle

    def _worker(self, handle: TimerHandle, delay: float, callback: Callable[[], None]) -> None:
        hb = self.heartbeat_sec
        if hb and hb > 0:
            slept = 0.0
            while slept < delay and not handle.cancelled:
                step = min(hb, delay - slept)
                self.socketio.sleep(step)
                slept += step
                logger.info(f"[timer-heartbeat] {handle.label} remaining={max(0.0, delay - slept)}s")
        else:
            self.socketio.sleep(delay)

        if handle.cancelled:
            return
        with self.lock:
            if handle.cancelled:
                return
            try:
                callback()
            except Exception:
                # Nothing above a background task would see this otherwise
                logger.exception(f"[timer-error] {handle.label} callback failed")


class RoundClock:
    """The single timer slot of one game.

    Arming always cancels whatever was armed before. Every arm bumps a
    generation counter; a callback only runs if the generation it was
    armed with is still current, so a timer that raced with an early
    round close can never advance the game a second time.
    """

    def __init__(self, timers, label: str = ''):
        self._timers = timers
        self._label = label
        self._handle: Optional[TimerHandle] = None
        self.generation = 0

    @property
    def armed(self) -> bool:
        return self._handle is not None and not self._handle.cancelled

    def arm(self, delay_ms: int, callback: Callable[[], None], stage: str) -> int:
        self.cancel()
        generation = self.generation
        label = f"{self._label} stage={stage} gen={generation}"

        def _fire():
            logger.info(f"[timer-fire] {label} current_gen={self.generation}")
            if generation != self.generation:
                logger.info(f"[timer-abort] {label} stale generation")
                return
            self._handle = None
            callback()

        self._handle = self._timers.call_later(delay_ms / 1000.0, _fire, label=label)
        logger.info(f"[timer-set] {label} duration={delay_ms}ms")
        return generation

    def cancel(self) -> None:
        self.generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
