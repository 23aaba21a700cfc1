"""Cancellable delayed callbacks for round timers.

The countdown and the pauses between rounds are the only scheduled work in
the game. Each one is a background task that sleeps and then fires unless its
handle was cancelled first.
"""

import itertools


class TimerHandle:
    _ids = itertools.count(1)

    def __init__(self, name: str, delay: float):
        self.id = next(self._ids)
        self.name = name
        self.delay = delay
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self):
        return f"<TimerHandle {self.id} {self.name} delay={self.delay}>"


class BackgroundScheduler:
    """Runs timers as Socket.IO background tasks.

    Uses ``socketio.sleep`` so the same code works under threading, eventlet
    or gevent async modes.
    """

    def __init__(self, socketio, logger=None):
        self.socketio = socketio
        self.logger = logger

    def call_later(self, delay, callback, *args, name='timer') -> TimerHandle:
        handle = TimerHandle(name, delay)

        def _worker():
            self.socketio.sleep(delay)
            if handle.cancelled:
                if self.logger:
                    self.logger.info(f"[timer-abort] {handle!r} cancelled before firing")
                return
            handle.fired = True
            callback(*args)

        self.socketio.start_background_task(_worker)
        if self.logger:
            self.logger.debug(f"[timer-set] {handle!r}")
        return handle
