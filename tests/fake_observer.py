"""In-memory stand-in for a watchdog observer."""

from __future__ import annotations


class FakeObserver:
    def __init__(self) -> None:
        self.handler = None
        self.scheduled: list[str] = []
        self.unscheduled: list[str] = []
        self.fail_paths: set[str] = set()
        self.alive = False
        self.joined = False

    def schedule(self, handler, path, recursive=False):
        if path in self.fail_paths:
            raise OSError(28, "inotify watch limit reached", path)
        self.handler = handler
        self.scheduled.append(path)
        return (path, recursive)

    def unschedule(self, watch) -> None:
        self.unscheduled.append(watch[0])

    def start(self) -> None:
        self.alive = True

    def stop(self) -> None:
        self.alive = False

    def join(self, timeout=None) -> None:
        self.joined = True

    def is_alive(self) -> bool:
        return self.alive

    def emit(self, event) -> None:
        self.handler.dispatch(event)
